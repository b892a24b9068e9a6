"""WebHDFS REST client implementing the namespace source interface."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from common.constants import WEBHDFS_PREFIX
from common.logging_config import get_logger
from common.protocol import FileStatus, NodeKind
from mirror.exceptions import NamespaceUnavailableError, PathNotFoundError
from mirror.path_codec import InodePath
from sources.http_client import RetryingHttpClient

logger = get_logger(__name__)


class WebHdfsClient(RetryingHttpClient):
    """
    Reads directory listings and file statuses from a NameNode over WebHDFS.

    Only the read operations LISTSTATUS and GETFILESTATUS are used.
    """

    def __init__(self, base_url: str, user: Optional[str] = None, **kwargs):
        """
        Args:
            base_url: NameNode HTTP address, e.g. http://namenode:9870
            user: Value for the user.name query parameter (simple auth)
        """
        super().__init__(base_url, **kwargs)
        self.user = user
        logger.info(f"Initialized WebHdfsClient [base_url={self.base_url}, user={user}]")

    def _params(self, op: str) -> Dict[str, str]:
        params = {'op': op}
        if self.user:
            params['user.name'] = self.user
        return params

    def _get(self, path: str, op: str) -> Dict[str, Any]:
        endpoint = WEBHDFS_PREFIX + quote(str(InodePath.parse(path)))
        response = self._request_with_retry('GET', endpoint, params=self._params(op))

        if response.status_code == 404:
            raise PathNotFoundError(f"Path {path} does not exist")

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        remote = payload.get('RemoteException')
        if remote:
            if remote.get('exception') == 'FileNotFoundException':
                raise PathNotFoundError(remote.get('message') or f"Path {path} does not exist")
            raise NamespaceUnavailableError(
                f"{op} {path} failed: {remote.get('exception')}: {remote.get('message')}"
            )

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NamespaceUnavailableError(f"{op} {path} failed with status {response.status_code}") from e

        return payload

    @staticmethod
    def _to_status(path: InodePath, entry: Dict[str, Any]) -> FileStatus:
        kind = NodeKind(entry.get('type', 'FILE'))
        return FileStatus(
            path=str(path),
            kind=kind,
            length=entry.get('length', 0),
            block_size=entry.get('blockSize', 0),
            replication=entry.get('replication', 0),
            owner=entry.get('owner', ''),
            group=entry.get('group', ''),
            permission=entry.get('permission', ''),
            modification_time=entry.get('modificationTime', 0),
            access_time=entry.get('accessTime', 0),
            symlink_target=entry.get('symlink'),
        )

    def status_of(self, path: str) -> FileStatus:
        payload = self._get(path, 'GETFILESTATUS')
        return self._to_status(InodePath.parse(path), payload['FileStatus'])

    def list_directory(self, path: str) -> List[FileStatus]:
        parent = InodePath.parse(path)
        payload = self._get(path, 'LISTSTATUS')
        entries = payload.get('FileStatuses', {}).get('FileStatus', [])
        return [self._to_status(parent.child(entry['pathSuffix']), entry) for entry in entries]
