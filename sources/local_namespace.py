"""Namespace source backed by a directory on the local file system."""

import grp
import os
import pwd
import stat
from pathlib import Path
from typing import List

from common.logging_config import get_logger
from common.protocol import FileStatus, NodeKind
from mirror.exceptions import PathNotFoundError
from mirror.path_codec import InodePath

logger = get_logger(__name__)

DEFAULT_BLOCK_SIZE = 4096


def _owner_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


class LocalNamespace:
    """
    Exposes a local directory as the namespace root.

    Namespace path "/" maps to `root`; symlinks are reported, never followed.
    Directories report length 0, like HDFS.
    """

    def __init__(self, root: str):
        self.root = Path(root).resolve()
        logger.info(f"Initialized local namespace [root={self.root}]")

    def _local_path(self, path: str) -> Path:
        inode_path = InodePath.parse(path)
        return self.root.joinpath(*inode_path.elements)

    def _status(self, namespace_path: str, local_path: Path) -> FileStatus:
        try:
            st = os.lstat(local_path)
        except FileNotFoundError as e:
            raise PathNotFoundError(f"Path {namespace_path} does not exist") from e

        if stat.S_ISDIR(st.st_mode):
            kind = NodeKind.DIRECTORY
        elif stat.S_ISLNK(st.st_mode):
            kind = NodeKind.SYMLINK
        else:
            kind = NodeKind.FILE

        return FileStatus(
            path=namespace_path,
            kind=kind,
            length=0 if kind == NodeKind.DIRECTORY else st.st_size,
            block_size=getattr(st, "st_blksize", DEFAULT_BLOCK_SIZE),
            replication=0 if kind == NodeKind.DIRECTORY else 1,
            owner=_owner_name(st.st_uid),
            group=_group_name(st.st_gid),
            permission=format(stat.S_IMODE(st.st_mode), "o"),
            modification_time=int(st.st_mtime * 1000),
            access_time=int(st.st_atime * 1000),
            symlink_target=os.readlink(local_path) if kind == NodeKind.SYMLINK else None,
        )

    def status_of(self, path: str) -> FileStatus:
        return self._status(str(InodePath.parse(path)), self._local_path(path))

    def list_directory(self, path: str) -> List[FileStatus]:
        parent = InodePath.parse(path)
        local_path = self._local_path(path)
        try:
            names = sorted(os.listdir(local_path))
        except FileNotFoundError as e:
            raise PathNotFoundError(f"Path {path} does not exist") from e

        statuses = []
        for name in names:
            child = parent.child(name)
            try:
                statuses.append(self._status(str(child), local_path / name))
            except PathNotFoundError:
                logger.debug(f"Entry {child} vanished while listing {path}")
        return statuses
