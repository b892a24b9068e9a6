"""Read-only namespace API routes."""

from fastapi import APIRouter, Depends, Query

from mirror.exceptions import MissingRecordError, MirrorUnavailableError
from mirror.metadata_store import MetadataStore
from mirror.path_codec import InodePath
from mirror.schemas.common import ErrorResponse
from mirror.schemas.inodes import AncestorsResponse, InodeResponse, ListInodesResponse
from mirror.service_locator import get_manager

router = APIRouter(
    prefix="/fs",
    tags=["Namespace"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse}
    }
)


def get_store() -> MetadataStore:
    """
    FastAPI dependency returning the store of the running mirror.

    Raises:
        MirrorUnavailableError: If the mirror has not been started
    """
    manager = get_manager()
    if manager is None or not manager.started:
        raise MirrorUnavailableError("Mirror is not started")
    return manager.store


def _require(store: MetadataStore, path: InodePath):
    record = store.get(path)
    if record is None:
        raise MissingRecordError(f"Path {path} is not mirrored")
    return record


@router.get("/inode", response_model=InodeResponse)
def get_inode(
    path: str = Query(..., description="Absolute namespace path"),
    store: MetadataStore = Depends(get_store)
):
    """
    Get the mirrored metadata of a single path.

    Raises:
        - 400: Malformed or too deep path
        - 404: Path is not mirrored
        - 503: Mirror not started
    """
    record = _require(store, InodePath.parse(path))
    return InodeResponse.from_record(record)


@router.get("/list", response_model=ListInodesResponse)
def list_children(
    path: str = Query("/", description="Absolute namespace path of a directory"),
    store: MetadataStore = Depends(get_store)
):
    """
    List the immediate children of a mirrored path, ordered by name.
    """
    inode_path = InodePath.parse(path)
    _require(store, inode_path)
    children = store.children(inode_path)
    return ListInodesResponse(
        path=str(inode_path),
        children=[InodeResponse.from_record(child) for child in children]
    )


@router.get("/ancestors", response_model=AncestorsResponse)
def list_ancestors(
    path: str = Query(..., description="Absolute namespace path"),
    store: MetadataStore = Depends(get_store)
):
    """
    Mirrored ancestors of a path, root first. The path itself need not be mirrored.
    """
    inode_path = InodePath.parse(path)
    ancestors = store.ancestors(inode_path)
    return AncestorsResponse(
        path=str(inode_path),
        ancestors=[InodeResponse.from_record(record) for record in ancestors]
    )
