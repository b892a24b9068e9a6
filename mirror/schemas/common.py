"""Error body shared by every mirror endpoint."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Body returned by the mirror's exception handlers.

    code is one of INVALID_PATH, INODE_NOT_FOUND, MIRROR_UNAVAILABLE or
    INTERNAL_ERROR.
    """
    detail: str
    code: str
