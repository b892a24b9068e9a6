"""API routes package."""

from mirror.routes.inode_routes import router as inode_router
from mirror.routes.event_routes import router as event_router

__all__ = ["inode_router", "event_router"]
