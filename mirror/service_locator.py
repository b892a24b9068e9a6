"""Service locator for the running mirror."""

from typing import Optional

from mirror.manager import MirrorManager

_manager: Optional[MirrorManager] = None


def set_manager(manager: Optional[MirrorManager]):
    """Set global mirror manager instance"""
    global _manager
    _manager = manager


def get_manager() -> Optional[MirrorManager]:
    """Get global mirror manager instance"""
    return _manager
