"""Custom exception classes for the metadata mirror."""


class MirrorException(Exception):
    """
    Base exception class for all mirror-related errors.
    """
    pass


class InvalidPathError(MirrorException):
    """
    Raised when a path is not absolute, is malformed, or is deeper than the
    maximum encoding width.
    """
    pass


class PrefixMismatchError(MirrorException):
    """
    Raised when a path is rewritten with a prefix it does not start with.
    """
    pass


class StoreIOError(MirrorException):
    """
    Raised when the document store does not acknowledge a write.
    """
    pass


class NotADirectoryError(MirrorException):
    """
    Raised when the configured index root does not resolve to a directory.
    """
    pass


class MissingRecordError(MirrorException):
    """
    Raised when an event updates a path that has no record in the mirror.
    """
    pass


class UnsupportedEventError(MirrorException):
    """
    Raised when the event processor receives an event of unknown kind.
    """
    pass


class PathNotFoundError(MirrorException):
    """
    Raised by a namespace source when a path does not exist.
    """
    pass


class NamespaceUnavailableError(MirrorException):
    """
    Raised when the namespace source or event stream cannot be reached.
    """
    pass


class MirrorUnavailableError(MirrorException):
    """
    Raised when the mirror is queried before the manager has started.
    """
    pass
