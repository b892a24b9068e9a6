"""
Path encoding for the flat document store.

A path is stored as an explicit depth counter plus one field per segment,
keyed by the segment position ("0", "1", ...). Hierarchical queries are then
plain equality predicates over those fields:

- exact match: depth and every segment field equal
- subtree: the first `depth` segment fields equal (any depth)
- ancestors: one exact match per strict prefix
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from common.constants import MAX_PATH_DEPTH, PATH_SEPARATOR
from mirror.exceptions import InvalidPathError, PrefixMismatchError

FIELD_PATH = "path"
FIELD_DEPTH = "depth"


def segment_field(index: int) -> str:
    """Field name holding the segment at position `index`."""
    return str(index)


def _path_key(field: str) -> str:
    return f"{FIELD_PATH}.{field}"


class InodePath:
    """
    Immutable absolute path as an ordered sequence of segments.

    The root path has no segments and depth 0.
    """

    __slots__ = ("_elements",)

    def __init__(self, elements: Sequence[str] = ()):
        elements = tuple(elements)
        if len(elements) > MAX_PATH_DEPTH:
            raise InvalidPathError(
                f"Path depth {len(elements)} exceeds maximum depth {MAX_PATH_DEPTH}"
            )
        for element in elements:
            if not isinstance(element, str) or not element or PATH_SEPARATOR in element:
                raise InvalidPathError(f"Invalid path segment {element!r} in {elements}")
        self._elements: Tuple[str, ...] = elements

    @classmethod
    def root(cls) -> "InodePath":
        return cls(())

    @classmethod
    def parse(cls, path: str) -> "InodePath":
        """
        Parse an absolute path string such as "/a/b/c".

        Repeated separators collapse and "." segments are dropped.

        Raises:
            InvalidPathError: If the path is not absolute or too deep
        """
        if not isinstance(path, str) or not path.startswith(PATH_SEPARATOR):
            raise InvalidPathError(f"Absolute path required, found {path!r}")
        parts = [part for part in path.split(PATH_SEPARATOR) if part and part != "."]
        if ".." in parts:
            raise InvalidPathError(f"Parent references are not supported, found {path!r}")
        return cls(parts)

    @property
    def depth(self) -> int:
        return len(self._elements)

    @property
    def elements(self) -> Tuple[str, ...]:
        return self._elements

    @property
    def name(self) -> str:
        """Last segment, or empty string for root."""
        if not self._elements:
            return ""
        return self._elements[-1]

    @property
    def parent(self) -> Optional["InodePath"]:
        """Parent path, or None for root."""
        if not self._elements:
            return None
        return InodePath(self._elements[:-1])

    def is_root(self) -> bool:
        return not self._elements

    def child(self, name: str) -> "InodePath":
        return InodePath(self._elements + (name,))

    def ancestors(self) -> List["InodePath"]:
        """Strict ancestors ordered from root to the direct parent."""
        return [InodePath(self._elements[:depth]) for depth in range(self.depth)]

    def has_prefix(self, prefix: "InodePath") -> bool:
        """Whether `prefix` is a literal prefix of this path (a path is its own prefix)."""
        if self.depth < prefix.depth:
            return False
        return self._elements[:prefix.depth] == prefix.elements

    def with_updated_prefix(self, prefix: "InodePath", replacement: "InodePath") -> "InodePath":
        """
        Replace `prefix` with `replacement`, keeping the remaining suffix.

        Raises:
            PrefixMismatchError: If `prefix` is not a prefix of this path
            InvalidPathError: If the result is deeper than the maximum depth
        """
        if not self.has_prefix(prefix):
            raise PrefixMismatchError(f"Prefix {prefix} is not a prefix of the path {self}")
        return InodePath(replacement.elements + self._elements[prefix.depth:])

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, InodePath):
            return NotImplemented
        return self._elements == other._elements

    def __hash__(self) -> int:
        return hash(self._elements)

    def __str__(self) -> str:
        return PATH_SEPARATOR + PATH_SEPARATOR.join(self._elements)

    def __repr__(self) -> str:
        return f"InodePath({str(self)!r}, depth={self.depth})"


def _as_inode_path(path) -> InodePath:
    if isinstance(path, InodePath):
        return path
    return InodePath.parse(path)


def encode(path) -> Dict[str, Any]:
    """
    Encode a path into its document representation.

    Args:
        path: InodePath or absolute path string

    Returns:
        Mapping with "depth" and one positional field per segment

    Raises:
        InvalidPathError: If the path is not absolute or too deep
    """
    path = _as_inode_path(path)
    document: Dict[str, Any] = {FIELD_DEPTH: path.depth}
    for index, element in enumerate(path.elements):
        document[segment_field(index)] = element
    return document


def decode(document: Dict[str, Any]) -> InodePath:
    """
    Decode a path document produced by encode().

    Raises:
        InvalidPathError: If depth is missing or a segment field is absent
    """
    if not isinstance(document, dict) or FIELD_DEPTH not in document:
        raise InvalidPathError(f"Path document without depth: {document!r}")
    depth = document[FIELD_DEPTH]
    if not isinstance(depth, int) or depth < 0:
        raise InvalidPathError(f"Expected non-negative depth, found {depth!r}")
    elements = []
    for index in range(depth):
        element = document.get(segment_field(index))
        if element is None:
            raise InvalidPathError(f"Missing segment {index} in path document {document!r}")
        elements.append(element)
    return InodePath(elements)


def _segment_filters(path: InodePath) -> Dict[str, Any]:
    return {_path_key(segment_field(i)): element for i, element in enumerate(path.elements)}


def match_all() -> Dict[str, Any]:
    """Predicate matching every record in the collection."""
    return {FIELD_PATH: {"$exists": True}}


def exact_predicate(path) -> Dict[str, Any]:
    """Predicate matching the single record at `path`."""
    path = _as_inode_path(path)
    predicate = {_path_key(FIELD_DEPTH): path.depth}
    predicate.update(_segment_filters(path))
    return predicate


def subtree_predicate(path) -> Dict[str, Any]:
    """Predicate matching `path` and every descendant; root matches everything."""
    path = _as_inode_path(path)
    if path.is_root():
        return match_all()
    return _segment_filters(path)


def children_predicate(path) -> Dict[str, Any]:
    """Predicate matching the immediate children of `path`."""
    path = _as_inode_path(path)
    predicate = {_path_key(FIELD_DEPTH): path.depth + 1}
    predicate.update(_segment_filters(path))
    return predicate


def ancestor_predicates(path) -> List[Dict[str, Any]]:
    """One exact predicate per strict ancestor of `path`, root first."""
    path = _as_inode_path(path)
    return [exact_predicate(ancestor) for ancestor in path.ancestors()]


def ancestors_predicate(path) -> Optional[Dict[str, Any]]:
    """
    Single predicate matching every strict ancestor of `path`.

    Returns:
        An $or predicate, or None for root (which has no ancestors)
    """
    predicates = ancestor_predicates(path)
    if not predicates:
        return None
    return {"$or": predicates}


def rewrite_prefix(path, old_prefix, new_prefix) -> InodePath:
    """
    Rewrite `old_prefix` of `path` into `new_prefix`, preserving the suffix.

    Raises:
        PrefixMismatchError: If `old_prefix` is not a literal prefix of `path`
    """
    path = _as_inode_path(path)
    return path.with_updated_prefix(_as_inode_path(old_prefix), _as_inode_path(new_prefix))
