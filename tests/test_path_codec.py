"""Unit tests for path encoding and hierarchical predicates."""

import mongomock
import pytest

from common.constants import MAX_PATH_DEPTH
from mirror import path_codec
from mirror.exceptions import InvalidPathError, PrefixMismatchError
from mirror.path_codec import InodePath


class TestInodePath:
    """Test InodePath parsing and navigation."""

    def test_parse_root(self):
        root = InodePath.parse("/")

        assert root.depth == 0
        assert root.is_root()
        assert root.name == ""
        assert root.parent is None
        assert str(root) == "/"

    def test_parse_collapses_separators_and_dots(self):
        path = InodePath.parse("//a/./b//c/")

        assert path.elements == ("a", "b", "c")
        assert str(path) == "/a/b/c"

    def test_parse_rejects_relative_path(self):
        with pytest.raises(InvalidPathError):
            InodePath.parse("a/b")

    def test_parse_rejects_parent_reference(self):
        with pytest.raises(InvalidPathError):
            InodePath.parse("/a/../b")

    def test_parse_rejects_too_deep_path(self):
        too_deep = "/" + "/".join(f"d{i}" for i in range(MAX_PATH_DEPTH + 1))

        with pytest.raises(InvalidPathError):
            InodePath.parse(too_deep)

    def test_max_depth_is_accepted(self):
        deepest = "/" + "/".join(f"d{i}" for i in range(MAX_PATH_DEPTH))

        assert InodePath.parse(deepest).depth == MAX_PATH_DEPTH

    def test_navigation(self):
        path = InodePath.parse("/a/b/c")

        assert path.name == "c"
        assert path.parent == InodePath.parse("/a/b")
        assert path.child("d") == InodePath.parse("/a/b/c/d")
        assert path.ancestors() == [
            InodePath.root(),
            InodePath.parse("/a"),
            InodePath.parse("/a/b"),
        ]

    def test_equality_and_hash(self):
        assert InodePath.parse("/a/b") == InodePath(["a", "b"])
        assert len({InodePath.parse("/a/b"), InodePath(("a", "b"))}) == 1
        assert InodePath.parse("/a/b") != InodePath.parse("/a/c")

    def test_has_prefix_is_segment_based(self):
        path = InodePath.parse("/ab/c")

        assert path.has_prefix(InodePath.parse("/ab"))
        assert path.has_prefix(path)
        assert not path.has_prefix(InodePath.parse("/a"))


class TestEncoding:
    """Test encode/decode of the positional document layout."""

    @pytest.mark.parametrize("raw", ["/", "/a", "/a/b/c", "/user/data/part-0000.parquet"])
    def test_round_trip(self, raw):
        path = InodePath.parse(raw)

        assert path_codec.decode(path_codec.encode(path)) == path

    def test_encode_layout(self):
        assert path_codec.encode("/a/b") == {"depth": 2, "0": "a", "1": "b"}
        assert path_codec.encode("/") == {"depth": 0}

    def test_encode_rejects_relative_path(self):
        with pytest.raises(InvalidPathError):
            path_codec.encode("a/b")

    def test_decode_rejects_missing_depth(self):
        with pytest.raises(InvalidPathError):
            path_codec.decode({"0": "a"})

    def test_decode_rejects_missing_segment(self):
        with pytest.raises(InvalidPathError):
            path_codec.decode({"depth": 2, "0": "a"})


class TestPredicates:
    """Test predicates against an in-memory collection."""

    @pytest.fixture
    def collection(self):
        collection = mongomock.MongoClient()['codec']['paths']
        for raw in ["/", "/a", "/a/b", "/a/b/c", "/ab", "/x", "/x/a"]:
            collection.insert_one({"raw": raw, "path": path_codec.encode(raw)})
        return collection

    def _matching(self, collection, predicate):
        return sorted(doc["raw"] for doc in collection.find(predicate))

    def test_exact_predicate(self, collection):
        assert self._matching(collection, path_codec.exact_predicate("/a/b")) == ["/a/b"]
        assert self._matching(collection, path_codec.exact_predicate("/")) == ["/"]

    def test_subtree_predicate_membership(self, collection):
        assert self._matching(collection, path_codec.subtree_predicate("/a")) == ["/a", "/a/b", "/a/b/c"]

    def test_subtree_of_root_matches_everything(self, collection):
        assert len(self._matching(collection, path_codec.subtree_predicate("/"))) == 7

    def test_children_predicate(self, collection):
        assert self._matching(collection, path_codec.children_predicate("/")) == ["/a", "/ab", "/x"]
        assert self._matching(collection, path_codec.children_predicate("/a")) == ["/a/b"]

    def test_ancestor_predicates(self, collection):
        assert len(path_codec.ancestor_predicates("/a/b/c")) == 3
        assert path_codec.ancestor_predicates("/") == []
        assert self._matching(collection, path_codec.ancestors_predicate("/a/b/c")) == ["/", "/a", "/a/b"]

    def test_ancestors_predicate_for_root_is_none(self):
        assert path_codec.ancestors_predicate("/") is None


class TestRewritePrefix:
    """Test prefix rewriting used by rename."""

    def test_rewrite_keeps_suffix(self):
        result = path_codec.rewrite_prefix("/a/b/c/d", "/a/b", "/x")

        assert result == InodePath.parse("/x/c/d")

    def test_rewrite_exact_prefix(self):
        assert path_codec.rewrite_prefix("/a/b", "/a/b", "/y/z") == InodePath.parse("/y/z")

    def test_rewrite_mismatched_prefix(self):
        with pytest.raises(PrefixMismatchError):
            path_codec.rewrite_prefix("/a/b", "/c", "/x")

    def test_rewrite_partial_segment_is_mismatch(self):
        with pytest.raises(PrefixMismatchError):
            path_codec.rewrite_prefix("/ab/c", "/a", "/x")
