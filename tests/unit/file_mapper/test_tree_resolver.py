"""Unit tests for file_mapper.tree_resolver module."""

import pytest
from unittest.mock import Mock

from src.file_mapper.tree_resolver import TreeResolver, join_path
from src.wiki_client.errors import APIAccessError
from src.wiki_client.models import ChildPage, Node, NodeKind
from tests.fixtures.fake_store import SPACE_ID, FakeWikiStore


@pytest.fixture
def store():
    """Root R with leaf D1 and container C holding leaf D2."""
    store = FakeWikiStore(root_id="wikcnR")
    store.add_document("wikcnR", "wikcnD1", "Getting Started: Intro")
    store.add_container("wikcnR", "wikcnC", "Guides")
    store.add_document("wikcnC", "wikcnD2", "Storage")
    return store


class TestResolveAll:
    """Test cases for TreeResolver.resolve_all."""

    def test_scenario_paths(self, store):
        """Every descendant is returned and paths follow sanitized names."""
        nodes, paths = TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

        assert {n.node_id for n in nodes} == {"wikcnD1", "wikcnC", "wikcnD2"}
        assert paths == {
            "wikcnR": ".",
            "wikcnD1": "Getting Started- Intro",
            "wikcnC": "Guides",
            "wikcnD2": "Guides/Storage",
        }

    def test_child_paths_extend_parent_paths(self, store):
        """Every non-root path starts with its parent's path."""
        nodes, paths = TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

        for node in nodes:
            parent_path = paths[node.parent_id]
            assert paths[node.node_id] == join_path(parent_path, paths[node.node_id].split("/")[-1])

    def test_each_node_listed_once(self, store):
        """Only nodes with children are listed, each exactly once."""
        TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

        assert store.calls['list_children'] == 2

    def test_follows_pagination(self):
        """All pages of a listing are collected."""
        store = FakeWikiStore(root_id="wikcnR", page_size=2)
        for i in range(5):
            store.add_document("wikcnR", f"wikcnDoc{i}", f"Doc {i}")

        nodes, paths = TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

        assert len(nodes) == 5
        assert store.calls['list_children'] == 3
        assert paths["wikcnDoc4"] == "Doc 4"

    def test_deterministic_for_fixed_remote(self, store):
        """Two resolutions of the same remote state agree."""
        first = TreeResolver(store, SPACE_ID).resolve_all("wikcnR")
        second = TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

        assert {n.node_id for n in first[0]} == {n.node_id for n in second[0]}
        assert first[1] == second[1]

    def test_listing_failure_aborts(self, store):
        """A failing listing call aborts the whole resolution."""
        store.fail('list_children', "wikcnC", APIAccessError("boom"))

        with pytest.raises(APIAccessError):
            TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

    def test_sibling_name_collision_does_not_crash(self):
        """Siblings that sanitize to the same name share one path."""
        store = FakeWikiStore(root_id="wikcnR")
        store.add_document("wikcnR", "wikcnX", "a/b")
        store.add_document("wikcnR", "wikcnY", "a:b")

        nodes, paths = TreeResolver(store, SPACE_ID).resolve_all("wikcnR")

        assert paths["wikcnX"] == paths["wikcnY"] == "a-b"

    def test_repeated_node_is_ignored(self):
        """A node returned twice keeps its first path."""
        node = Node("wikcnA", "wikcnR", "A", NodeKind.LEAF)
        api = Mock()
        api.list_children.return_value = ChildPage(items=[node, node])

        nodes, paths = TreeResolver(api, SPACE_ID).resolve_all("wikcnR")

        assert len(nodes) == 1
        assert paths == {"wikcnR": ".", "wikcnA": "A"}

    def test_repeated_cursor_stops_listing(self):
        """A cursor that never advances ends the listing."""
        api = Mock()
        api.list_children.return_value = ChildPage(
            items=[], next_page_token="same", has_more=True,
        )

        TreeResolver(api, SPACE_ID).resolve_all("wikcnR")

        assert api.list_children.call_count == 2


class TestJoinPath:
    """Test cases for join_path."""

    def test_root(self):
        """Children of the root have bare names."""
        assert join_path(".", "Guides") == "Guides"

    def test_nested(self):
        """Deeper paths use forward slashes."""
        assert join_path("Guides", "Storage") == "Guides/Storage"
