"""Tree resolver for discovering a wiki subtree and its local paths.

This module walks the wiki node hierarchy below a root node, following the
paginated child listing of the Open API, and derives the relative local
path of every discovered node once the whole tree is known.
"""

import logging
from typing import Dict, List, Tuple

from src.wiki_client.models import Node
from .filesafe_converter import FilesafeConverter

logger = logging.getLogger(__name__)

ROOT_PATH = "."


def join_path(parent_path: str, segment: str) -> str:
    """Join a relative path and one segment with "/" (the root is ".")."""
    if parent_path == ROOT_PATH:
        return segment
    return f"{parent_path}/{segment}"


class TreeResolver:
    """Discovers all descendants of a wiki node and computes their paths.

    Discovery is a depth-first worklist: every node flagged as having
    children is listed exactly once, page by page. Paths are only derived
    after discovery has finished, top-down from the root.

    Any listing failure propagates: tree discovery is all or nothing.

    Example:
        >>> resolver = TreeResolver(api, space_id="7034502641455497244")
        >>> nodes, paths = resolver.resolve_all("wikcnRoot")
        >>> paths["wikcnRoot"]
        '.'
    """

    def __init__(self, api, space_id: str):
        """Initialize the resolver.

        Args:
            api: Remote store exposing list_children(space_id, parent_id, page_token)
            space_id: Wiki space the root node belongs to
        """
        self._api = api
        self._space_id = space_id

    def resolve_all(self, root_id: str) -> Tuple[List[Node], Dict[str, str]]:
        """Discover every node below root_id.

        Args:
            root_id: Node token of the subtree root

        Returns:
            Tuple of (nodes, paths). nodes holds every descendant (the root
            itself excluded); paths maps each node id, root included, to
            its relative path.

        Raises:
            WikiError: If any listing call fails
            QuotaWaitCancelled: If cancelled while waiting on the rate limiter
        """
        nodes: List[Node] = []
        children: Dict[str, List[Node]] = {}
        visited = {root_id}
        worklist = [root_id]

        while worklist:
            parent_id = worklist.pop()
            children[parent_id] = []
            for child in self._list_all_children(parent_id):
                if child.node_id in visited:
                    logger.warning(f"Node {child.node_id} listed twice, ignoring repeat under {parent_id}")
                    continue
                visited.add(child.node_id)
                nodes.append(child)
                children[parent_id].append(child)
                if child.has_children:
                    worklist.append(child.node_id)

        logger.info(f"Discovered {len(nodes)} nodes below {root_id}")
        return nodes, self._build_paths(root_id, children)

    def _list_all_children(self, parent_id: str) -> List[Node]:
        """List every direct child of a node, following the page cursor."""
        items: List[Node] = []
        page_token = ""
        while True:
            page = self._api.list_children(self._space_id, parent_id, page_token)
            items.extend(page.items)
            if not page.has_more or not page.next_page_token:
                break
            if page.next_page_token == page_token:
                logger.warning(f"Listing of {parent_id} returned a repeated cursor, stopping")
                break
            page_token = page.next_page_token
        logger.debug(f"Node {parent_id} has {len(items)} children")
        return items

    @staticmethod
    def _build_paths(root_id: str, children: Dict[str, List[Node]]) -> Dict[str, str]:
        paths = {root_id: ROOT_PATH}
        pending = [root_id]
        while pending:
            parent_id = pending.pop()
            for child in children.get(parent_id, []):
                paths[child.node_id] = join_path(
                    paths[parent_id], FilesafeConverter.sanitize(child.display_name)
                )
                pending.append(child.node_id)
        return paths
