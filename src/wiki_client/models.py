"""Data models for the Feishu wiki client.

All models use dataclasses. Nodes are frozen: they are produced once during
tree resolution and shared read-only between sync tasks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class NodeKind(str, Enum):
    """Kind of a wiki node as far as mirroring is concerned."""
    CONTAINER = "container"
    LEAF = "leaf"
    OTHER = "other"


# Feishu object type of documents that the mirror converts to markdown
DOCX_TYPE = "docx"


@dataclass(frozen=True)
class Node:
    """One entry of the remote wiki tree.

    Attributes:
        node_id: Wiki node token (unique within the space)
        parent_id: Parent wiki node token (empty string for top-level nodes)
        display_name: Node title as shown in the wiki
        kind: Container, leaf document, or other object
        has_children: Whether the node has child nodes to list
        obj_token: Token of the underlying object (document id for docx)
        obj_type: Feishu object type (docx, sheet, bitable, file, ...)
        space_id: Wiki space the node belongs to
    """
    node_id: str
    parent_id: str
    display_name: str
    kind: NodeKind
    has_children: bool = False
    obj_token: str = ""
    obj_type: str = ""
    space_id: str = ""

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Node":
        """Build a Node from a wiki node item of the Open API."""
        obj_type = item.get('obj_type', '')
        has_children = bool(item.get('has_child', False))
        if obj_type == DOCX_TYPE:
            kind = NodeKind.LEAF
        elif has_children:
            kind = NodeKind.CONTAINER
        else:
            kind = NodeKind.OTHER
        return cls(
            node_id=item.get('node_token', ''),
            parent_id=item.get('parent_node_token', '') or '',
            display_name=item.get('title', ''),
            kind=kind,
            has_children=has_children,
            obj_token=item.get('obj_token', ''),
            obj_type=obj_type,
            space_id=item.get('space_id', ''),
        )


@dataclass
class ChildPage:
    """One page of a paginated child listing."""
    items: List[Node] = field(default_factory=list)
    next_page_token: str = ""
    has_more: bool = False


@dataclass
class DocumentMeta:
    """Lightweight document information used to name the output file."""
    document_id: str
    title: str
    revision_id: int = 0


@dataclass
class DocumentContent:
    """Structured body of a docx document.

    Attributes:
        document: Raw document object returned by the API
        blocks: All blocks of the document in API order
    """
    document: Dict[str, Any]
    blocks: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class DocumentTimes:
    """Creation and last-modification time of a document, when known."""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Asset:
    """Binary content of an embedded media file."""
    token: str
    data: bytes
    filename: str = ""
