"""Data models for file mapper.

This module defines the configuration and unit-of-work models used while
mirroring a wiki tree onto the local filesystem. All models use dataclasses
for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from datetime import timedelta, timezone
from typing import List, Optional

from src.asset_store.models import AssetStoreConfig


DEFAULT_CONCURRENCY = 20
DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_UTC_OFFSET_HOURS = 8

TAG_MODES = ("all", "last")


@dataclass
class SyncConfig:
    """Overall sync configuration, threaded explicitly through each component.

    Attributes:
        root: Wiki URL or node token of the subtree to mirror
        output_dir: Local directory that mirrors the wiki root
        image_dir: Name of the per-document image subdirectory
        space_id: Wiki space ID (looked up from the root node when empty)
        force: Rewrite every document even if unchanged
        skip_duplicate: Skip writing files whose content hash is unchanged
        skip_images: Leave image tokens untouched (no download or upload)
        dump_json: Also write the raw document payload as JSON beside the markdown
        tag_mode: "all" path segments or only the "last" one become tags
        category_level: Which path segment becomes the category (0 disables)
        default_category: Category used when none can be derived
        concurrency: Maximum number of documents processed at once
        utc_offset_hours: Offset used to render frontmatter timestamps
        cache_path: Location of the durable upload cache file
        asset_store: Image host configuration (None keeps images local)
        single_document: Mirror only the root document, not its subtree
    """
    root: str = ""
    output_dir: str = "./dist"
    image_dir: str = "img"
    space_id: str = ""
    force: bool = False
    skip_duplicate: bool = True
    skip_images: bool = False
    dump_json: bool = False
    tag_mode: str = "all"
    category_level: int = -1
    default_category: str = DEFAULT_CATEGORY
    concurrency: int = DEFAULT_CONCURRENCY
    utc_offset_hours: float = DEFAULT_UTC_OFFSET_HOURS
    cache_path: str = ".wiki-mirror/upload-cache.json"
    asset_store: Optional[AssetStoreConfig] = None
    single_document: bool = False

    @property
    def tzinfo(self) -> timezone:
        return timezone(timedelta(hours=self.utc_offset_hours))


@dataclass
class SyncTask:
    """Unit of work for one leaf document, consumed exactly once.

    Attributes:
        node_id: Wiki node token of the document
        doc_id: Document token used for content fetches
        title: Display name of the node (fallback file name)
        output_dir: Absolute directory the markdown file is written to
        rel_dir: Directory relative to the output root ("." at the root)
        tags: Tags derived from rel_dir
        category: Category derived from rel_dir (None if not derivable)
    """
    node_id: str
    doc_id: str
    title: str
    output_dir: str
    rel_dir: str
    tags: List[str] = field(default_factory=list)
    category: Optional[str] = None
