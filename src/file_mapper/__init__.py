"""File mapper library for mirroring a Feishu wiki to local markdown.

This package resolves the wiki tree into local paths, derives frontmatter
metadata from those paths, and drives the concurrent synchronization of
every document.
"""

from .models import SyncConfig, SyncTask
from .errors import (
    FileMapperError,
    FilesystemError,
    ConfigError,
    FrontmatterError,
)
from .config_loader import ConfigLoader
from .document_syncer import DocumentSyncer
from .filesafe_converter import FilesafeConverter
from .frontmatter_handler import FrontmatterHandler
from .metadata_deriver import MetadataDeriver
from .stats import DocLog, DocOutcome, StatsCollector, StatsSnapshot
from .sync_scheduler import SyncScheduler
from .tree_resolver import TreeResolver

__all__ = [
    'SyncConfig',
    'SyncTask',
    'FileMapperError',
    'FilesystemError',
    'ConfigError',
    'FrontmatterError',
    'ConfigLoader',
    'DocumentSyncer',
    'FilesafeConverter',
    'FrontmatterHandler',
    'MetadataDeriver',
    'DocLog',
    'DocOutcome',
    'StatsCollector',
    'StatsSnapshot',
    'SyncScheduler',
    'TreeResolver',
]
