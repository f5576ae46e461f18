"""Command-line interface for the Feishu wiki mirror.

This package provides the `wiki-mirror` CLI tool that resolves a wiki
subtree, mirrors every document into local Markdown with frontmatter, and
reports what changed, with progress indication and exit codes. It can also
mirror a single document and scaffold a starter configuration.
"""

from .init_command import InitCommand
from .sync_command import SyncCommand
from .models import ExitCode
from .errors import (
    CLIError,
    ConfigNotFoundError,
    InitError,
    MissingRootError,
    NotADocumentError,
)

__all__ = [
    'InitCommand',
    'SyncCommand',
    'ExitCode',
    'CLIError',
    'ConfigNotFoundError',
    'InitError',
    'MissingRootError',
    'NotADocumentError',
]
