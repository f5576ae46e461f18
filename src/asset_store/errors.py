"""Typed exceptions for asset (image) handling.

Asset failures are always recovered inside the asset pipeline: the image is
left unresolved and the document continues.
"""

from typing import Optional

from src.wiki_client.errors import SyncError


class AssetError(SyncError):
    """Raised when downloading or uploading a single asset fails."""

    def __init__(self, token: str, operation: str, reason: Optional[str] = None):
        message = f"Asset {operation} failed for {token}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.token = token
        self.operation = operation
        self.reason = reason


class AssetStoreConfigError(SyncError):
    """Raised when the image host cannot be set up from its configuration."""

    def __init__(self, platform: str, reason: str):
        super().__init__(f"Cannot configure asset store '{platform}': {reason}")
        self.platform = platform
        self.reason = reason
