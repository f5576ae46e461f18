"""Asset store library: upload cache, image hosts, uploads and the per-document pipeline."""

from .cache import AssetCache, FileAssetCache, MemoryAssetCache
from .errors import AssetError, AssetStoreConfigError
from .factory import create_asset_store
from .models import AssetStoreConfig
from .pipeline import AssetPipeline, AssetResult
from .platforms import AssetStore, PicGoAssetStore
from .s3_platform import S3AssetStore
from .uploader import Uploader

__all__ = [
    'AssetCache',
    'FileAssetCache',
    'MemoryAssetCache',
    'AssetError',
    'AssetStoreConfigError',
    'create_asset_store',
    'AssetStoreConfig',
    'AssetPipeline',
    'AssetResult',
    'AssetStore',
    'PicGoAssetStore',
    'S3AssetStore',
    'Uploader',
]
