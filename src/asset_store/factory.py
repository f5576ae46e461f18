"""Build the configured AssetStore."""

from .errors import AssetStoreConfigError
from .models import AssetStoreConfig
from .platforms import AssetStore, PicGoAssetStore
from .s3_platform import PLATFORM_NAMES, S3AssetStore


def create_asset_store(config: AssetStoreConfig) -> AssetStore:
    """Instantiate the image host named by config.platform.

    Raises:
        AssetStoreConfigError: If the platform is unknown
    """
    if config.platform == 'picgo':
        return PicGoAssetStore(command=config.picgo_command)
    if config.platform in PLATFORM_NAMES:
        return S3AssetStore(config)
    raise AssetStoreConfigError(config.platform, "supported platforms are picgo, oss, cos, s3")
