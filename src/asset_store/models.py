"""Data models for the asset store package."""

from dataclasses import dataclass

DEFAULT_UPLOAD_CONCURRENCY = 20


@dataclass
class AssetStoreConfig:
    """Configuration of the remote image host that receives uploaded assets.

    Attributes:
        platform: One of "picgo", "oss", "cos" or "s3"
        bucket: Bucket name (object storage platforms)
        region: Bucket region, e.g. "cn-hangzhou" or "ap-shanghai"
        access_key: Access key id (from IMGBED_SECRET_ID, never stored in YAML)
        secret_key: Secret key (from IMGBED_SECRET_KEY, never stored in YAML)
        host: Optional custom domain used to build public URLs
        prefix_key: Optional key prefix (folder) for uploaded objects
        endpoint_url: Optional explicit S3 endpoint (derived from platform/region)
        picgo_command: Executable name of the PicGo CLI
        concurrency: Number of parallel uploads
    """
    platform: str
    bucket: str = ""
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    host: str = ""
    prefix_key: str = ""
    endpoint_url: str = ""
    picgo_command: str = "picgo"
    concurrency: int = DEFAULT_UPLOAD_CONCURRENCY
