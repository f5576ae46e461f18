"""S3-compatible object storage image hosts (Aliyun OSS, Tencent COS, AWS S3).

All three speak the S3 protocol, so one boto3 client covers them; the
platform only decides the endpoint and the default public URL.
"""

import logging
import mimetypes
import posixpath
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .models import AssetStoreConfig
from .errors import AssetError
from .platforms import AssetStore

logger = logging.getLogger(__name__)

PLATFORM_NAMES = {
    'oss': "Aliyun OSS",
    'cos': "Tencent COS",
    's3': "Amazon S3",
}


def default_endpoint(platform: str, region: str) -> Optional[str]:
    """S3 API endpoint of a platform (None lets boto3 pick the AWS one)."""
    if platform == 'oss':
        return f"https://oss-{region}.aliyuncs.com"
    if platform == 'cos':
        return f"https://cos.{region}.myqcloud.com"
    return None


def default_host(platform: str, bucket: str, region: str) -> str:
    """Public host of a bucket when no custom domain is configured."""
    if platform == 'oss':
        return f"{bucket}.oss-{region}.aliyuncs.com"
    if platform == 'cos':
        return f"{bucket}.cos.{region}.myqcloud.com"
    return f"{bucket}.s3.{region}.amazonaws.com"


class S3AssetStore(AssetStore):
    """Uploads assets to a bucket with boto3 put_object.

    Example:
        >>> store = S3AssetStore(AssetStoreConfig(platform="oss", bucket="imgs",
        ...     region="cn-hangzhou", access_key="...", secret_key="..."))
        >>> store.build_url("boxcnImg1.png")
        'https://imgs.oss-cn-hangzhou.aliyuncs.com/boxcnImg1.png'
    """

    def __init__(self, config: AssetStoreConfig, client=None):
        """Initialize the store.

        Args:
            config: Image host configuration
            client: Optional boto3 S3 client (injectable for tests)
        """
        self._config = config
        self.name = PLATFORM_NAMES.get(config.platform, config.platform)
        host = config.host or default_host(config.platform, config.bucket, config.region)
        if '://' in host:
            host = host.split('://', 1)[1]
        self._host = host.rstrip('/')
        self._client = client or boto3.client(
            's3',
            endpoint_url=config.endpoint_url or default_endpoint(config.platform, config.region),
            region_name=config.region or None,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            config=BotoConfig(
                connect_timeout=10,
                read_timeout=60,
                retries={'max_attempts': 3},
                s3={'addressing_style': 'virtual'},
            ),
        )

    def _object_key(self, filename: str) -> str:
        if self._config.prefix_key:
            return posixpath.join(self._config.prefix_key, filename)
        return filename

    def _object_url(self, key: str) -> str:
        return f"https://{self._host}/{key}"

    def upload(self, data: bytes, filename: str) -> str:
        key = self._object_key(filename)
        content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
        try:
            self._client.put_object(
                Bucket=self._config.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise AssetError(filename, 'upload', f"{self.name}: {e}") from e
        logger.debug(f"Uploaded {key} to {self.name}")
        return self._object_url(key)

    def find_by_prefix(self, token: str) -> Optional[str]:
        prefix = self._object_key(token)
        try:
            response = self._client.list_objects_v2(
                Bucket=self._config.bucket,
                Prefix=prefix,
                MaxKeys=10,
            )
        except (BotoCoreError, ClientError) as e:
            logger.debug(f"Prefix lookup for {token} on {self.name} failed: {e}")
            return None

        for item in response.get('Contents') or []:
            name = posixpath.basename(item['Key'])
            if name.startswith(token):
                return self._object_url(item['Key'])
        return None

    def build_url(self, filename: str) -> str:
        return self._object_url(self._object_key(filename))
