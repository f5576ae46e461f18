"""YAML configuration loading and validation.

This module loads the mirror configuration from `.wiki-mirror/config.yaml`.
Secrets never live in the YAML file: the image host keys are read from the
environment (or a .env file) after the file has been parsed.
"""

import os
from typing import Any, Dict, Optional
import yaml
from dotenv import load_dotenv

from .errors import ConfigError, FilesystemError
from .models import AssetStoreConfig, SyncConfig, TAG_MODES

DEFAULT_CONFIG_PATH = ".wiki-mirror/config.yaml"

ASSET_PLATFORMS = ("picgo", "oss", "cos", "s3")

# Platforms backed by an object storage bucket
BUCKET_PLATFORMS = ("oss", "cos", "s3")


class ConfigLoader:
    """Handles configuration file loading and validation.

    Configuration file structure (every field optional):
        root: "https://example.feishu.cn/wiki/wikcnRoot"
        space_id: "7034502641455497244"
        output_dir: "./dist"
        image_dir: "img"
        skip_duplicate: true
        skip_images: false
        dump_json: false
        tag_mode: "all"
        category_level: -1
        default_category: "Uncategorized"
        concurrency: 20
        utc_offset_hours: 8
        cache_path: ".wiki-mirror/upload-cache.json"
        asset_store:
          platform: "oss"
          bucket: "my-images"
          region: "cn-hangzhou"
          host: "img.example.com"
          prefix_key: "wiki"

    Environment variables:
        FEISHU_SPACE_ID: Fallback for space_id
        IMGBED_SECRET_ID / IMGBED_SECRET_KEY: Image host credentials
    """

    DEFAULTS = {
        'root': '',
        'space_id': '',
        'output_dir': './dist',
        'image_dir': 'img',
        'skip_duplicate': True,
        'skip_images': False,
        'dump_json': False,
        'tag_mode': 'all',
        'category_level': -1,
        'default_category': 'Uncategorized',
        'concurrency': 20,
        'utc_offset_hours': 8,
        'cache_path': '.wiki-mirror/upload-cache.json',
    }

    @classmethod
    def load(cls, config_path: str) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig object with parsed configuration

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(
                config_path,
                'read',
                'Configuration file not found'
            )
        except PermissionError:
            raise FilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'read',
                str(e)
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls.from_dict(config_dict)

    @classmethod
    def load_or_default(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Load the configuration file, or defaults plus environment if it is absent."""
        if not os.path.exists(config_path):
            return cls.from_dict({})
        return cls.load(config_path)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        """Validate a raw configuration dictionary and apply the environment.

        Raises:
            ConfigError: If configuration is invalid
        """
        load_dotenv()

        unknown = set(config_dict) - set(cls.DEFAULTS) - {'asset_store'}
        if unknown:
            raise ConfigError(f"Unknown fields: {', '.join(sorted(unknown))}")

        values = {**cls.DEFAULTS, **{k: v for k, v in config_dict.items() if v is not None}}

        try:
            config = SyncConfig(
                root=str(values['root']),
                space_id=str(values['space_id'] or os.getenv('FEISHU_SPACE_ID', '')),
                output_dir=str(values['output_dir']),
                image_dir=str(values['image_dir']),
                skip_duplicate=bool(values['skip_duplicate']),
                skip_images=bool(values['skip_images']),
                dump_json=bool(values['dump_json']),
                tag_mode=str(values['tag_mode']),
                category_level=int(values['category_level']),
                default_category=str(values['default_category']),
                concurrency=int(values['concurrency']),
                utc_offset_hours=float(values['utc_offset_hours']),
                cache_path=str(values['cache_path']),
            )
        except (ValueError, TypeError) as e:
            raise ConfigError(
                f"Invalid field type: {str(e)}"
            )

        cls.validate(config)
        config.asset_store = cls._parse_asset_store(config_dict.get('asset_store'))
        return config

    @classmethod
    def validate(cls, config: SyncConfig) -> None:
        """Check value ranges of a SyncConfig (also used after CLI overrides).

        Raises:
            ConfigError: If a field holds an invalid value
        """
        if config.tag_mode not in TAG_MODES:
            raise ConfigError(
                f"must be one of {', '.join(TAG_MODES)}, got '{config.tag_mode}'",
                'tag_mode'
            )
        if config.concurrency < 1:
            raise ConfigError(
                f"must be at least 1, got {config.concurrency}",
                'concurrency'
            )
        if not config.output_dir.strip():
            raise ConfigError("cannot be empty", 'output_dir')
        if not config.image_dir.strip() or '/' in config.image_dir or '\\' in config.image_dir:
            raise ConfigError("must be a single directory name", 'image_dir')
        if not -14 <= config.utc_offset_hours <= 14:
            raise ConfigError(
                f"must be between -14 and 14, got {config.utc_offset_hours}",
                'utc_offset_hours'
            )

    @classmethod
    def _parse_asset_store(cls, raw: Optional[Any]) -> Optional[AssetStoreConfig]:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ConfigError("must be a dictionary", 'asset_store')

        platform = str(raw.get('platform', '')).lower()
        if platform not in ASSET_PLATFORMS:
            raise ConfigError(
                f"must be one of {', '.join(ASSET_PLATFORMS)}, got '{platform}'",
                'asset_store.platform'
            )

        concurrency = raw.get('concurrency')
        try:
            store = AssetStoreConfig(
                platform=platform,
                bucket=str(raw.get('bucket') or ''),
                region=str(raw.get('region') or ''),
                access_key=os.getenv('IMGBED_SECRET_ID', ''),
                secret_key=os.getenv('IMGBED_SECRET_KEY', ''),
                host=str(raw.get('host') or ''),
                prefix_key=str(raw.get('prefix_key') or '').strip('/'),
                endpoint_url=str(raw.get('endpoint_url') or ''),
                picgo_command=str(raw.get('picgo_command') or 'picgo'),
                concurrency=int(20 if concurrency is None else concurrency),
            )
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid field type: {str(e)}", 'asset_store')

        if store.concurrency < 1:
            raise ConfigError(
                f"must be at least 1, got {store.concurrency}",
                'asset_store.concurrency'
            )

        if platform in BUCKET_PLATFORMS:
            if not store.bucket or not store.region:
                raise ConfigError(
                    "bucket and region are required for object storage platforms",
                    'asset_store'
                )
            if not store.access_key or not store.secret_key:
                raise ConfigError(
                    "IMGBED_SECRET_ID and IMGBED_SECRET_KEY must be set in the environment",
                    'asset_store'
                )

        return store
