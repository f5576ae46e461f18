"""Init command for scaffolding a mirror configuration.

This module provides the InitCommand class that writes a commented
`.wiki-mirror/config.yaml` with every setting at its default, a `.env`
template for the Feishu credentials, and creates the output directory.
No remote call is made: the wiki URL is only checked for its form.
"""

import logging
import os
from typing import Optional

import yaml

from src.file_mapper.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from src.file_mapper.errors import ConfigError
from src.wiki_client.errors import ValidationError
from src.wiki_client.url_parser import parse_document_url
from .errors import InitError

logger = logging.getLogger(__name__)

DEFAULT_ENV_PATH = ".env"

CONFIG_HEADER = """\
# wiki-mirror configuration
# Every field is optional; command-line flags override these values.
# Credentials are read from the environment or .env, never from this file.

"""

ASSET_STORE_EXAMPLE = """
# Publish images to an image host instead of keeping them beside the documents.
# Bucket keys come from IMGBED_SECRET_ID and IMGBED_SECRET_KEY.
# asset_store:
#   platform: oss          # picgo, oss, cos or s3
#   bucket: my-images
#   region: cn-hangzhou
#   host: img.example.com
#   prefix_key: wiki
#   concurrency: 20
"""

ENV_TEMPLATE = """\
# Feishu app credentials, from https://open.feishu.cn/app
FEISHU_APP_ID=
FEISHU_APP_SECRET=

# Wiki space ID (looked up from the root node when empty)
# FEISHU_SPACE_ID=

# Open API host for Lark or private deployments
# FEISHU_BASE_URL=https://open.feishu.cn

# Image host keys, used when asset_store names a bucket platform
# IMGBED_SECRET_ID=
# IMGBED_SECRET_KEY=
"""


class InitCommand:
    """Creates the configuration files for a new mirror.

    The workflow:
        1. Refuse to overwrite an existing config file (unless forced)
        2. Check the wiki URL form, if one is given
        3. Create the config and output directories
        4. Write the config file, and a .env template if none exists

    Example:
        >>> init_cmd = InitCommand()
        >>> init_cmd.run(root="https://example.feishu.cn/wiki/wikcnRoot1234", output_dir="./docs")
        >>> init_cmd.config_path
        '.wiki-mirror/config.yaml'
    """

    def __init__(self, config_path: Optional[str] = None, env_path: Optional[str] = None):
        """Initialize init command.

        Args:
            config_path: Path of the config file to write (default .wiki-mirror/config.yaml)
            env_path: Path of the credentials template (default .env)
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.env_path = env_path or DEFAULT_ENV_PATH
        self.env_created = False

    def _check_config_exists(self, force: bool) -> None:
        """Check if config file already exists.

        Raises:
            InitError: If config file already exists and force is not set
        """
        if os.path.exists(self.config_path) and not force:
            raise InitError(
                f"Configuration file already exists at {self.config_path}\n"
                "Use --force to overwrite it."
            )

    def _create_directories(self, output_dir: str) -> None:
        """Create the config directory and the output directory.

        Raises:
            InitError: If directory creation fails
        """
        config_dir = os.path.dirname(self.config_path)
        for directory in (config_dir, output_dir):
            if not directory:
                continue
            try:
                os.makedirs(directory, exist_ok=True)
                logger.info(f"Created directory: {directory}")
            except OSError as e:
                raise InitError(f"Failed to create directory {directory}: {str(e)}")

    def _write(self, path: str, text: str) -> None:
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(text)
        except OSError as e:
            raise InitError(f"Failed to write {path}: {str(e)}")

    def run(self, root: Optional[str] = None, output_dir: Optional[str] = None, force: bool = False) -> None:
        """Run the init command to create the mirror configuration.

        Args:
            root: Wiki URL or node token to record as the mirror root
            output_dir: Output directory to record and create
            force: Overwrite an existing config file

        Raises:
            InitError: If initialization fails at any step
        """
        self._check_config_exists(force)

        if root:
            try:
                parse_document_url(root)
            except ValidationError as e:
                raise InitError(str(e))

        values = dict(ConfigLoader.DEFAULTS)
        values['root'] = root or ''
        if output_dir:
            values['output_dir'] = os.path.normpath(output_dir)

        try:
            ConfigLoader.from_dict(values)
        except ConfigError as e:
            raise InitError(str(e))

        self._create_directories(values['output_dir'])

        document = yaml.safe_dump(values, sort_keys=False, allow_unicode=True, default_flow_style=False)
        self._write(self.config_path, CONFIG_HEADER + document + ASSET_STORE_EXAMPLE)
        logger.info(f"Configuration saved to {self.config_path}")

        # Credentials are never overwritten, even with force
        if not os.path.exists(self.env_path):
            self._write(self.env_path, ENV_TEMPLATE)
            self.env_created = True
            logger.info(f"Credentials template saved to {self.env_path}")
