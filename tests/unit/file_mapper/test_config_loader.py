"""Unit tests for file_mapper.config_loader module."""

import pytest
from unittest.mock import patch

from src.file_mapper.config_loader import ConfigLoader
from src.file_mapper.errors import ConfigError, FilesystemError
from src.file_mapper.models import SyncConfig


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch('src.file_mapper.config_loader.load_dotenv'):
        yield


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoad:
    """Test cases for ConfigLoader.load."""

    def test_full_file(self, tmp_path):
        """Every field is parsed into SyncConfig."""
        path = write_config(tmp_path, """
root: "https://example.feishu.cn/wiki/wikcnRoot1234"
space_id: "7034502641455497244"
output_dir: "./site/source/_posts"
image_dir: "images"
skip_duplicate: false
dump_json: true
tag_mode: last
category_level: 1
default_category: "Misc"
concurrency: 4
utc_offset_hours: 0
""")

        config = ConfigLoader.load(path)

        assert config.root == "https://example.feishu.cn/wiki/wikcnRoot1234"
        assert config.space_id == "7034502641455497244"
        assert config.output_dir == "./site/source/_posts"
        assert config.image_dir == "images"
        assert config.skip_duplicate is False
        assert config.dump_json is True
        assert config.tag_mode == "last"
        assert config.category_level == 1
        assert config.default_category == "Misc"
        assert config.concurrency == 4
        assert config.utc_offset_hours == 0
        assert config.asset_store is None

    def test_empty_file_gives_defaults(self, tmp_path):
        """An empty file is valid and yields the defaults."""
        config = ConfigLoader.load(write_config(tmp_path, ""))

        assert config == SyncConfig()

    def test_missing_file(self, tmp_path):
        """A missing file is a filesystem error."""
        with pytest.raises(FilesystemError):
            ConfigLoader.load(str(tmp_path / "absent.yaml"))

    def test_invalid_yaml(self, tmp_path):
        """Broken YAML is a configuration error."""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigLoader.load(write_config(tmp_path, "root: [unclosed"))

    def test_not_a_mapping(self, tmp_path):
        """The top level must be a dictionary."""
        with pytest.raises(ConfigError, match="dictionary"):
            ConfigLoader.load(write_config(tmp_path, "- a\n- b\n"))

    def test_load_or_default_without_file(self, tmp_path):
        """No config file means defaults plus environment."""
        config = ConfigLoader.load_or_default(str(tmp_path / "absent.yaml"))
        assert config.output_dir == "./dist"


class TestFromDict:
    """Test cases for validation and environment handling."""

    def test_unknown_field(self):
        """Typos in field names are reported."""
        with pytest.raises(ConfigError, match="outptu_dir"):
            ConfigLoader.from_dict({'outptu_dir': 'x'})

    @pytest.mark.parametrize("field,value", [
        ('tag_mode', 'some'),
        ('concurrency', 0),
        ('output_dir', '  '),
        ('image_dir', 'a/b'),
        ('utc_offset_hours', 15),
    ])
    def test_invalid_values(self, field, value):
        """Out-of-range values are rejected with the field name."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.from_dict({field: value})
        assert exc_info.value.config_field == field

    def test_wrong_type(self):
        """Non-numeric numbers are a type error."""
        with pytest.raises(ConfigError, match="Invalid field type"):
            ConfigLoader.from_dict({'concurrency': 'many'})

    def test_space_id_from_environment(self, monkeypatch):
        """FEISHU_SPACE_ID fills in a missing space_id."""
        monkeypatch.setenv("FEISHU_SPACE_ID", "123456")
        assert ConfigLoader.from_dict({}).space_id == "123456"

    def test_file_space_id_wins(self, monkeypatch):
        """An explicit space_id beats the environment."""
        monkeypatch.setenv("FEISHU_SPACE_ID", "123456")
        assert ConfigLoader.from_dict({'space_id': '999'}).space_id == "999"


class TestAssetStore:
    """Test cases for the asset_store section."""

    def test_picgo_needs_no_credentials(self):
        """PicGo keeps its own configuration."""
        config = ConfigLoader.from_dict({'asset_store': {'platform': 'picgo'}})
        assert config.asset_store.platform == "picgo"
        assert config.asset_store.concurrency == 20

    def test_bucket_platform_with_env_keys(self, monkeypatch):
        """Keys come from the environment, never from YAML."""
        monkeypatch.setenv("IMGBED_SECRET_ID", "ak")
        monkeypatch.setenv("IMGBED_SECRET_KEY", "sk")

        config = ConfigLoader.from_dict({'asset_store': {
            'platform': 'OSS', 'bucket': 'imgs', 'region': 'cn-hangzhou',
            'prefix_key': '/wiki/', 'concurrency': 8,
        }})

        store = config.asset_store
        assert store.platform == "oss"
        assert (store.access_key, store.secret_key) == ("ak", "sk")
        assert store.prefix_key == "wiki"
        assert store.concurrency == 8

    def test_bucket_platform_without_keys(self):
        """Missing IMGBED_SECRET_ID/KEY is a configuration error."""
        with pytest.raises(ConfigError, match="IMGBED_SECRET_ID"):
            ConfigLoader.from_dict({'asset_store': {
                'platform': 'cos', 'bucket': 'imgs', 'region': 'ap-shanghai',
            }})

    def test_bucket_platform_without_bucket(self, monkeypatch):
        """Bucket and region are required for object storage."""
        monkeypatch.setenv("IMGBED_SECRET_ID", "ak")
        monkeypatch.setenv("IMGBED_SECRET_KEY", "sk")
        with pytest.raises(ConfigError, match="bucket and region"):
            ConfigLoader.from_dict({'asset_store': {'platform': 's3'}})

    def test_unknown_platform(self):
        """Only picgo, oss, cos and s3 are supported."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.from_dict({'asset_store': {'platform': 'smms'}})
        assert exc_info.value.config_field == "asset_store.platform"

    @pytest.mark.parametrize("value", [0, -3])
    def test_upload_concurrency_below_one(self, value):
        """Zero or negative upload concurrency is rejected, not replaced."""
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader.from_dict({'asset_store': {'platform': 'picgo', 'concurrency': value}})
        assert exc_info.value.config_field == "asset_store.concurrency"

    def test_upload_concurrency_null_uses_default(self):
        """An explicit null keeps the default of 20."""
        config = ConfigLoader.from_dict({'asset_store': {'platform': 'picgo', 'concurrency': None}})
        assert config.asset_store.concurrency == 20
