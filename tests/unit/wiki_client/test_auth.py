"""Unit tests for wiki_client.auth module."""

import pytest
from unittest.mock import patch

from src.wiki_client.auth import Authenticator, DEFAULT_BASE_URL
from src.wiki_client.errors import InvalidCredentialsError


@pytest.fixture
def authenticator():
    with patch('src.wiki_client.auth.load_dotenv'):
        yield Authenticator()


class TestAuthenticator:
    """Test cases for credential loading."""

    def test_credentials_from_environment(self, authenticator, monkeypatch):
        """App id and secret are read from the environment."""
        monkeypatch.setenv("FEISHU_APP_ID", "cli_a1b2c3")
        monkeypatch.setenv("FEISHU_APP_SECRET", "s3cr3t")

        creds = authenticator.get_credentials()

        assert creds.app_id == "cli_a1b2c3"
        assert creds.app_secret == "s3cr3t"
        assert creds.base_url == DEFAULT_BASE_URL

    def test_custom_base_url_is_normalized(self, authenticator, monkeypatch):
        """FEISHU_BASE_URL overrides the host; a trailing slash is dropped."""
        monkeypatch.setenv("FEISHU_APP_ID", "cli_a1b2c3")
        monkeypatch.setenv("FEISHU_APP_SECRET", "s3cr3t")
        monkeypatch.setenv("FEISHU_BASE_URL", "https://open.larksuite.com/")

        assert authenticator.get_credentials().base_url == "https://open.larksuite.com"

    def test_missing_secret_raises(self, authenticator, monkeypatch):
        """A missing secret is reported with the app id."""
        monkeypatch.setenv("FEISHU_APP_ID", "cli_a1b2c3")

        with pytest.raises(InvalidCredentialsError) as exc_info:
            authenticator.get_credentials()
        assert exc_info.value.app_id == "cli_a1b2c3"

    def test_missing_everything_raises(self, authenticator):
        """Without credentials the app id is reported as unknown."""
        with pytest.raises(InvalidCredentialsError) as exc_info:
            authenticator.get_credentials()
        assert exc_info.value.app_id == "unknown"
