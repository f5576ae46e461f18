"""Authentication module for loading Feishu app credentials.

This module loads Feishu Open Platform app credentials from environment
variables using python-dotenv. It validates that all required credentials
are present and raises InvalidCredentialsError if any are missing.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_BASE_URL = "https://open.feishu.cn"


class Credentials(NamedTuple):
    """Feishu app credentials."""
    base_url: str
    app_id: str
    app_secret: str


class Authenticator:
    """Loads and validates Feishu credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    logged.

    Required environment variables:
        FEISHU_APP_ID: App ID of a Feishu custom app
        FEISHU_APP_SECRET: App secret of the same app

    Optional environment variables:
        FEISHU_BASE_URL: Open API host (default https://open.feishu.cn,
            use https://open.larksuite.com for Lark)

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.base_url}")
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get Feishu credentials from environment variables.

        Returns:
            Credentials: A named tuple containing base_url, app_id and app_secret

        Raises:
            InvalidCredentialsError: If any required credential is missing
        """
        base_url = os.getenv('FEISHU_BASE_URL') or DEFAULT_BASE_URL
        app_id = os.getenv('FEISHU_APP_ID')
        app_secret = os.getenv('FEISHU_APP_SECRET')

        if not app_id or not app_secret:
            raise InvalidCredentialsError(
                app_id=app_id if app_id else "unknown",
                endpoint=base_url
            )

        return Credentials(base_url=base_url.rstrip('/'), app_id=app_id, app_secret=app_secret)
