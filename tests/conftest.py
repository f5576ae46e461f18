"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

# urllib3 and botocore log connection details at DEBUG; keep test output readable
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def _isolate_credentials(monkeypatch):
    """Keep real Feishu and image host credentials out of every test."""
    for name in (
        "FEISHU_APP_ID",
        "FEISHU_APP_SECRET",
        "FEISHU_BASE_URL",
        "FEISHU_SPACE_ID",
        "IMGBED_SECRET_ID",
        "IMGBED_SECRET_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
