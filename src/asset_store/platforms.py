"""Image host platforms that receive uploaded assets.

AssetStore is the capability consumed by the asset pipeline. The PicGo
platform shells out to the `picgo` CLI, which supports every image host
PicGo has a plugin for; bucket-based hosts live in s3_platform.
"""

import logging
import os
import re
import subprocess
import tempfile
from typing import Optional

from .errors import AssetError

logger = logging.getLogger(__name__)

PICGO_TIMEOUT = 120
PICGO_RETRIES = 2

URL_PATTERN = re.compile(r"https?://[^\s\"'<>]+")


class AssetStore:
    """Remote image host.

    Subclasses implement upload and URL building; prefix lookup is optional.
    """

    name = "asset store"

    def upload(self, data: bytes, filename: str) -> str:
        """Upload one file and return its public URL.

        Raises:
            AssetError: If the upload fails
        """
        raise NotImplementedError

    def find_by_prefix(self, token: str) -> Optional[str]:
        """Return the URL of an already uploaded `<token>.*` object, if any."""
        return None

    def build_url(self, filename: str) -> str:
        """Deterministic URL of `filename` on this host (no network)."""
        raise NotImplementedError


class PicGoAssetStore(AssetStore):
    """Uploads through the PicGo CLI (`picgo u <file>`).

    PicGo prints progress logs followed by the resulting URL; the last URL
    in the combined output is the upload result.
    """

    name = "PicGo"

    def __init__(self, command: str = "picgo", timeout: int = PICGO_TIMEOUT, retries: int = PICGO_RETRIES):
        self._command = command
        self._timeout = timeout
        self._retries = retries

    def upload(self, data: bytes, filename: str) -> str:
        try:
            with tempfile.TemporaryDirectory(prefix="wiki-mirror-") as tmp_dir:
                path = os.path.join(tmp_dir, os.path.basename(filename))
                with open(path, 'wb') as f:
                    f.write(data)
                return self._run_with_retries(path)
        except OSError as e:
            raise AssetError(filename, 'upload', f"cannot stage file for picgo: {e}") from e

    def _run_with_retries(self, path: str) -> str:
        last_error: Optional[AssetError] = None
        for attempt in range(self._retries + 1):
            try:
                return self._run(path)
            except AssetError as e:
                last_error = e
                logger.debug(f"PicGo attempt {attempt + 1} failed for {os.path.basename(path)}: {e}")
        raise last_error

    def _run(self, path: str) -> str:
        filename = os.path.basename(path)
        try:
            result = subprocess.run(
                [self._command, 'u', path],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            raise AssetError(filename, 'upload', f"picgo timed out after {self._timeout}s")
        except FileNotFoundError:
            raise AssetError(filename, 'upload', f"'{self._command}' not found on PATH")

        output = f"{result.stdout}\n{result.stderr}".strip()
        if result.returncode != 0:
            raise AssetError(filename, 'upload', f"picgo exited with {result.returncode}: {output[-500:]}")

        urls = URL_PATTERN.findall(output)
        if not urls:
            raise AssetError(filename, 'upload', "no URL in picgo output, check `picgo config`")
        return urls[-1]

    def build_url(self, filename: str) -> str:
        raise AssetError(filename, 'build_url', "PicGo cannot predict upload URLs")
