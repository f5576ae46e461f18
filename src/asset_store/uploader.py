"""Batched asset uploads on a dedicated bounded worker pool.

The Uploader owns one ThreadPoolExecutor for the whole run. Its size bounds
the number of uploads in flight across every document, independently of the
document-level concurrency.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Optional

from src.wiki_client.errors import QuotaWaitCancelled
from src.wiki_client.rate_limiter import RateLimiter
from .errors import AssetError
from .models import DEFAULT_UPLOAD_CONCURRENCY
from .platforms import AssetStore

logger = logging.getLogger(__name__)


class Uploader:
    """Uploads local asset files to an AssetStore.

    Example:
        >>> with Uploader(store, concurrency=20) as uploader:
        ...     urls = uploader.batch_upload({"boxcnImg1": "docs/img/boxcnImg1.png"})
    """

    def __init__(
        self,
        store: AssetStore,
        concurrency: int = DEFAULT_UPLOAD_CONCURRENCY,
        rate_limiter: Optional[RateLimiter] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize the uploader.

        Args:
            store: Image host receiving the files
            concurrency: Maximum number of uploads in flight
            rate_limiter: Limiter every upload waits on (None disables limiting)
            cancel_event: Cancellation context for rate limiter waits
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._store = store
        self._limiter = rate_limiter
        self._cancel_event = cancel_event
        self._pool = ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="upload")

    @property
    def store(self) -> AssetStore:
        return self._store

    def upload_file(self, token: str, path: str) -> str:
        """Upload one local file and return its URL.

        Raises:
            AssetError: If the file cannot be read or the upload fails
            QuotaWaitCancelled: If cancelled while waiting on the rate limiter
        """
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise AssetError(token, 'upload', f"cannot read {path}: {e}") from e

        if self._limiter is not None:
            self._limiter.wait(cancel_event=self._cancel_event)
        return self._store.upload(data, os.path.basename(path))

    def batch_upload(self, jobs: Dict[str, str]) -> Dict[str, str]:
        """Upload several files concurrently.

        Args:
            jobs: Mapping of asset token to local file path

        Returns:
            Mapping of token to URL, for successful uploads only

        Raises:
            QuotaWaitCancelled: If the run was cancelled during the batch
        """
        results: Dict[str, str] = {}
        if not jobs:
            return results

        futures = {
            self._pool.submit(self.upload_file, token, path): token
            for token, path in jobs.items()
        }
        cancelled: Optional[QuotaWaitCancelled] = None
        for future in as_completed(futures):
            token = futures[future]
            try:
                results[token] = future.result()
            except AssetError as e:
                logger.warning(f"Upload to {self._store.name} failed: {e}")
            except QuotaWaitCancelled as e:
                cancelled = e
            except Exception as e:
                # One broken upload never costs the rest of the batch
                logger.warning(f"Upload of {token} to {self._store.name} failed unexpectedly: {e}")

        if cancelled is not None:
            raise cancelled
        logger.debug(f"Uploaded {len(results)}/{len(jobs)} assets to {self._store.name}")
        return results

    def close(self) -> None:
        self._pool.shutdown(wait=True)

    def __enter__(self) -> "Uploader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
