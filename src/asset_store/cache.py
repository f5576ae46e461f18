"""Durable token → URL cache for uploaded assets.

The cache is a small key-value store with get/put/flush. MemoryAssetCache
keeps entries in a dict; FileAssetCache mirrors them into a flat JSON file
that is rewritten on a single background writer thread, so a put never
blocks the task that triggered it.

Entries are never invalidated automatically: deleting the file is the only
way to force every asset to be resolved again.
"""

import json
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class AssetCache:
    """Interface of the upload cache."""

    def get(self, token: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, token: str, url: str) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        """Block until every accepted put is durable (no-op when not persistent)."""

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> "AssetCache":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class MemoryAssetCache(AssetCache):
    """Thread-safe in-memory cache."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = dict(entries or {})
        self._lock = threading.Lock()

    def get(self, token: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(token)

    def put(self, token: str, url: str) -> None:
        with self._lock:
            self._entries[token] = url

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FileAssetCache(MemoryAssetCache):
    """Cache persisted as a flat JSON object in a file.

    A missing file is an empty cache. A file that is not a JSON object is
    treated as empty (with a warning) and replaced on the next write.

    Example:
        >>> with FileAssetCache(".wiki-mirror/upload-cache.json") as cache:
        ...     cache.put("boxcnImg1", "https://img.example.com/boxcnImg1.png")
    """

    def __init__(self, path: str):
        super().__init__(self._load(path))
        self._path = path
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="asset-cache")
        self._pending: List[Future] = []
        self._pending_lock = threading.Lock()
        logger.debug(f"Loaded {len(self)} cached asset URLs from {path}")

    @property
    def path(self) -> str:
        return self._path

    @staticmethod
    def _load(path: str) -> Dict[str, str]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable upload cache {path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring upload cache {path}: expected a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def put(self, token: str, url: str) -> None:
        if self.get(token) == url:
            return
        super().put(token, url)
        with self._pending_lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(self._writer.submit(self._persist))

    def _persist(self) -> None:
        entries = self.snapshot()
        tmp_path = f"{self._path}.tmp"
        try:
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(entries, f, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.warning(f"Failed to persist upload cache {self._path}: {e}")

    def flush(self) -> None:
        with self._pending_lock:
            pending = list(self._pending)
            self._pending = []
        wait(pending)

    def close(self) -> None:
        self.flush()
        self._writer.shutdown(wait=True)
