"""Unit tests for asset_store.uploader module."""

import threading
import time

import pytest
from unittest.mock import Mock

from src.asset_store.errors import AssetError
from src.asset_store.uploader import Uploader
from src.wiki_client.errors import QuotaWaitCancelled
from src.wiki_client.rate_limiter import RateLimiter
from tests.fixtures.fake_store import FakeAssetStore


@pytest.fixture
def files(tmp_path):
    paths = {}
    for token in ("boxcnA", "boxcnB", "boxcnC"):
        path = tmp_path / f"{token}.png"
        path.write_bytes(f"data-{token}".encode())
        paths[token] = str(path)
    return paths


class TestBatchUpload:
    """Test cases for Uploader.batch_upload."""

    def test_uploads_every_file(self, files):
        """Each job returns the URL given by the store."""
        store = FakeAssetStore()
        with Uploader(store, concurrency=2) as uploader:
            urls = uploader.batch_upload(files)

        assert urls == {token: f"https://img.example.com/{token}.png" for token in files}
        assert store.objects["boxcnA.png"] == b"data-boxcnA"

    def test_failures_are_omitted(self, files, caplog):
        """A failed upload is logged and missing from the result."""
        store = FakeAssetStore()
        store.failing.add("boxcnB")
        with Uploader(store) as uploader:
            urls = uploader.batch_upload(files)

        assert set(urls) == {"boxcnA", "boxcnC"}
        assert "Upload to fake host failed" in caplog.text

    def test_unexpected_store_error_is_contained(self, files, caplog):
        """A non-AssetError from the store fails that file only."""
        store = FakeAssetStore()
        real_upload = store.upload

        def upload(data, filename):
            if filename.startswith("boxcnB"):
                raise RuntimeError("disk on fire")
            return real_upload(data, filename)

        store.upload = upload
        with Uploader(store) as uploader:
            urls = uploader.batch_upload(files)

        assert set(urls) == {"boxcnA", "boxcnC"}
        assert "boxcnB" in caplog.text
        assert "disk on fire" in caplog.text

    def test_unreadable_file_is_a_failure(self, tmp_path):
        """A missing local file is an AssetError for that token only."""
        store = FakeAssetStore()
        with Uploader(store) as uploader:
            with pytest.raises(AssetError):
                uploader.upload_file("boxcnX", str(tmp_path / "missing.png"))
            assert uploader.batch_upload({"boxcnX": str(tmp_path / "missing.png")}) == {}

    def test_empty_batch(self):
        """An empty batch returns immediately."""
        with Uploader(FakeAssetStore()) as uploader:
            assert uploader.batch_upload({}) == {}

    def test_pool_bounds_concurrent_uploads(self, files):
        """No more than `concurrency` uploads run at the same time."""
        active = []
        peak = []
        lock = threading.Lock()

        def slow_upload(data, filename):
            with lock:
                active.append(filename)
                peak.append(len(active))
            time.sleep(0.05)
            with lock:
                active.remove(filename)
            return f"https://img/{filename}"

        store = Mock(name="store")
        store.name = "slow host"
        store.upload.side_effect = slow_upload
        with Uploader(store, concurrency=1) as uploader:
            uploader.batch_upload(files)

        assert max(peak) == 1

    def test_waits_on_rate_limiter(self, files):
        """Every upload waits on the shared limiter."""
        limiter = Mock(spec=RateLimiter)
        with Uploader(FakeAssetStore(), rate_limiter=limiter) as uploader:
            uploader.batch_upload(files)

        assert limiter.wait.call_count == 3

    def test_cancellation_is_reraised(self, files):
        """A cancelled rate limiter wait aborts the batch with QuotaWaitCancelled."""
        cancel = threading.Event()
        cancel.set()
        with Uploader(FakeAssetStore(), rate_limiter=RateLimiter(), cancel_event=cancel) as uploader:
            with pytest.raises(QuotaWaitCancelled):
                uploader.batch_upload(files)

    def test_invalid_concurrency(self):
        """A pool needs at least one worker."""
        with pytest.raises(ValueError):
            Uploader(FakeAssetStore(), concurrency=0)
