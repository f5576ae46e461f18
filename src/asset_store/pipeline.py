"""Per-document image resolution: dedup, download, upload, link rewriting.

For each unique image token of a document the pipeline tries, in order:
1. The durable upload cache (no network at all)
2. A prefix lookup on the image host (an earlier run uploaded it)
3. A local file `<token>.*` already in the document's image directory
4. A rate-limited download from the wiki

With an image host configured, every token not served by 1 or 2 is uploaded
in one batch; each success lands in the cache and its local copy is removed.
Failures of a single image are logged and leave that token unresolved.
"""

import logging
import os
import re
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from src.wiki_client.errors import WikiError
from .cache import AssetCache
from .errors import AssetError
from .uploader import Uploader

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".png"


@dataclass
class AssetResult:
    """Outcome of the pipeline for one document.

    Attributes:
        body: Markdown body with every resolved token replaced by its link
        links: Token → final link for resolved tokens
        total: Number of unique tokens referenced
        new: Tokens that needed a download or an upload
        hits: Tokens resolved from a cache layer without network transfer
        failed: Tokens left unresolved
    """
    body: str
    links: Dict[str, str] = field(default_factory=dict)
    total: int = 0
    new: int = 0
    hits: int = 0
    failed: int = 0


class AssetPipeline:
    """Resolves the images of one document at a time.

    One pipeline instance is shared by every document task of a run; it
    keeps no per-document state between calls.

    Example:
        >>> pipeline = AssetPipeline(api, FileAssetCache(".wiki-mirror/upload-cache.json"))
        >>> result = pipeline.process(["boxcnA", "boxcnA"], "![](boxcnA)", "dist/Guides")
        >>> result.body
        '![](./img/boxcnA.png)'
    """

    def __init__(
        self,
        api,
        cache: AssetCache,
        uploader: Optional[Uploader] = None,
        image_dir: str = "img",
    ):
        """Initialize the pipeline.

        Args:
            api: Remote store exposing fetch_asset(token)
            cache: Durable token → URL cache
            uploader: Uploader for the image host (None keeps images local)
            image_dir: Name of the per-document image subdirectory
        """
        self._api = api
        self._cache = cache
        self._uploader = uploader
        self._image_dir = image_dir

    def process(self, tokens: List[str], body: str, output_dir: str) -> AssetResult:
        """Resolve every image token of a document and rewrite its body.

        Args:
            tokens: Image tokens in order of appearance (may repeat)
            body: Markdown body containing the tokens
            output_dir: Directory of the document file

        Returns:
            AssetResult with the rewritten body and counts

        Raises:
            QuotaWaitCancelled: If the run is cancelled during a rate limit wait
        """
        unique = list(dict.fromkeys(token for token in tokens if token))
        result = AssetResult(body=body, total=len(unique))
        image_dir = os.path.join(output_dir, self._image_dir)
        transferred: Set[str] = set()
        to_upload: Dict[str, str] = {}

        for token in unique:
            url = self._cached_url(token)
            if url:
                result.links[token] = url
                continue

            try:
                path = self._find_local(image_dir, token)
                if path is None:
                    path = self._download(token, image_dir)
                    transferred.add(token)
            except AssetError as e:
                logger.warning(str(e))
                continue

            if self._uploader is not None:
                to_upload[token] = path
            else:
                result.links[token] = f"./{self._image_dir}/{os.path.basename(path)}"

        if to_upload:
            uploaded = self._uploader.batch_upload(to_upload)
            for token, url in uploaded.items():
                # Cache before removal: a sibling that loses the file reads it back
                self._cache.put(token, url)
                result.links[token] = url
                transferred.add(token)
                self._remove_file(to_upload[token])
            for token in to_upload:
                if token not in uploaded:
                    url = self._cache.get(token)
                    if url:
                        logger.debug(f"Asset {token} was uploaded by a sibling document")
                        result.links[token] = url
            self._remove_empty_dir(image_dir)

        result.new = len(transferred & set(result.links))
        result.hits = len(result.links) - result.new
        result.failed = result.total - len(result.links)
        result.body = self.rewrite(body, result.links)
        return result

    def _cached_url(self, token: str) -> Optional[str]:
        url = self._cache.get(token)
        if url or self._uploader is None:
            return url
        url = self._uploader.store.find_by_prefix(token)
        if url:
            logger.debug(f"Asset {token} already on {self._uploader.store.name}")
            self._cache.put(token, url)
        return url

    @staticmethod
    def _find_local(image_dir: str, token: str) -> Optional[str]:
        """Path of an existing `<token>` or `<token>.<ext>` file, if any."""
        try:
            names = sorted(os.listdir(image_dir))
        except FileNotFoundError:
            return None
        except OSError as e:
            raise AssetError(token, 'lookup', str(e)) from e
        for name in names:
            if os.path.splitext(name)[0] == token:
                return os.path.join(image_dir, name)
        return None

    def _download(self, token: str, image_dir: str) -> str:
        try:
            asset = self._api.fetch_asset(token)
        except WikiError as e:
            raise AssetError(token, 'download', str(e)) from e

        extension = os.path.splitext(asset.filename)[1] or DEFAULT_EXTENSION
        path = os.path.join(image_dir, f"{token}{extension}")
        # Siblings share image_dir and must never see a partial <token> file
        part_path = os.path.join(image_dir, f"{token}.{uuid.uuid4().hex[:12]}.part")
        for attempt in range(2):
            try:
                os.makedirs(image_dir, exist_ok=True)
                with open(part_path, 'xb') as f:
                    f.write(asset.data)
                os.replace(part_path, path)
                break
            except FileNotFoundError as e:
                # A sibling removed the empty directory between makedirs and open
                if attempt == 1:
                    raise AssetError(token, 'download', f"cannot write {path}: {e}") from e
            except OSError as e:
                if os.path.exists(part_path):
                    os.remove(part_path)
                raise AssetError(token, 'download', f"cannot write {path}: {e}") from e
        logger.debug(f"Downloaded asset {token} ({len(asset.data)} bytes)")
        return path

    @staticmethod
    def _remove_file(path: str) -> None:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove uploaded file {path}: {e}")

    @staticmethod
    def _remove_empty_dir(image_dir: str) -> None:
        try:
            if os.path.isdir(image_dir) and not os.listdir(image_dir):
                os.rmdir(image_dir)
        except OSError as e:
            logger.debug(f"Could not remove image directory {image_dir}: {e}")

    @staticmethod
    def rewrite(body: str, links: Dict[str, str]) -> str:
        """Replace every occurrence of each token with its link.

        Longer tokens are matched first so that a token which is a prefix of
        another one never clobbers it.
        """
        if not links:
            return body
        pattern = re.compile(
            "|".join(re.escape(token) for token in sorted(links, key=len, reverse=True))
        )
        return pattern.sub(lambda match: links[match.group(0)], body)
