"""Synchronization of one wiki document to one markdown file.

A document is fetched, converted, has its images resolved, gets a
frontmatter block, and is written only if the rendered output differs from
the file already on disk (MD5 comparison), which makes re-runs convergent.
"""

import hashlib
import json
import logging
import os
import uuid
from typing import Optional

from src.asset_store.pipeline import AssetPipeline
from src.content_converter.markdown_converter import MarkdownConverter
from src.wiki_client.errors import WikiError
from src.wiki_client.models import DocumentTimes
from .errors import FilesystemError
from .filesafe_converter import FilesafeConverter
from .frontmatter_handler import FrontmatterHandler
from .models import SyncConfig, SyncTask
from .stats import DocLog, DocOutcome, StatsCollector
from .tree_resolver import join_path

logger = logging.getLogger(__name__)


def content_hash(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


class DocumentSyncer:
    """Processes one SyncTask at a time; safe to share across worker threads.

    Example:
        >>> syncer = DocumentSyncer(api, SyncConfig(output_dir="dist"), StatsCollector(), pipeline)
        >>> syncer.sync(task)
        <DocOutcome.NEW: 'new'>
    """

    def __init__(
        self,
        api,
        config: SyncConfig,
        stats: StatsCollector,
        pipeline: Optional[AssetPipeline] = None,
        converter: Optional[MarkdownConverter] = None,
    ):
        """Initialize the syncer.

        Args:
            api: Remote store (fetch_meta, fetch_content, fetch_times, fetch_asset)
            config: Run configuration
            stats: Collector receiving counts and the report line
            pipeline: Asset pipeline (None leaves image tokens untouched)
            converter: Block to markdown converter
        """
        self._api = api
        self._config = config
        self._stats = stats
        self._pipeline = pipeline
        self._converter = converter or MarkdownConverter()

    def sync(self, task: SyncTask) -> DocOutcome:
        """Fetch, render and write one document.

        Returns:
            DocOutcome.NEW if the file was written, DocOutcome.CACHED if unchanged

        Raises:
            WikiError: If metadata or content cannot be fetched
            FilesystemError: If the file cannot be read or written
            QuotaWaitCancelled: If the run is cancelled
        """
        meta = self._api.fetch_meta(task.doc_id)
        title = meta.title or task.title
        filename = FilesafeConverter.title_to_filename(title)
        rel_path = join_path(task.rel_dir, filename)

        content = self._api.fetch_content(task.doc_id)
        conversion = self._converter.convert(content)
        for warning in conversion.warnings:
            logger.debug(f"{rel_path}: {warning}")

        body = conversion.markdown
        new_images = cached_images = 0
        if self._pipeline is not None and not self._config.skip_images and conversion.image_tokens:
            assets = self._pipeline.process(conversion.image_tokens, body, task.output_dir)
            body = assets.body
            new_images, cached_images = assets.new, assets.hits
            self._stats.add_images(assets.total, assets.new)
            if assets.failed:
                logger.warning(f"{rel_path}: {assets.failed} image(s) left unresolved")

        times = self._fetch_times(task.doc_id)
        rendered = FrontmatterHandler.generate(
            title=title,
            doc_id=task.doc_id,
            body=body,
            tz=self._config.tzinfo,
            created_at=times.created_at,
            updated_at=times.updated_at,
            category=task.category or self._config.default_category,
            tags=task.tags,
        )

        target = os.path.join(task.output_dir, filename)
        written = self._write_if_changed(target, rendered.encode('utf-8'))
        if self._config.dump_json:
            payload = json.dumps(
                {'document': content.document, 'blocks': content.blocks},
                ensure_ascii=False,
                indent=2,
            )
            self._write_if_changed(os.path.splitext(target)[0] + ".json", payload.encode('utf-8'))

        outcome = DocOutcome.NEW if written else DocOutcome.CACHED
        if written:
            self._stats.add_doc_new()
        self._stats.add_log(DocLog(
            path=rel_path,
            outcome=outcome,
            new_images=new_images,
            cached_images=cached_images,
        ))
        logger.info(f"{outcome.value}: {rel_path}")
        return outcome

    def _fetch_times(self, doc_id: str) -> DocumentTimes:
        try:
            return self._api.fetch_times(doc_id)
        except WikiError as e:
            logger.warning(f"Timestamps unavailable for {doc_id}, using current time: {e}")
            return DocumentTimes()

    def _write_if_changed(self, path: str, data: bytes) -> bool:
        """Write data unless the file already holds the same content.

        Returns:
            True if the file was written
        """
        check = self._config.skip_duplicate and not self._config.force
        if check and os.path.exists(path):
            try:
                with open(path, 'rb') as f:
                    existing = f.read()
            except OSError as e:
                raise FilesystemError(path, 'read', str(e))
            if content_hash(existing) == content_hash(data):
                logger.debug(f"Unchanged, skipping write: {path}")
                return False

        # One temp file per writer; concurrent writers may target the same path
        tmp_path = f"{path}.{uuid.uuid4().hex[:12]}.tmp"
        try:
            with open(tmp_path, 'xb') as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise FilesystemError(path, 'write', str(e))
        return True
