"""Bounded-concurrency fan-out of document tasks.

One SyncTask is built per leaf document and run on a ThreadPoolExecutor
whose size caps the number of documents in flight. Every launched task runs
to completion; the first failure (in completion order) is re-raised once
all tasks have finished.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional

from src.wiki_client.models import Node, NodeKind
from .document_syncer import DocumentSyncer
from .errors import FilesystemError
from .filesafe_converter import FilesafeConverter
from .metadata_deriver import MetadataDeriver
from .models import SyncConfig, SyncTask
from .stats import DocLog, DocOutcome, StatsCollector
from .tree_resolver import ROOT_PATH, join_path

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Runs the document syncer over every leaf of a resolved tree.

    Example:
        >>> scheduler = SyncScheduler(syncer, config, stats)
        >>> scheduler.run(nodes, paths)
    """

    def __init__(
        self,
        syncer: DocumentSyncer,
        config: SyncConfig,
        stats: StatsCollector,
        cancel_event: Optional[threading.Event] = None,
    ):
        self._syncer = syncer
        self._config = config
        self._stats = stats
        self._cancel_event = cancel_event

    def build_tasks(self, nodes: List[Node], paths: Dict[str, str]) -> List[SyncTask]:
        """Create one SyncTask per leaf node.

        A document is written into its parent's directory; its tags and
        category derive from that directory's path.
        """
        tasks = []
        for node in nodes:
            if node.kind != NodeKind.LEAF:
                continue
            rel_dir = paths.get(node.parent_id)
            if rel_dir is None:
                logger.warning(f"No path for parent of {node.node_id}, writing it at the root")
                rel_dir = ROOT_PATH
            tasks.append(SyncTask(
                node_id=node.node_id,
                doc_id=node.obj_token or node.node_id,
                title=node.display_name,
                output_dir=os.path.normpath(os.path.join(self._config.output_dir, rel_dir)),
                rel_dir=rel_dir,
                tags=MetadataDeriver.tags_from_path(rel_dir, self._config.tag_mode),
                category=MetadataDeriver.category_from_path(rel_dir, self._config.category_level),
            ))
        return tasks

    def run(self, nodes: List[Node], paths: Dict[str, str], concurrency: Optional[int] = None) -> None:
        """Synchronize every leaf document.

        Args:
            nodes: Nodes returned by the tree resolver
            paths: Node id → relative path map from the tree resolver
            concurrency: Maximum documents in flight (defaults to config.concurrency)

        Raises:
            SyncError: The first document-level failure, after all tasks finished
        """
        limit = concurrency or self._config.concurrency
        if limit < 1:
            raise ValueError(f"concurrency must be >= 1, got {limit}")

        tasks = self.build_tasks(nodes, paths)
        self._stats.set_total_docs(len(tasks))
        if not tasks:
            logger.info("No documents to synchronize")
            return

        logger.info(f"Synchronizing {len(tasks)} documents with concurrency {limit}")
        errors: List[Exception] = []
        with ThreadPoolExecutor(max_workers=limit, thread_name_prefix="sync") as pool:
            futures = {pool.submit(self._run_task, task): task for task in tasks}
            try:
                for future in as_completed(futures):
                    task = futures[future]
                    try:
                        future.result()
                    except Exception as e:
                        # A failed document never stops its siblings
                        errors.append(e)
                        rel_path = join_path(task.rel_dir, FilesafeConverter.title_to_filename(task.title))
                        logger.error(f"Failed to synchronize {rel_path}: {e}")
                        self._stats.add_log(DocLog(path=rel_path, outcome=DocOutcome.SKIPPED, reason=str(e)))
            except KeyboardInterrupt:
                # In-flight tasks abort at their next rate limiter wait
                if self._cancel_event is not None:
                    self._cancel_event.set()
                for future in futures:
                    future.cancel()
                raise

        if errors:
            logger.error(f"{len(errors)} of {len(tasks)} documents failed")
            raise errors[0]

    def _run_task(self, task: SyncTask) -> DocOutcome:
        try:
            os.makedirs(task.output_dir, exist_ok=True)
        except OSError as e:
            raise FilesystemError(task.output_dir, 'create_directory', str(e))
        return self._syncer.sync(task)
