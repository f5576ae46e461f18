"""Sync command orchestration for CLI.

This module provides the SyncCommand class that wires every component of a
mirror run together: URL validation, tree resolution, the asset pipeline,
the document scheduler and the final report, and translates failures into
exit codes.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from src.asset_store.cache import AssetCache, FileAssetCache
from src.asset_store.errors import AssetStoreConfigError
from src.asset_store.factory import create_asset_store
from src.asset_store.pipeline import AssetPipeline
from src.asset_store.platforms import AssetStore
from src.asset_store.uploader import Uploader
from src.cli.errors import CLIError, MissingRootError, NotADocumentError
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.file_mapper.document_syncer import DocumentSyncer
from src.file_mapper.errors import ConfigError, FilesystemError
from src.file_mapper.models import SyncConfig
from src.file_mapper.stats import StatsCollector
from src.file_mapper.sync_scheduler import SyncScheduler
from src.file_mapper.tree_resolver import ROOT_PATH, TreeResolver
from src.wiki_client.api_wrapper import FeishuAPI
from src.wiki_client.auth import Authenticator
from src.wiki_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    NodeNotFoundError,
    PermissionDeniedError,
    QuotaWaitCancelled,
    ValidationError,
)
from src.wiki_client.models import DOCX_TYPE, Node, NodeKind
from src.wiki_client.rate_limiter import RateLimiter
from src.wiki_client.url_parser import DOCX_KIND, parse_document_url

logger = logging.getLogger(__name__)


class SyncCommand:
    """Orchestrates a complete mirror run for the CLI.

    The workflow:
        1. Validate the root wiki URL, document URL or token
        2. Look up the wiki space of the root node (unless configured)
        3. Resolve the whole subtree and its local paths, or only the root
           document for a docx URL or single-document mode
        4. Synchronize every document on a bounded worker pool
        5. Flush the upload cache and print the report
        6. Return an exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> sync_cmd = SyncCommand(config, output_handler=output)
        >>> exit_code = sync_cmd.run()
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config: SyncConfig,
        output_handler: Optional[OutputHandler] = None,
        api: Optional[FeishuAPI] = None,
        asset_cache: Optional[AssetCache] = None,
        asset_store: Optional[AssetStore] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize sync command with dependencies.

        Args:
            config: Run configuration (file values merged with CLI overrides)
            output_handler: OutputHandler for terminal output (optional)
            api: Remote store client (created from the environment if omitted)
            asset_cache: Upload cache (file-backed at config.cache_path if omitted)
            asset_store: Image host (created from config.asset_store if omitted)
            cancel_event: Cancellation context shared by every rate limiter wait

        Note:
            Dependencies are optional to support testing. In production they
            are created from the configuration.
        """
        self.config = config
        self.output_handler = output_handler or OutputHandler()
        self.cancel_event = cancel_event or threading.Event()
        self.rate_limiter = RateLimiter()
        self.api = api
        self.asset_cache = asset_cache
        self.asset_store = asset_store
        self.stats = StatsCollector()

    def run(self) -> ExitCode:
        """Execute the mirror run.

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            return self._run()

        except KeyboardInterrupt:
            self.cancel_event.set()
            logger.warning("Interrupted by user")
            self.output_handler.warning("Cancelled")
            return ExitCode.CANCELLED

        except QuotaWaitCancelled:
            self.output_handler.warning("Cancelled")
            return ExitCode.CANCELLED

        except (InvalidCredentialsError, PermissionDeniedError) as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info(
                "Check FEISHU_APP_ID and FEISHU_APP_SECRET and the app's permissions"
            )
            return ExitCode.AUTH_ERROR

        except (APIUnreachableError, APIAccessError) as e:
            logger.error(f"API error: {e}")
            self.output_handler.error(f"API error: {e}")
            self.output_handler.info("Check your internet connection and try again")
            return ExitCode.NETWORK_ERROR

        except (ConfigError, AssetStoreConfigError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except (ValidationError, NodeNotFoundError, FilesystemError, CLIError) as e:
            logger.error(f"Error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during mirror run")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    def _run(self) -> ExitCode:
        if not self.config.root:
            raise MissingRootError()
        kind, token = parse_document_url(self.config.root)

        if self.api is None:
            self.api = FeishuAPI(Authenticator(), self.rate_limiter, self.cancel_event)

        if kind == DOCX_KIND or self.config.single_document:
            nodes, paths = self._resolve_single(kind, token)
        else:
            nodes, paths = self._resolve_tree(token)
        return self._mirror(nodes, paths)

    def _resolve_tree(self, root_token: str) -> Tuple[List[Node], Dict[str, str]]:
        space_id = self.config.space_id
        if not space_id:
            logger.info(f"Looking up wiki space of {root_token}")
            space_id = self.api.get_node(root_token).space_id
            if not space_id:
                raise ValidationError(root_token, "could not determine the wiki space of this node")

        with self.output_handler.spinner("Resolving wiki tree..."):
            nodes, paths = TreeResolver(self.api, space_id).resolve_all(root_token)
        self.output_handler.info(f"Found {len(nodes)} wiki nodes")
        return nodes, paths

    def _resolve_single(self, kind: str, token: str) -> Tuple[List[Node], Dict[str, str]]:
        """Resolve one document, written directly into the output directory.

        Raises:
            NotADocumentError: If a wiki node has no document behind it
        """
        if kind == DOCX_KIND:
            node = Node(
                node_id=token,
                parent_id="",
                display_name=token,
                kind=NodeKind.LEAF,
                obj_token=token,
                obj_type=DOCX_TYPE,
            )
        else:
            node = self.api.get_node(token)
            if node.kind != NodeKind.LEAF:
                raise NotADocumentError(token, node.obj_type)
        logger.info(f"Mirroring single document {node.obj_token or node.node_id}")
        return [node], {node.parent_id: ROOT_PATH}

    def _mirror(self, nodes: List[Node], paths: Dict[str, str]) -> ExitCode:
        if self.asset_store is None and self.config.asset_store is not None and not self.config.skip_images:
            self.asset_store = create_asset_store(self.config.asset_store)
        if self.asset_cache is None:
            self.asset_cache = FileAssetCache(self.config.cache_path)

        uploader = None
        if self.asset_store is not None:
            concurrency = self.config.asset_store.concurrency if self.config.asset_store else 20
            uploader = Uploader(self.asset_store, concurrency, self.rate_limiter, self.cancel_event)

        failure: Optional[Exception] = None
        try:
            pipeline = AssetPipeline(self.api, self.asset_cache, uploader, self.config.image_dir)
            syncer = DocumentSyncer(self.api, self.config, self.stats, pipeline)
            scheduler = SyncScheduler(syncer, self.config, self.stats, self.cancel_event)
            # Document failures of any type end in the report, not in a crash
            try:
                scheduler.run(nodes, paths)
            except Exception as e:
                failure = e
        finally:
            if uploader is not None:
                uploader.close()
            self.asset_cache.close()

        self.output_handler.print_report(self.stats.sorted_logs(), self.stats.snapshot())

        if self.cancel_event.is_set():
            self.output_handler.warning("Cancelled, some documents were not processed")
            return ExitCode.CANCELLED
        if failure is not None:
            self.output_handler.error(f"Some documents failed, first error: {failure}")
            return ExitCode.PARTIAL_FAILURE
        return ExitCode.SUCCESS
