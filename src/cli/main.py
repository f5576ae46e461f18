"""Main CLI entry point for the wiki-mirror command.

This module provides the Typer application that serves as the entry point
for the wiki-mirror command-line tool. Like a single-purpose tool, it uses
options on the main command rather than subcommands.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli.errors import ConfigNotFoundError, InitError
from src.cli.init_command import InitCommand
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.cli.sync_command import SyncCommand
from src.file_mapper.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from src.file_mapper.errors import ConfigError, FilesystemError
from src.file_mapper.models import SyncConfig

__version__ = "0.1.0"

app = typer.Typer(
    name="wiki-mirror",
    help="""Mirror a Feishu wiki subtree into local Markdown files.

QUICK START:
  wiki-mirror https://example.feishu.cn/wiki/<token>           # Mirror into ./dist
  wiki-mirror <token> --output ./docs                          # Custom output directory
  wiki-mirror --force                                          # Rewrite every document
  wiki-mirror https://example.feishu.cn/docx/<token>           # Mirror one document
  wiki-mirror --init <url> --output ./docs                     # Write .wiki-mirror/config.yaml

Credentials come from FEISHU_APP_ID and FEISHU_APP_SECRET (environment or .env).""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    log_format = "%(asctime)s [%(levelname)8s] %(threadName)s %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"wiki-mirror_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        # The file always captures debug output
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        app_logger.setLevel(logging.DEBUG)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _load_config(config_path: Optional[str]) -> SyncConfig:
    """Load the config file named on the command line, or the default one if present.

    Raises:
        ConfigNotFoundError: An explicit --config path does not exist
    """
    if config_path is not None:
        if not os.path.exists(config_path):
            raise ConfigNotFoundError(config_path)
        return ConfigLoader.load(config_path)
    return ConfigLoader.load_or_default(DEFAULT_CONFIG_PATH)


def _run_init(
    root: Optional[str],
    output_dir: Optional[str],
    force: bool,
    verbosity: int,
    no_color: bool
) -> None:
    """Run initialization command.

    Args:
        root: Wiki URL or node token to record as the root
        output_dir: Output directory to record
        force: Overwrite an existing config file
        verbosity: Verbosity level
        no_color: Whether to disable colored output
    """
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        init_cmd = InitCommand()
        init_cmd.run(root=root, output_dir=output_dir, force=force)

        output.success("Configuration initialized successfully")
        output.info(f"  Config file: {init_cmd.config_path}")
        if init_cmd.env_created:
            output.info(f"  Credentials template: {init_cmd.env_path}")
        output.info("")
        output.info("Next steps:")
        output.info(f"  1. Fill in FEISHU_APP_ID and FEISHU_APP_SECRET in {init_cmd.env_path}")
        output.info(f"  2. Review {init_cmd.config_path}")
        output.info("  3. Run 'wiki-mirror' to start mirroring")

        raise typer.Exit(ExitCode.SUCCESS)

    except InitError as e:
        logger.error(f"Initialization failed: {e}")
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def main_command(
    url: Optional[str] = typer.Argument(
        None,
        help="Wiki URL or node token of the subtree root (overrides 'root' in the config)",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory (default ./dist)",
        metavar="DIR",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Rewrite every document even if unchanged (with --init: overwrite the config file)",
    ),
    single: bool = typer.Option(
        False,
        "--single",
        help="Mirror only the document at the URL, not its subtree (implied by docx URLs)",
    ),
    no_skip_same: bool = typer.Option(
        False,
        "--no-skip-same",
        help="Do not compare content hashes before writing",
    ),
    no_img: bool = typer.Option(
        False,
        "--no-img",
        help="Leave image tokens untouched (no download or upload)",
    ),
    dump_json: bool = typer.Option(
        False,
        "--json",
        help="Also write the raw document payload as JSON",
    ),
    tag_mode: Optional[str] = typer.Option(
        None,
        "--tag-mode",
        help="Which directory segments become tags: all or last",
    ),
    category_level: Optional[int] = typer.Option(
        None,
        "--category-level",
        help="Directory segment used as category (1-based, negative counts from the end, 0 disables)",
    ),
    concurrency: Optional[int] = typer.Option(
        None,
        "--concurrency",
        "-c",
        help="Maximum number of documents processed at once",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help=f"Configuration file (default {DEFAULT_CONFIG_PATH} if present)",
        metavar="FILE",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Write a starter .wiki-mirror/config.yaml and .env template, then exit",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Mirror a Feishu wiki subtree into local Markdown files.

    \b
    EXAMPLES:
      wiki-mirror https://example.feishu.cn/wiki/wikcnAbCdEf123456
      wiki-mirror wikcnAbCdEf123456 -o ./docs --tag-mode last --category-level 1
      wiki-mirror --no-img --json
      wiki-mirror https://example.feishu.cn/wiki/wikcnAbCdEf123456 --single
      wiki-mirror --init wikcnAbCdEf123456 -o ./docs
    """
    if version:
        typer.echo(f"wiki-mirror version {__version__}")
        raise typer.Exit()

    if init:
        _run_init(url, output, force, verbosity, no_color)
        return

    _configure_logging(verbosity, logdir)
    output_handler = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = _load_config(config_path)

        if url is not None:
            config.root = url
        if output is not None:
            config.output_dir = output
        if force:
            config.force = True
        if no_skip_same:
            config.skip_duplicate = False
        if no_img:
            config.skip_images = True
        if dump_json:
            config.dump_json = True
        if single:
            config.single_document = True
        if tag_mode is not None:
            config.tag_mode = tag_mode
        if category_level is not None:
            config.category_level = category_level
        if concurrency is not None:
            config.concurrency = concurrency

        ConfigLoader.validate(config)

    except ConfigNotFoundError as e:
        output_handler.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    except (ConfigError, FilesystemError) as e:
        logger.error(f"Configuration error: {e}")
        output_handler.error(f"Configuration error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    exit_code = SyncCommand(config, output_handler=output_handler).run()
    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
