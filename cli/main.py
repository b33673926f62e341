"""CLI entry point."""

import os
import sys
from pathlib import Path
from typing import List, Optional

from cli.config import Config
from cli.constants import EXIT_CANCELLED, EXIT_FAILURE, EXIT_OK, GREEN, RED, RESET
from cli.parser import option_values, parse_args
from cli.utils import ProgressPrinter, format_duration, format_file_size
from common.errors import UploadError
from common.logging_config import setup_logging
from loader.pipeline import run_upload


def _file_size(path: Optional[str]) -> Optional[int]:
    if not path:
        return None
    try:
        return os.path.getsize(path)
    except OSError:
        return None


def main(argv: Optional[List[str]] = None, transport=None) -> int:
    """
    Entry point for the CLI.

    Args:
        argv: Argument list (defaults to sys.argv[1:])
        transport: Optional httpx transport override

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    log_level = 'DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('streamload', log_level=log_level)

    config = Config(Path(args.config) if args.config else None)
    raw_options = config.resolve(option_values(args))

    source = raw_options.get('source_path') or ''
    progress = ProgressPrinter(Path(source).name, _file_size(source))

    logger.debug(f"Starting upload of {source}")
    try:
        result = run_upload(raw_options, transport=transport, on_progress=progress)
    except UploadError as e:
        progress.finish()
        logger.debug(f"Upload failed: {e!r}", exc_info=e.cause is not None)
        print(f"{RED}{e.describe()}{RESET}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        progress.finish()
        logger.warning("Upload cancelled by user")
        print(f"{RED}Cancelled: upload interrupted, nothing was acknowledged{RESET}", file=sys.stderr)
        return EXIT_CANCELLED

    progress.finish()
    print(
        f"{GREEN}Loaded {format_file_size(result.bytes_sent)} in "
        f"{format_duration(result.elapsed)} (HTTP {result.status}){RESET}"
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
