"""Command-line parser.

Values are kept as raw strings; type and range checks happen in
``loader.config_builder.validate_options`` so that every bad option is
reported at once.
"""

import argparse
from typing import Any, Dict, List, Optional

from cli.constants import DESCRIPTION, EPILOG, PROG
from common.constants import VERSION

# Parser dest -> option name understood by validate_options
OPTION_NAMES = (
    'source_path',
    'server_url',
    'table',
    'format',
    'threads',
    'chunk_size',
    'connect_timeout',
    'timeout',
    'keep_alive',
    'user',
    'password',
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('source_path', metavar='source-file-path', help='File to upload')
    parser.add_argument('server_url', metavar='server-base-url', help='Ingestion endpoint, e.g. http://localhost:8123/')

    target = parser.add_argument_group('target')
    target.add_argument('--table', '-t', help='Target table name')
    target.add_argument('--format', '-f', help='Data format of the file (default: ORC)')
    target.add_argument('--threads', metavar='N', help='Server-side parallel insert threads (default: 16)')

    transfer = parser.add_argument_group('transfer')
    transfer.add_argument('--chunk-size', dest='chunk_size', metavar='BYTES', help='Chunk size in bytes (default: 32 MiB)')
    transfer.add_argument('--connect-timeout', dest='connect_timeout', metavar='SEC', help='Connect timeout in seconds (default: 10)')
    transfer.add_argument('--timeout', metavar='SEC', help='Total transfer timeout in seconds (default: 7200)')
    transfer.add_argument('--keep-alive', dest='keep_alive', metavar='SEC', help='Keep-alive interval in seconds (default: 60)')

    auth = parser.add_argument_group('credentials')
    auth.add_argument('--user', '-u', help='User name (or STREAMLOAD_USER)')
    auth.add_argument('--password', '-p', help='Password (or STREAMLOAD_PASSWORD)')

    parser.add_argument('--config', metavar='PATH', help='Config file (default: ~/.streamload/config.json)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed namespace; exits with status 2 on usage errors
    """
    return build_parser().parse_args(argv)


def option_values(args: argparse.Namespace) -> Dict[str, Any]:
    """Extract the upload options from a parsed namespace (None = not given)."""
    return {name: getattr(args, name, None) for name in OPTION_NAMES}
