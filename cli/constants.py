"""CLI constants."""

GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"

PROG = "streamload"

DESCRIPTION = (
    "Stream a local file to a bulk-insert HTTP endpoint in fixed-size chunks. "
    "The server parses the data in parallel; the client never holds more than "
    "one chunk in memory."
)

EPILOG = """Option defaults are read from ~/.streamload/config.json (or --config) and
STREAMLOAD_* environment variables; command-line values take precedence.

Examples:
  streamload data.orc http://localhost:8123/ --table events --user default
  streamload dump.parquet https://ch.example.com:8443/ --table logs --format Parquet \\
      --threads 8 --chunk-size 8388608 --timeout 3600"""

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130
