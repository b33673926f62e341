"""Project-wide constants (chunk sizes, timeouts, wire parameter names)."""

VERSION = "0.1.0"

DEFAULT_CHUNK_SIZE_BYTES: int = 32 * 1024 * 1024  # 32 MiB per chunk
DEFAULT_CONNECT_TIMEOUT_SECONDS: float = 10.0
DEFAULT_TOTAL_TIMEOUT_SECONDS: float = 7200.0
DEFAULT_KEEPALIVE_SECONDS: float = 60.0
DEFAULT_INSERT_THREADS: int = 16
DEFAULT_FORMAT: str = "ORC"

# Query parameters understood by the ingestion endpoint, in send order.
PARAM_PARALLEL_PARSING = "parallel_parsing_enabled"
PARAM_INSERT_THREADS = "insert_thread_count"
PARAM_WAIT_FOR_ACK = "wait_for_ack"
PARAM_TABLE = "table"
PARAM_FORMAT = "format"

CONTENT_TYPE = "application/octet-stream"
USER_AGENT = f"streamload/{VERSION}"
REQUEST_ID_HEADER = "X-Request-ID"

MAX_ERROR_BODY_CHARS = 2000
