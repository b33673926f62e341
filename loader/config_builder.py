"""Option validation and request construction (URL, query parameters, headers)."""

import base64
import re
import uuid
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.constants import (
    CONTENT_TYPE,
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_FORMAT,
    DEFAULT_INSERT_THREADS,
    DEFAULT_KEEPALIVE_SECONDS,
    DEFAULT_TOTAL_TIMEOUT_SECONDS,
    PARAM_FORMAT,
    PARAM_INSERT_THREADS,
    PARAM_PARALLEL_PARSING,
    PARAM_TABLE,
    PARAM_WAIT_FOR_ACK,
    REQUEST_ID_HEADER,
    USER_AGENT,
)
from common.errors import UploadError
from common.logging_config import get_logger
from common.types import UploadRequest

logger = get_logger(__name__)

IDENTIFIER_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$')


class UploadOptions(BaseModel):
    """Validated options for a single transfer."""

    model_config = ConfigDict(frozen=True, extra='forbid')

    source_path: Optional[str] = Field(default=None, validate_default=True)
    server_url: Optional[str] = Field(default=None, validate_default=True)
    table: Optional[str] = Field(default=None, validate_default=True)
    format: str = DEFAULT_FORMAT
    threads: int = Field(default=DEFAULT_INSERT_THREADS, ge=1)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE_BYTES, ge=1)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT_SECONDS, gt=0)
    timeout: float = Field(default=DEFAULT_TOTAL_TIMEOUT_SECONDS, gt=0)
    keep_alive: float = Field(default=DEFAULT_KEEPALIVE_SECONDS, gt=0)
    user: Optional[str] = Field(default=None, validate_default=True)
    password: str = ''

    @field_validator('source_path')
    @classmethod
    def require_source(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError('source file path is required')
        return value

    @field_validator('server_url')
    @classmethod
    def check_url(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError('server base URL is required')
        try:
            url = httpx.URL(value.strip())
        except httpx.InvalidURL as e:
            raise ValueError(f'malformed URL {value!r}: {e}')
        if url.scheme not in ('http', 'https') or not url.host:
            raise ValueError(f'malformed URL {value!r}: expected http(s)://host[:port]/')
        # httpx would turn URL userinfo into its own Authorization header.
        if url.userinfo:
            raise ValueError('server URL must not embed credentials; use --user/--password')
        return str(url)

    @field_validator('table')
    @classmethod
    def check_table(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError('target table is required')
        if not IDENTIFIER_RE.match(value):
            raise ValueError(f'invalid table name {value!r}')
        return value

    @field_validator('format')
    @classmethod
    def check_format(cls, value: str) -> str:
        if not re.match(r'^[A-Za-z][A-Za-z0-9_]*$', value):
            raise ValueError(f'invalid data format {value!r}')
        return value

    @field_validator('user')
    @classmethod
    def require_user(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError('credential is required (--user)')
        return value


def _format_problem(error: dict) -> str:
    field = '.'.join(str(part) for part in error.get('loc', ())) or 'options'
    msg = error.get('msg', 'invalid value')
    if msg.startswith('Value error, '):
        msg = msg[len('Value error, '):]
    return f"{field}: {msg}"


def validate_options(raw: Mapping[str, Any]) -> UploadOptions:
    """
    Validate raw option values into an UploadOptions record.

    Options whose value is None are treated as not given so defaults apply.

    Args:
        raw: Option name to raw value (command-line strings are coerced)

    Returns:
        Validated, immutable options

    Raises:
        UploadError: ConfigError listing every missing or invalid field
    """
    given = {key: value for key, value in raw.items() if value is not None}
    try:
        return UploadOptions(**given)
    except ValidationError as e:
        problems = [_format_problem(err) for err in e.errors()]
        logger.debug(f"Option validation failed: {problems}")
        raise UploadError.config(problems) from e


class ConfigBuilder:
    """Turns validated options into the target URL and request headers."""

    def build_params(self, options: UploadOptions) -> List[Tuple[str, str]]:
        """
        Query parameters in their fixed send order.

        Args:
            options: Validated options

        Returns:
            Ordered list of (name, value) pairs
        """
        return [
            (PARAM_PARALLEL_PARSING, '1'),
            (PARAM_INSERT_THREADS, str(options.threads)),
            (PARAM_WAIT_FOR_ACK, '1'),
            (PARAM_TABLE, options.table),
            (PARAM_FORMAT, options.format),
        ]

    def build_headers(self, options: UploadOptions, request_id: str) -> List[Tuple[str, str]]:
        token = base64.b64encode(f"{options.user}:{options.password}".encode('utf-8')).decode('ascii')
        return [
            ('Authorization', f'Basic {token}'),
            ('Content-Type', CONTENT_TYPE),
            ('User-Agent', USER_AGENT),
            (REQUEST_ID_HEADER, request_id),
        ]

    def build(self, options: UploadOptions, request_id: Optional[str] = None) -> UploadRequest:
        """
        Build the immutable request description for one transfer.

        Args:
            options: Options produced by validate_options
            request_id: Correlation id (generated when omitted)

        Returns:
            UploadRequest ready for the uploader

        Raises:
            TypeError: If given anything but an UploadOptions record
        """
        if not isinstance(options, UploadOptions):
            raise TypeError(f"ConfigBuilder.build expects UploadOptions, got {type(options).__name__}")

        request_id = request_id or str(uuid.uuid4())
        request = UploadRequest(
            source_path=Path(options.source_path),
            base_url=options.server_url,
            params=tuple(self.build_params(options)),
            headers=tuple(self.build_headers(options, request_id)),
            chunk_size=options.chunk_size,
            connect_timeout=options.connect_timeout,
            total_timeout=options.timeout,
            keep_alive_interval=options.keep_alive,
            request_id=request_id,
        )
        logger.info(f"Built upload request [target={request.target_url}, request_id={request_id}]")
        return request
