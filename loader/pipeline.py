"""Entry point wiring option validation, the chunk reader and the uploader."""

from typing import Any, Mapping, Optional

import httpx

from common.errors import Stage, error_context
from common.logging_config import get_logger, set_correlation_id
from common.types import UploadResult
from loader.chunk_reader import ChunkedFileReader
from loader.config_builder import ConfigBuilder, validate_options
from loader.http_uploader import ProgressCallback, StreamingHttpUploader

logger = get_logger(__name__)


def run_upload(
    raw_options: Mapping[str, Any],
    transport: Optional[httpx.BaseTransport] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> UploadResult:
    """
    Validate options and stream the source file to the server.

    Nothing is opened or connected until the options are valid. The reader
    and the HTTP client are closed on every exit path, including
    KeyboardInterrupt, which is left to propagate.

    Args:
        raw_options: Raw option values (see UploadOptions)
        transport: Optional httpx transport override
        on_progress: Called with the running byte count after each chunk

    Returns:
        UploadResult of the acknowledged write

    Raises:
        UploadError: Stage-labelled failure of any step
    """
    with error_context(Stage.CONFIG):
        options = validate_options(raw_options)
        request = ConfigBuilder().build(options)

    set_correlation_id(request.request_id)
    try:
        with error_context(Stage.OPEN_FILE):
            reader = ChunkedFileReader.open(request.source_path, request.chunk_size)

        with reader, StreamingHttpUploader.from_request(request, transport=transport) as uploader:
            return uploader.upload(request, reader, on_progress=on_progress)
    finally:
        set_correlation_id(None)
