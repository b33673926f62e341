"""Streaming HTTP upload of a chunk sequence under timeout and keep-alive policy."""

import socket
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import httpx

from common.errors import ErrorKind, Stage, UploadError, error_context
from common.logging_config import get_logger
from common.types import UploadRequest, UploadResult
from loader.chunk_reader import ChunkedFileReader

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


def _keepalive_socket_options(interval: float) -> List[Tuple[int, int, int]]:
    """TCP keep-alive and no-delay options; per-platform constants are optional."""
    seconds = max(1, int(interval))
    options = [
        (socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1),
        (socket.IPPROTO_TCP, socket.TCP_NODELAY, 1),
    ]
    if hasattr(socket, 'TCP_KEEPIDLE'):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds))
    if hasattr(socket, 'TCP_KEEPINTVL'):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds))
    return options


def _check_deadline(deadline: float, doing: str) -> None:
    if time.monotonic() > deadline:
        raise UploadError.timeout(Stage.SEND, f"total transfer timeout exceeded while {doing}")


def _deadline_error(total_timeout: float, bytes_sent: int) -> UploadError:
    return UploadError.timeout(
        Stage.SEND,
        f"total transfer timeout of {total_timeout}s exceeded after {bytes_sent} bytes",
    )


class ChunkFeed:
    """
    Request body that pulls one chunk per transport write.

    httpx iterates the feed and writes each yielded chunk to the socket
    before asking for the next one, so the reader is only pulled again once
    the previous chunk has been handed off. At most one chunk is held here.
    """

    def __init__(
        self,
        reader: ChunkedFileReader,
        deadline: Optional[float] = None,
        on_chunk: Optional[ProgressCallback] = None,
    ):
        self._reader = reader
        self._deadline = deadline
        self._on_chunk = on_chunk
        self._started = False
        self.bytes_sent = 0
        self.chunks_sent = 0

    def _pull(self) -> Optional[bytes]:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise UploadError.timeout(
                Stage.SEND,
                f"total transfer timeout exceeded after {self.bytes_sent} bytes",
            )
        with error_context(Stage.SEND):
            return self._reader.next_chunk()

    def __iter__(self) -> Iterator[bytes]:
        if self._started:
            raise RuntimeError("ChunkFeed can only be consumed once")
        self._started = True

        while True:
            chunk = self._pull()
            if chunk is None:
                return
            yield chunk
            # Resumed: the transport has taken the chunk.
            self.bytes_sent += len(chunk)
            self.chunks_sent += 1
            if self._on_chunk is not None:
                self._on_chunk(self.bytes_sent)


class StreamingHttpUploader:
    """
    HTTP client that streams a file body with one attempt per upload.

    The total timeout is a single wall-clock deadline over the whole
    exchange. Besides the per-chunk and per-read checks, a watchdog timer
    shuts the live socket down when the deadline passes, so a stalled write
    or a server that trickles its response cannot keep the request alive.
    """

    # httpcore trace events that hand over a new network stream.
    STREAM_EVENTS = ('connection.connect_tcp.complete', 'connection.start_tls.complete')

    def __init__(
        self,
        connect_timeout: float,
        total_timeout: float,
        keep_alive_interval: float,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the uploader.

        Args:
            connect_timeout: Seconds allowed for establishing the connection
            total_timeout: Seconds allowed for the whole request
            keep_alive_interval: Idle keep-alive expiry and TCP probe interval
            transport: Optional transport override (tests)
        """
        self.connect_timeout = connect_timeout
        self.total_timeout = total_timeout
        self.keep_alive_interval = keep_alive_interval
        self._network_stream: Any = None
        self._lock = threading.Lock()

        if transport is None:
            transport = httpx.HTTPTransport(
                limits=httpx.Limits(
                    max_connections=1,
                    max_keepalive_connections=1,
                    keepalive_expiry=keep_alive_interval,
                ),
                socket_options=_keepalive_socket_options(keep_alive_interval),
            )

        self.session = httpx.Client(
            timeout=httpx.Timeout(total_timeout, connect=min(connect_timeout, total_timeout)),
            transport=transport,
        )
        logger.debug(
            f"Initialized StreamingHttpUploader [connect_timeout={connect_timeout}s, "
            f"total_timeout={total_timeout}s, keep_alive={keep_alive_interval}s]"
        )

    @classmethod
    def from_request(
        cls, request: UploadRequest, transport: Optional[httpx.BaseTransport] = None
    ) -> 'StreamingHttpUploader':
        return cls(
            request.connect_timeout,
            request.total_timeout,
            request.keep_alive_interval,
            transport=transport,
        )

    def _trace(self, event_name: str, info: Dict[str, Any]) -> None:
        # The pool holds one connection, so the newest stream is the live one.
        if event_name in self.STREAM_EVENTS:
            with self._lock:
                self._network_stream = info.get('return_value')

    def _abort_connection(self) -> None:
        """Shut down the live socket; blocked reads and writes return at once."""
        with self._lock:
            stream = self._network_stream
        sock = stream.get_extra_info('socket') if stream is not None else None
        if sock is None:
            return

        logger.warning(f"Total timeout of {self.total_timeout}s reached, closing connection")
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Connection already closed: {e}")

    def _exchange(self, request: UploadRequest, feed: ChunkFeed, deadline: float) -> Tuple[httpx.Response, str]:
        http_request = self.session.build_request(
            'POST',
            request.target_url,
            content=feed,
            headers=request.header_dict(),
            extensions={'trace': self._trace},
        )

        with error_context(Stage.SEND):
            response = self.session.send(http_request, stream=True)
            try:
                pieces = []
                _check_deadline(deadline, 'waiting for the response')
                for piece in response.iter_bytes():
                    pieces.append(piece)
                    _check_deadline(deadline, 'reading the response')
            finally:
                response.close()

        return response, b''.join(pieces).decode(response.encoding or 'utf-8', errors='replace')

    def upload(
        self,
        request: UploadRequest,
        reader: ChunkedFileReader,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """
        Send the reader's chunks as the body of a single POST.

        Args:
            request: Target URL, headers and policy
            reader: Chunk source; not closed here
            on_progress: Called with the running byte count after each chunk

        Returns:
            UploadResult for a 2xx response

        Raises:
            UploadError: NetworkError (connect/send), IOError (send) or
                ServerError (server-response)
        """
        started = time.monotonic()
        deadline = started + self.total_timeout
        feed = ChunkFeed(reader, deadline=deadline, on_chunk=on_progress)

        expired = threading.Event()

        def expire():
            expired.set()
            self._abort_connection()

        watchdog = threading.Timer(self.total_timeout, expire)
        watchdog.daemon = True

        logger.info(f"Uploading {request.source_path} [request_id={request.request_id}]")
        watchdog.start()
        try:
            response, body = self._exchange(request, feed, deadline)
        except UploadError as e:
            if expired.is_set() and e.kind is not ErrorKind.IO:
                raise _deadline_error(self.total_timeout, feed.bytes_sent) from e
            raise
        finally:
            watchdog.cancel()
        elapsed = time.monotonic() - started

        if expired.is_set():
            raise _deadline_error(self.total_timeout, feed.bytes_sent)

        if not response.is_success:
            logger.error(
                f"Server rejected upload: status={response.status_code} "
                f"after {feed.bytes_sent} bytes [request_id={request.request_id}]"
            )
            raise UploadError.server(response.status_code, body)

        logger.info(
            f"Upload complete: {feed.bytes_sent} bytes in {elapsed:.2f}s "
            f"status={response.status_code} [request_id={request.request_id}]"
        )
        return UploadResult(
            bytes_sent=feed.bytes_sent,
            elapsed=elapsed,
            status=response.status_code,
            body=body or None,
        )

    def close(self) -> None:
        """Close the HTTP session and any kept-alive connection."""
        self.session.close()

    def __enter__(self) -> 'StreamingHttpUploader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
