"""Stage-labelled error type shared by every layer of the upload pipeline."""

from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional, Sequence

import httpx

from common.constants import MAX_ERROR_BODY_CHARS


class Stage(str, Enum):
    """Pipeline phase that produced an error."""
    CONFIG = "config"
    OPEN_FILE = "open-file"
    CONNECT = "connect"
    SEND = "send"
    SERVER_RESPONSE = "server-response"


class ErrorKind(str, Enum):
    """What went wrong, independent of where."""
    CONFIG = "ConfigError"
    IO = "IOError"
    NETWORK = "NetworkError"
    SERVER = "ServerError"


# httpx exceptions raised before the request ever reached the server.
CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class UploadError(Exception):
    """
    A failure carrying {stage, kind, cause}.

    One type covers the whole taxonomy; callers branch on ``kind`` and
    ``stage`` instead of on subclasses. ``cause`` holds the original
    exception, which is also chained as ``__cause__`` when raised via the
    factories below with ``raise ... from``.
    """

    def __init__(
        self,
        stage: Stage,
        kind: ErrorKind,
        message: str,
        cause: Optional[BaseException] = None,
        status: Optional[int] = None,
        body: Optional[str] = None,
        problems: Sequence[str] = (),
    ):
        super().__init__(message)
        self.stage = stage
        self.kind = kind
        self.message = message
        self.cause = cause
        self.status = status
        self.body = body
        self.problems = tuple(problems)

    @classmethod
    def config(cls, problems: Sequence[str]) -> "UploadError":
        """Invalid or missing options; lists every problem found."""
        problems = tuple(problems)
        return cls(
            Stage.CONFIG,
            ErrorKind.CONFIG,
            f"{len(problems)} invalid option(s): " + "; ".join(problems),
            problems=problems,
        )

    @classmethod
    def io(cls, stage: Stage, exc: OSError) -> "UploadError":
        return cls(stage, ErrorKind.IO, _os_error_message(exc), cause=exc)

    @classmethod
    def network(cls, stage: Stage, exc: BaseException) -> "UploadError":
        detail = str(exc) or type(exc).__name__
        if isinstance(exc, httpx.TimeoutException):
            detail = f"timed out ({type(exc).__name__}): {detail}"
        return cls(stage, ErrorKind.NETWORK, detail, cause=exc)

    @classmethod
    def timeout(cls, stage: Stage, message: str) -> "UploadError":
        return cls(stage, ErrorKind.NETWORK, message)

    @classmethod
    def server(cls, status: int, body: str) -> "UploadError":
        """Remote endpoint rejected the write; body is kept verbatim."""
        return cls(
            Stage.SERVER_RESPONSE,
            ErrorKind.SERVER,
            f"HTTP {status}",
            status=status,
            body=body,
        )

    def describe(self, max_body: int = MAX_ERROR_BODY_CHARS) -> str:
        """
        Render the error as a single human-readable line.

        Args:
            max_body: Maximum number of server body characters to include

        Returns:
            Line of the form ``Error [<stage>] <kind>: <cause>``
        """
        detail = self.message
        if self.kind is ErrorKind.SERVER and self.body:
            body = " ".join(self.body.split())
            if len(body) > max_body:
                body = body[:max_body] + "..."
            detail = f"{detail}: {body}"
        return f"Error [{self.stage.value}] {self.kind.value}: {detail}"

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.kind.value}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"UploadError(stage={self.stage.value!r}, kind={self.kind.value!r}, "
            f"message={self.message!r}, status={self.status!r})"
        )


def _os_error_message(exc: OSError) -> str:
    if exc.filename is not None and exc.strerror:
        return f"{exc.strerror}: {exc.filename}"
    return str(exc) or type(exc).__name__


def stage_for(exc: BaseException, stage: Stage) -> Stage:
    """Connect-phase failures are always labelled ``connect``."""
    if isinstance(exc, CONNECT_ERRORS):
        return Stage.CONNECT
    return stage


@contextmanager
def error_context(stage: Stage) -> Iterator[None]:
    """
    Label errors escaping the block with ``stage``.

    ``OSError`` becomes an IOError and ``httpx.TransportError`` a
    NetworkError. An ``UploadError`` raised inside keeps the label it already
    has. Anything else propagates untouched.
    """
    try:
        yield
    except UploadError:
        raise
    except httpx.TransportError as exc:
        raise UploadError.network(stage_for(exc, stage), exc) from exc
    except OSError as exc:
        raise UploadError.io(stage, exc) from exc
