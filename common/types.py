"""Shared data type definitions (UploadRequest, UploadResult)."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import httpx


@dataclass(frozen=True)
class UploadRequest:
    """
    Everything needed to drive one transfer.

    Built once per invocation by ConfigBuilder from validated options.
    """
    source_path: Path
    base_url: str
    params: Tuple[Tuple[str, str], ...]
    headers: Tuple[Tuple[str, str], ...]
    chunk_size: int
    connect_timeout: float
    total_timeout: float
    keep_alive_interval: float
    request_id: str

    @property
    def target_url(self) -> str:
        """Base URL with the query parameters appended in their fixed order."""
        return str(httpx.URL(self.base_url).copy_merge_params(list(self.params)))

    def header_dict(self) -> dict:
        return dict(self.headers)


@dataclass(frozen=True)
class UploadResult:
    """
    Outcome of a completed transfer.
    """
    bytes_sent: int
    elapsed: float
    status: int
    body: Optional[str] = None
