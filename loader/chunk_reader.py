"""Lazy, single-pass fixed-size chunk reader over a local file."""

import os
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from common.logging_config import get_logger

logger = get_logger(__name__)


class ChunkedFileReader:
    """
    Pull-based chunk source for one file.

    ``next_chunk`` returns the next block of exactly ``chunk_size`` bytes
    (the last one may be shorter) or ``None`` once the file is exhausted.
    After EOF, a read failure or ``close`` the reader is terminated and keeps
    returning ``None``. The reader is its own iterator and cannot be
    restarted.
    """

    def __init__(self, file_obj: BinaryIO, chunk_size: int, file_size: Optional[int] = None, name: str = ""):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._file = file_obj
        self.chunk_size = chunk_size
        self.file_size = file_size
        self.name = name
        self._terminated = False
        self._bytes_read = 0
        self._chunks_read = 0

    @classmethod
    def open(cls, path: Union[str, Path], chunk_size: int) -> 'ChunkedFileReader':
        """
        Open ``path`` for chunked reading.

        Args:
            path: File to read
            chunk_size: Size of every chunk but the last, in bytes

        Returns:
            Reader positioned at the start of the file

        Raises:
            ValueError: If chunk_size is not positive
            OSError: If the file cannot be opened or is not a regular file
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        path = Path(path)
        file_obj = open(path, 'rb')
        try:
            st = os.fstat(file_obj.fileno())
        except OSError:
            file_obj.close()
            raise
        logger.debug(f"Opened {path} [size={st.st_size}, chunk_size={chunk_size}]")
        return cls(file_obj, chunk_size, file_size=st.st_size, name=str(path))

    @property
    def bytes_read(self) -> int:
        return self._bytes_read

    @property
    def chunks_read(self) -> int:
        return self._chunks_read

    @property
    def closed(self) -> bool:
        return self._file.closed

    @property
    def exhausted(self) -> bool:
        return self._terminated

    def next_chunk(self) -> Optional[bytes]:
        """
        Read the next chunk.

        Returns:
            The chunk bytes, or None at end of file / after termination

        Raises:
            OSError: If the underlying read fails. The reader is terminated.
        """
        if self._terminated:
            return None

        try:
            chunk = self._fill()
        except Exception:
            self._terminated = True
            raise

        if not chunk:
            self._terminated = True
            logger.debug(f"Reached end of {self.name} [chunks={self._chunks_read}, bytes={self._bytes_read}]")
            return None

        self._bytes_read += len(chunk)
        self._chunks_read += 1
        return chunk

    def _fill(self) -> bytes:
        """Read until the chunk is full or EOF; OS reads may return short."""
        data = self._file.read(self.chunk_size)
        if not data or len(data) == self.chunk_size:
            return data

        parts = [data]
        missing = self.chunk_size - len(data)
        while missing > 0:
            more = self._file.read(missing)
            if not more:
                break
            parts.append(more)
            missing -= len(more)
        return b''.join(parts)

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        chunk = self.next_chunk()
        if chunk is None:
            raise StopIteration
        return chunk

    def close(self) -> None:
        """Close the file and terminate the sequence."""
        self._terminated = True
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> 'ChunkedFileReader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
