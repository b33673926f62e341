"""Utility functions for CLI output."""

import sys
import time
from typing import Optional, TextIO

from cli.constants import GREEN, RESET


class ProgressPrinter:
    """Writes a single updating upload progress line."""

    def __init__(self, filename: str, total_size: Optional[int], stream: Optional[TextIO] = None, min_interval: float = 0.2):
        """
        Initialize the progress printer.

        Args:
            filename: Display name for the file
            total_size: Total size in bytes, or None if unknown
            stream: Output stream (defaults to sys.stderr)
            min_interval: Minimum seconds between redraws
        """
        self.filename = filename
        self.total_size = total_size
        self.stream = stream if stream is not None else sys.stderr
        self.min_interval = min_interval
        self._last_draw = 0.0
        self._drawn = False

    def __call__(self, sent: int) -> None:
        now = time.monotonic()
        done = self.total_size is not None and sent >= self.total_size
        if not done and now - self._last_draw < self.min_interval:
            return
        self._last_draw = now
        self._drawn = True

        if self.total_size:
            progress = (sent / self.total_size) * 100
            self.stream.write(
                f"\rUploading {self.filename}: {format_file_size(sent)} / "
                f"{format_file_size(self.total_size)} ({GREEN}{progress:.1f}%{RESET})"
            )
        else:
            self.stream.write(f"\rUploading {self.filename}: {format_file_size(sent)}")
        self.stream.flush()

    def finish(self) -> None:
        """End the progress line, if one was drawn."""
        if self._drawn:
            self.stream.write('\n')
            self.stream.flush()
            self._drawn = False


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(seconds, 60)
    if minutes < 60:
        return f"{int(minutes)}m{secs:04.1f}s"
    hours, minutes = divmod(minutes, 60)
    return f"{int(hours)}h{int(minutes):02d}m{int(secs):02d}s"
