"""Bounded-memory streaming loader: chunk reader, request builder, uploader."""

from loader.chunk_reader import ChunkedFileReader
from loader.config_builder import ConfigBuilder, UploadOptions, validate_options
from loader.http_uploader import ChunkFeed, StreamingHttpUploader
from loader.pipeline import run_upload

__all__ = [
    "ChunkedFileReader",
    "ChunkFeed",
    "ConfigBuilder",
    "StreamingHttpUploader",
    "UploadOptions",
    "run_upload",
    "validate_options",
]
