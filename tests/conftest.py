"""Shared pytest fixtures for all tests."""

import logging

import pytest
import httpx

from cli.config import ENV_OVERRIDES


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep STREAMLOAD_* variables from the host out of the tests."""
    for var in ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv('LOG_LEVEL', raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging during a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .streamload directory
    """
    config_dir = tmp_path / '.streamload'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def make_file(tmp_path):
    """
    Factory writing a file of the given content.

    Returns:
        Callable(content: bytes, name: str = 'data.bin') -> Path
    """
    def _make(content: bytes, name: str = 'data.bin'):
        path = tmp_path / name
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def sample_file(make_file):
    """A 10 KiB file with a repeating byte pattern."""
    return make_file(bytes(range(256)) * 40, 'sample.orc')


@pytest.fixture
def raw_options(sample_file):
    """Valid raw options for uploading sample_file."""
    return {
        'source_path': str(sample_file),
        'server_url': 'http://ingest.test:8123/',
        'table': 'events',
        'format': 'ORC',
        'threads': '8',
        'chunk_size': '4096',
        'user': 'default',
        'password': 'secret',
    }


@pytest.fixture
def ok_transport():
    """Mock transport that records request bodies and answers 200."""
    received = []

    def handler(request):
        received.append(request)
        return httpx.Response(200, text='Ok.\n')

    transport = httpx.MockTransport(handler)
    transport.received = received
    return transport
