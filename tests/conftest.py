"""
Shared pytest fixtures for sqld tests.

This module provides:
- A sandbox working directory per test (file-backed URIs are relative)
- A unique shared-cache in-memory URI per test, installed as the default
- Settings-cache and structlog resets for test isolation

Usage:
    def test_something(conn):
        req = Req(conn)
        ...
"""

from pathlib import Path
from uuid import uuid4

import pytest
import structlog

from sqld import Conn
from sqld.settings import clear_settings_cache


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without an explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def sandbox(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each test from an empty directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def mem_uri(monkeypatch: pytest.MonkeyPatch) -> str:
    """Unique shared-cache in-memory database, used as the default URI."""
    uri = f"file:mem_{uuid4().hex}?mode=memory&cache=shared"
    monkeypatch.setenv("SQLD_DEFAULT_URI", uri)
    return uri


@pytest.fixture(autouse=True)
def _reset_settings_and_logging():
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()


# =============================================================================
# Connections
# =============================================================================


@pytest.fixture
def conn(mem_uri: str):
    """Connection to the default (shared-cache in-memory) database."""
    c = Conn()
    yield c
    c.close()


@pytest.fixture
def file_conn(sandbox: Path):
    """Connection to a file-backed database in the sandbox."""
    c = Conn("file:file?mode=rwc")
    yield c
    c.close()
