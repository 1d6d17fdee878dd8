"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure polydash is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


@pytest.fixture
def db():
    """Connected in-memory database with the full schema."""
    from polydash.config import StorageConfig
    from polydash.storage.database import Database

    database = Database(StorageConfig(sqlite_path=":memory:"))
    database.connect()
    yield database
    database.close()
