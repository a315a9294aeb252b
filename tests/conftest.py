"""
Sync Server Test Configuration

Central pytest configuration and shared fixtures for all tests.
"""

import os
import sys

# Add project root to path FIRST
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import tempfile
from pathlib import Path

import pytest

TEST_SECRET = "test-secret-0304"


# Temporary directory for test data
@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sync_config(temp_dir):
    from core.config import SyncConfig
    return SyncConfig(
        secret_key=TEST_SECRET,
        data_dir=temp_dir / "data",
        max_backups=3,
        body_limit_mb=1,
    )


@pytest.fixture
def backup_store(sync_config):
    from core.backup import RotatingBackupStore
    return RotatingBackupStore.from_config(sync_config)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEST_SECRET}"}


# Test client for FastAPI
@pytest.fixture
def client(sync_config, backup_store):
    from fastapi.testclient import TestClient
    from api.fastapi_app import create_app
    app = create_app(sync_config, store=backup_store)
    with TestClient(app) as test_client:
        yield test_client


# Async test client
@pytest.fixture
async def async_client(sync_config, backup_store):
    from httpx import AsyncClient, ASGITransport
    from api.fastapi_app import create_app
    app = create_app(sync_config, store=backup_store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def set_slot_mtime(store, slot: int, seconds: float):
    """Pin a slot file's modification time so ordering does not depend on clock resolution."""
    path = store.slot_path(slot)
    os.utime(path, (seconds, seconds))


@pytest.fixture
def age_slots():
    return set_slot_mtime


# Sample client state
@pytest.fixture
def sample_snapshot():
    return {
        "backup_at": "2024-01-01T00:00:00.000Z",
        "app": "TeleWindy",
        "data": {
            "contacts": [
                {"id": "c1", "name": "Windy", "history": [
                    {"role": "user", "content": "你好"},
                    {"role": "assistant", "content": "Hello!"},
                ]},
            ],
            "settings": {"API_URL": "https://api.example.com/v1", "MODEL": "gpt-4o"},
        },
    }
