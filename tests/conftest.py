"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from student_registry.config import Settings
from student_registry.entrypoint import create_app
from student_registry.services.record_store import MemoryRecordStore
from student_registry.services.store_client import MemoryStoreClient


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at the in-memory backend and a private upload dir"""
    return Settings(store_backend="memory", upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def memory_client():
    """A connected in-memory store handle"""
    client = MemoryStoreClient()
    client.connect()
    return client


@pytest.fixture
def memory_store(memory_client):
    return MemoryRecordStore(memory_client)


@pytest.fixture
def app(settings, memory_client):
    return create_app(settings, store_client=memory_client)


@pytest.fixture
def client(app):
    """Test client with the application lifespan running"""
    with TestClient(app) as test_client:
        yield test_client
