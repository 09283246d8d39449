"""Shared fixtures for the file manager tests."""
import httpx
import pytest

from file_manager.api_client import FileApiClient
from file_manager.services.workspace import Workspace
from tests.fixtures.files_api import BASE_URL, FakeFilesApi, record_dict


@pytest.fixture
def fake_api():
    """Empty in-memory files service."""
    return FakeFilesApi()


@pytest.fixture
def seeded_api():
    """Files service holding three records: a (image), b (pdf), c (text)."""
    return FakeFilesApi([
        record_dict("a", "photo.png", size=2048, mimetype="image/png"),
        record_dict("b", "report.pdf", size=1536, mimetype="application/pdf"),
        record_dict("c", "notes.txt", size=10, mimetype="text/plain", description="meeting notes"),
    ])


def _client(handler):
    return FileApiClient(BASE_URL, transport=httpx.MockTransport(handler))


@pytest.fixture
def api_client(fake_api):
    return _client(fake_api)


@pytest.fixture
def seeded_client(seeded_api):
    return _client(seeded_api)


@pytest.fixture
def workspace(api_client):
    ws = Workspace(api_client)
    yield ws
    ws.close()


@pytest.fixture
def seeded_workspace(seeded_client):
    ws = Workspace(seeded_client)
    yield ws
    ws.close()


@pytest.fixture
def saved():
    """Collects downloads instead of writing them to disk; pass ``saved.append`` as saver."""
    return []
