import pytest
from fastapi.testclient import TestClient

from courtdesk.main import app
from tests.helpers import NOW


@pytest.fixture(name="now")
def now_fixture():
    return NOW


@pytest.fixture(name="client")
def client_fixture():
    """Provide a test client for the API (no state to reset; every request carries its own board)"""
    with TestClient(app) as client:
        yield client
