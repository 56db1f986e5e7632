"""Shared fixtures for soj_client tests."""
import httpx
import pytest

from soj_client.credential_store import CredentialStore
from soj_client.request import create_client
from soj_client.session import MemoryNavigator
from soj_client.storage import MemoryStorage
from soj_client.tests.fakes import FakeBackend


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return CredentialStore(storage)


@pytest.fixture
def navigator():
    return MemoryNavigator("/problems/42")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_client(storage, navigator):
    """Factory: ApiClient over a MockTransport wrapping the given handler, sharing storage/navigator."""

    def _make(handler, refresh_timeout=5.0):
        return create_client(
            "http://soj.test",
            storage=storage,
            navigator=navigator,
            refresh_timeout=refresh_timeout,
            transport=httpx.MockTransport(handler),
        )

    return _make
