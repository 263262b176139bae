import pytest

from arango_db import Database

from .helpers import FakeClient


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def db(client):
    return Database(client, "test_db")
