"""
Shared pytest fixtures.

The environment is pointed at an in-memory database and the threading
Socket.IO mode before ``app`` is first imported, so tests never touch the
on-disk SQLite file or monkey-patch the interpreter with gevent.
"""

import os
import random

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SOCKETIO_ASYNC_MODE", "threading")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from ultimate.opponent import LocalOpponent
from ultimate.rules import GameState, Mark, Status

B, R, E = Mark.BLUE, Mark.RED, Mark.EMPTY


def board(spec):
    """Nine marks from a string like 'BR.B.R...' ('.' is empty)."""
    lookup = {"B": B, "R": R, ".": E}
    assert len(spec) == 9
    return [lookup[ch] for ch in spec]


@pytest.fixture
def state():
    return GameState()


@pytest.fixture
def engine():
    return LocalOpponent(random.Random(1234))


@pytest.fixture
def server():
    import app as server
    server.app.config["TESTING"] = True
    with server.app.app_context():
        server.db.drop_all()
        server.db.create_all()
    server.seats.clear()
    server.seated.clear()
    yield server
    server.seats.clear()
    server.seated.clear()


@pytest.fixture
def client(server):
    return server.app.test_client()


@pytest.fixture
def sio(server, client):
    c = server.socketio.test_client(server.app, flask_test_client=client)
    yield c
    if c.is_connected():
        c.disconnect()
