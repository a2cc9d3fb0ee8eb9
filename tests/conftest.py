import pytest

from backend import MatchmakingBackend
from schemas.events import encode_outbound


class FakeConnection:
    """Records every frame the backend sends to it."""

    def __init__(self, connection_id):
        self.connection_id = connection_id
        self.room_id = None
        self.sent = []

    def send(self, event, payload=None):
        self.sent.append(encode_outbound(event, payload))

    def events(self):
        return [frame["event"] for frame in self.sent]

    def frames(self, event):
        return [frame["data"] for frame in self.sent if frame["event"] == event]


@pytest.fixture
def backend():
    return MatchmakingBackend()


@pytest.fixture
def connect(backend):
    """Register a fake connection with the given id and return it."""

    def _connect(connection_id):
        conn = FakeConnection(connection_id)
        backend.register(conn)
        return conn

    return _connect


@pytest.fixture
def paired(backend, connect):
    """Two connections, A waiting first, then B pairing with it."""
    a = connect("A")
    b = connect("B")
    backend.seek_partner("A")
    room = backend.seek_partner("B")
    return a, b, room
