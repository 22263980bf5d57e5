import pytest

from livecollab import create_app
from livecollab.config import TestConfig
from livecollab.models.workspace_store import MemoryWorkspaceStore
from livecollab.services.broadcast_bus import BroadcastBus
from livecollab.services.session_registry import SessionRegistry
from livecollab.services.session_synchronizer import SessionSynchronizer


class RecordingEmitter:
    """Stands in for SocketIO.emit and remembers every delivery."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, to=None):
        self.sent.append((to, event, payload))

    def received_by(self, connection_id):
        return [(event, payload) for to, event, payload in self.sent if to == connection_id]

    def events_for(self, connection_id):
        return [event for event, _ in self.received_by(connection_id)]


@pytest.fixture
def store():
    return MemoryWorkspaceStore()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def synchronizer(store, registry, emitter):
    return SessionSynchronizer(store, registry, BroadcastBus(registry, emitter))


@pytest.fixture
def app(store, tmp_path):
    class Config(TestConfig):
        EXECUTION_ROOT = str(tmp_path / 'runs')

    return create_app(Config, store=store)


@pytest.fixture
def client(app):
    return app.test_client()
