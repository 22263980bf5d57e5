import logging
import threading
import zlib
from collections import namedtuple

logger = logging.getLogger(__name__)

Binding = namedtuple('Binding', ['connection_id', 'session_id', 'user_name'])


class _Shard:
    def __init__(self):
        self.lock = threading.Lock()
        self.members = {}  # session_id -> {connection_id: Binding}


class SessionRegistry:
    """Which connection is attached to which session, under which name.

    Sessions are spread over shards by a stable hash of their id; each shard
    has its own lock so attaching to one session never waits on another's
    shard. The connection index is a second, separately locked map.
    """

    def __init__(self, shard_count=16):
        self._shards = [_Shard() for _ in range(shard_count)]
        self._index_lock = threading.Lock()
        self._by_connection = {}

    def _shard(self, session_id):
        return self._shards[zlib.crc32(session_id.encode('utf-8')) % len(self._shards)]

    def bind(self, connection_id, session_id, user_name):
        """Bind a connection, returning ``(binding, previous)``.

        ``previous`` is the binding this call replaced, or None. A connection
        owns exactly one binding, so binding again releases the old one.
        """
        binding = Binding(connection_id, session_id, user_name)
        with self._index_lock:
            previous = self._by_connection.get(connection_id)
            self._by_connection[connection_id] = binding

        if previous is not None and previous != binding:
            self._detach(previous)

        shard = self._shard(session_id)
        with shard.lock:
            shard.members.setdefault(session_id, {})[connection_id] = binding
        return binding, previous

    def release(self, connection_id):
        """Drop the connection's binding; returns it, or None if unbound."""
        with self._index_lock:
            binding = self._by_connection.pop(connection_id, None)
        if binding is not None:
            self._detach(binding)
        return binding

    def _detach(self, binding):
        shard = self._shard(binding.session_id)
        with shard.lock:
            members = shard.members.get(binding.session_id)
            if members is None:
                return
            if members.get(binding.connection_id) == binding:
                del members[binding.connection_id]
            if not members:
                del shard.members[binding.session_id]

    def lookup(self, connection_id):
        with self._index_lock:
            return self._by_connection.get(connection_id)

    def connections(self, session_id):
        shard = self._shard(session_id)
        with shard.lock:
            return list(shard.members.get(session_id, {}))
