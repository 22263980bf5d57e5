"""Durable per-session state: the shared file map and the presence set.

Two implementations share one interface:

* ``RedisWorkspaceStore`` is the production store. It is authoritative across
  every server process attached to the same Redis, so a session resolves to
  the same files and users no matter which instance observes it.
* ``MemoryWorkspaceStore`` keeps the same layout in process memory for
  single-process development and the test suite.

Presence is counted per display name: ``session:{id}:presence`` maps a name to
the number of attached connections bearing it, and ``session:{id}:users`` is
the visible set. A name leaves the visible set only when its count drops to
zero.
"""
import logging
import threading
from contextlib import contextmanager

import redis

from livecollab.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


def session_key(session_id):
    return f"session:{session_id}"


def files_key(session_id):
    return f"{session_key(session_id)}:files"


def users_key(session_id):
    return f"{session_key(session_id)}:users"


def presence_key(session_id):
    return f"{session_key(session_id)}:presence"


class WorkspaceStore:
    """Interface every store implements."""

    def get_files(self, session_id):
        raise NotImplementedError

    def set_file(self, session_id, filename, content):
        raise NotImplementedError

    def delete_file(self, session_id, filename):
        raise NotImplementedError

    def add_presence(self, session_id, user_name):
        """Record one more connection for ``user_name``; returns the new count."""
        raise NotImplementedError

    def remove_presence(self, session_id, user_name):
        """Release one connection for ``user_name``.

        Returns True when the name disappeared from the visible set.
        """
        raise NotImplementedError

    def list_users(self, session_id):
        raise NotImplementedError

    def ping(self):
        return True


# Both scripts run atomically inside Redis so two instances joining and
# leaving under the same name cannot interleave between count and set.
_JOIN_SCRIPT = """
local n = redis.call('HINCRBY', KEYS[1], ARGV[1], 1)
redis.call('SADD', KEYS[2], ARGV[1])
return n
"""

_LEAVE_SCRIPT = """
local n = tonumber(redis.call('HINCRBY', KEYS[1], ARGV[1], -1))
if n <= 0 then
  redis.call('HDEL', KEYS[1], ARGV[1])
  redis.call('SREM', KEYS[2], ARGV[1])
  return 1
end
return 0
"""


class RedisWorkspaceStore(WorkspaceStore):
    def __init__(self, client):
        self.client = client
        self._join = client.register_script(_JOIN_SCRIPT)
        self._leave = client.register_script(_LEAVE_SCRIPT)

    @classmethod
    def from_url(cls, url, socket_timeout=5.0):
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        logger.info(f"Workspace store using Redis at {url}")
        return cls(client)

    @contextmanager
    def _guard(self, action):
        try:
            yield
        except redis.RedisError as e:
            logger.error(f"Redis {action} failed: {e}")
            raise StoreUnavailableError(f"workspace store unavailable during {action}: {e}") from e

    def get_files(self, session_id):
        with self._guard('get_files'):
            return dict(self.client.hgetall(files_key(session_id)))

    def set_file(self, session_id, filename, content):
        with self._guard('set_file'):
            self.client.hset(files_key(session_id), filename, content)

    def delete_file(self, session_id, filename):
        with self._guard('delete_file'):
            self.client.hdel(files_key(session_id), filename)

    def add_presence(self, session_id, user_name):
        with self._guard('add_presence'):
            count = self._join(keys=[presence_key(session_id), users_key(session_id)], args=[user_name])
        return int(count)

    def remove_presence(self, session_id, user_name):
        with self._guard('remove_presence'):
            gone = self._leave(keys=[presence_key(session_id), users_key(session_id)], args=[user_name])
        return bool(int(gone))

    def list_users(self, session_id):
        with self._guard('list_users'):
            return sorted(self.client.smembers(users_key(session_id)))

    def ping(self):
        with self._guard('ping'):
            return bool(self.client.ping())


class MemoryWorkspaceStore(WorkspaceStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._files = {}
        self._presence = {}

    def get_files(self, session_id):
        with self._lock:
            return dict(self._files.get(session_id, {}))

    def set_file(self, session_id, filename, content):
        with self._lock:
            self._files.setdefault(session_id, {})[filename] = content

    def delete_file(self, session_id, filename):
        with self._lock:
            self._files.get(session_id, {}).pop(filename, None)

    def add_presence(self, session_id, user_name):
        with self._lock:
            counts = self._presence.setdefault(session_id, {})
            counts[user_name] = counts.get(user_name, 0) + 1
            return counts[user_name]

    def remove_presence(self, session_id, user_name):
        with self._lock:
            counts = self._presence.setdefault(session_id, {})
            remaining = counts.get(user_name, 0) - 1
            if remaining <= 0:
                counts.pop(user_name, None)
                return True
            counts[user_name] = remaining
            return False

    def list_users(self, session_id):
        with self._lock:
            return sorted(self._presence.get(session_id, {}))


def create_store(config):
    """Build the store named by ``WORKSPACE_STORE`` in a Flask config mapping."""
    kind = config.get('WORKSPACE_STORE', 'redis')
    if kind == 'memory':
        logger.info("Workspace store using process memory")
        return MemoryWorkspaceStore()
    if kind == 'redis':
        return RedisWorkspaceStore.from_url(config['REDIS_URL'], config.get('REDIS_SOCKET_TIMEOUT', 5.0))
    raise ValueError(f"Unknown WORKSPACE_STORE: {kind!r}")
