"""Session lifecycle and shared-file mutation.

Every mutation of a session, together with the broadcast it causes, runs
inside that session's lock. Events therefore reach each connection in the
order the synchronizer processed them. Sessions never share a lock.

File writes are whole-content overwrites in processing order: the last
write to arrive wins and stale writes are neither detected nor rejected.
"""
import logging
import threading
import time
import uuid

from livecollab.errors import BadRequestError
from livecollab.services.session_registry import Binding

logger = logging.getLogger(__name__)

ANONYMOUS = 'Anonymous'


class SessionSynchronizer:
    def __init__(self, store, registry, bus):
        self.store = store
        self.registry = registry
        self.bus = bus
        self._locks_guard = threading.Lock()
        self._locks = {}

    def _session_lock(self, session_id):
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    # --- presence -----------------------------------------------------

    def join(self, connection_id, session_id, user_name=None):
        """Attach a connection and hand it the current snapshot.

        The snapshot goes out as ``session:init`` to the joiner inside the
        session lock, so no later broadcast can overtake it.
        """
        user_name = user_name or ANONYMOUS
        wanted = Binding(connection_id, session_id, user_name)
        while True:
            previous = self.registry.lookup(connection_id)
            if previous is not None and previous != wanted:
                # one binding per connection: moving means leaving first
                self.leave(connection_id)

            with self._session_lock(session_id):
                current = self.registry.lookup(connection_id)
                if current is not None and current != wanted:
                    # another join from this connection got in first
                    continue
                fresh = current is None
                if fresh:
                    self.store.add_presence(session_id, user_name)
                    self.registry.bind(connection_id, session_id, user_name)
                snapshot = {
                    'files': self.store.get_files(session_id),
                    'users': self.store.list_users(session_id),
                }
                self.bus.send(connection_id, 'session:init', snapshot)
                if fresh:
                    self.bus.publish(session_id, 'user:join', {'userName': user_name}, exclude=connection_id)
            break

        logger.info(f"👤 {user_name} joined session {session_id} ({connection_id})")
        return snapshot

    def leave(self, connection_id):
        """Release the connection's binding; returns it, or None if unbound."""
        binding = self.registry.lookup(connection_id)
        if binding is None:
            return None

        with self._session_lock(binding.session_id):
            released = self.registry.release(connection_id)
            if released is None:
                return None
            gone = self.store.remove_presence(released.session_id, released.user_name)
            if gone:
                self.bus.publish(released.session_id, 'user:left', {'userName': released.user_name})

        logger.info(f"👋 {released.user_name} left session {released.session_id} ({connection_id})")
        return released

    # --- files --------------------------------------------------------

    def update_file(self, connection_id, session_id, filename, content):
        if not filename or content is None:
            logger.debug(f"Dropping file:update with missing filename/content in session {session_id}")
            return False
        with self._session_lock(session_id):
            self.store.set_file(session_id, filename, content)
            self.bus.publish(
                session_id,
                'file:updated',
                {'session': session_id, 'filename': filename, 'content': content},
                exclude=connection_id,
            )
        return True

    def create_file(self, connection_id, session_id, filename, content=''):
        if not filename:
            logger.debug(f"Dropping file:create without filename in session {session_id}")
            return False
        content = '' if content is None else content
        with self._session_lock(session_id):
            self.store.set_file(session_id, filename, content)
            self.bus.publish(session_id, 'file:created', {'session': session_id, 'filename': filename, 'content': content})
        logger.info(f"📄 {filename} created in session {session_id}")
        return True

    def delete_file(self, connection_id, session_id, filename):
        if not filename:
            logger.debug(f"Dropping file:delete without filename in session {session_id}")
            return False
        with self._session_lock(session_id):
            self.store.delete_file(session_id, filename)
            self.bus.publish(session_id, 'file:deleted', {'session': session_id, 'filename': filename})
        logger.info(f"🗑️ {filename} deleted from session {session_id}")
        return True

    def save_file(self, session_id, filename, content):
        """HTTP save: there is no originating connection, so everyone is told."""
        if not filename or content is None:
            raise BadRequestError('filename & content required')
        with self._session_lock(session_id):
            self.store.set_file(session_id, filename, content)
            self.bus.publish(session_id, 'file:updated', {'session': session_id, 'filename': filename, 'content': content})

    def files(self, session_id):
        return self.store.get_files(session_id)

    # --- chat ---------------------------------------------------------

    def chat(self, connection_id, session_id, user_name, text):
        if not text:
            return None
        if not user_name:
            binding = self.registry.lookup(connection_id)
            user_name = binding.user_name if binding is not None else ANONYMOUS
        message = {
            'id': uuid.uuid4().hex,
            'userName': user_name,
            'text': text,
            'time': int(time.time() * 1000),
        }
        with self._session_lock(session_id):
            self.bus.publish(session_id, 'chat:message', message)
        return message
