import logging

logger = logging.getLogger(__name__)


class BroadcastBus:
    """Fan-out of one event to every connection attached to a session.

    ``emit`` is any callable ``emit(event, payload, to=connection_id)``;
    in the server it is ``SocketIO.emit``. Recipients come from the
    SessionRegistry at publish time, so the set is always the live one.
    """

    def __init__(self, registry, emit):
        self.registry = registry
        self._emit = emit

    def publish(self, session_id, event, payload, exclude=None):
        recipients = [c for c in self.registry.connections(session_id) if c != exclude]
        for connection_id in recipients:
            self._emit(event, payload, to=connection_id)
        logger.debug(f"{event} -> {len(recipients)} connection(s) in session {session_id}")
        return len(recipients)

    def send(self, connection_id, event, payload):
        """Deliver to a single connection."""
        self._emit(event, payload, to=connection_id)
