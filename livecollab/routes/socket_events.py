"""Real-time channel: Socket.IO events bound to the SessionSynchronizer.

A bad payload from one client is dropped, never raised, so it cannot knock
over a shared session. Store failures are logged and the event is lost.
"""
import logging
from functools import wraps

from flask import current_app, request

from livecollab.errors import LiveCollabError
from livecollab.extensions import get_synchronizer, socketio

logger = logging.getLogger(__name__)

# Fields that reach the store or other clients; anything but text is dropped
TEXT_FIELDS = ('userName', 'filename', 'content', 'text')


def _session_of(data):
    session_id = data.get('session') or data.get('sessionId') or current_app.config['DEFAULT_SESSION']
    return str(session_id)


def _guarded(handler):
    @wraps(handler)
    def wrapper(data=None):
        if not isinstance(data, dict):
            logger.warning(f"Dropping {handler.__name__} from {request.sid}: payload is not an object")
            return None
        bad = [key for key in TEXT_FIELDS if data.get(key) is not None and not isinstance(data[key], str)]
        if bad:
            logger.warning(f"Dropping {handler.__name__} from {request.sid}: non-string {', '.join(bad)}")
            return None
        try:
            return handler(data)
        except LiveCollabError:
            logger.exception(f"{handler.__name__} from {request.sid} failed")
            return None
    return wrapper


@socketio.on('connect')
def on_connect(auth=None):
    logger.debug(f"Connection opened: {request.sid}")


@socketio.on('join')
@_guarded
def on_join(data):
    get_synchronizer().join(request.sid, _session_of(data), data.get('userName'))


@socketio.on('file:update')
@_guarded
def on_file_update(data):
    get_synchronizer().update_file(request.sid, _session_of(data), data.get('filename'), data.get('content'))


@socketio.on('file:create')
@_guarded
def on_file_create(data):
    get_synchronizer().create_file(request.sid, _session_of(data), data.get('filename'), data.get('content', ''))


@socketio.on('file:delete')
@_guarded
def on_file_delete(data):
    get_synchronizer().delete_file(request.sid, _session_of(data), data.get('filename'))


@socketio.on('chat:message')
@_guarded
def on_chat_message(data):
    get_synchronizer().chat(request.sid, _session_of(data), data.get('userName'), data.get('text'))


@socketio.on('disconnect')
def on_disconnect(reason=None):
    try:
        get_synchronizer().leave(request.sid)
    except LiveCollabError:
        logger.exception(f"Cleanup for {request.sid} failed")
