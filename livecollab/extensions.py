from flask import current_app
from flask_cors import CORS
from flask_socketio import SocketIO

socketio = SocketIO()
cors = CORS()

SYNCHRONIZER_EXTENSION = 'livecollab.synchronizer'
STORE_EXTENSION = 'livecollab.store'


def get_synchronizer():
    return current_app.extensions[SYNCHRONIZER_EXTENSION]


def get_store():
    return current_app.extensions[STORE_EXTENSION]
