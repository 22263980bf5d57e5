from livecollab import create_app
from livecollab.extensions import socketio

app = create_app()

if __name__ == "__main__":
    # Must bind to 0.0.0.0 for Docker
    socketio.run(
        app,
        host='0.0.0.0',  # Listen on all interfaces
        port=app.config['PORT'],
        debug=app.config['DEBUG'],
        allow_unsafe_werkzeug=True,
    )
