import logging
from flask import Flask, jsonify
from livecollab.config import Config
from livecollab.celery_app import init_celery
from livecollab.api import api
from livecollab.extensions import cors, socketio, STORE_EXTENSION, SYNCHRONIZER_EXTENSION
from livecollab.models.workspace_store import create_store
from livecollab.services.broadcast_bus import BroadcastBus
from livecollab.services.execution_orchestrator import ExecutionOrchestrator
from livecollab.services.session_registry import SessionRegistry
from livecollab.services.session_synchronizer import SessionSynchronizer
from livecollab.tasks.execution_tasks import ORCHESTRATOR_EXTENSION
# Socket handlers must be declared before the first socketio.init_app
from livecollab.routes import socket_events  # noqa: F401

logger = logging.getLogger(__name__)


def create_app(config_object=Config, store=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    cors.init_app(app, resources={r"/*": {"origins": app.config['CORS_ORIGINS']}})
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
    )
    init_celery(app)

    # Session synchronization: durable store + in-process registry + fan-out
    store = store if store is not None else create_store(app.config)
    registry = SessionRegistry()
    bus = BroadcastBus(registry, socketio.emit)
    app.extensions[STORE_EXTENSION] = store
    app.extensions[SYNCHRONIZER_EXTENSION] = SessionSynchronizer(store, registry, bus)
    app.extensions[ORCHESTRATOR_EXTENSION] = ExecutionOrchestrator.from_config(app.config)

    # Initialize API with Swagger
    api.init_app(app)

    # Register API namespaces
    from livecollab.routes.execution_api import ns as execution_ns
    from livecollab.routes.files_api import ns as files_ns
    from livecollab.routes.suggest_api import ns as suggest_ns
    api.add_namespace(execution_ns, path='/run')
    api.add_namespace(files_ns, path='/files')
    api.add_namespace(suggest_ns, path='/ai-suggest')

    from livecollab.routes import health_routes
    app.register_blueprint(health_routes.bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    logger.info(f"LiveCollab app created (store: {app.config['WORKSPACE_STORE']})")
    return app
