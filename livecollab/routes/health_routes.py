import redis
from flask import Blueprint, jsonify
from livecollab.errors import InfrastructureError
from livecollab.extensions import get_store
from livecollab.models.workspace_store import RedisWorkspaceStore

bp = Blueprint('health', __name__)


@bp.route('/health/redis')
def check_redis():
    """Check the workspace store connection"""
    store = get_store()
    if not isinstance(store, RedisWorkspaceStore):
        return jsonify({"status": "memory", "message": "Workspace store is in-process"}), 200

    try:
        store.ping()
        info = store.client.info()

        return jsonify({
            "status": "connected",
            "redis_version": info.get('redis_version'),
            "connected_clients": info.get('connected_clients'),
            "used_memory_human": info.get('used_memory_human'),
            "uptime_in_seconds": info.get('uptime_in_seconds')
        }), 200

    except (InfrastructureError, redis.RedisError) as e:
        return jsonify({
            "status": "disconnected",
            "error": str(e),
            "message": "Cannot connect to Redis"
        }), 503


@bp.route('/health/celery')
def check_celery():
    """Check Celery worker status"""
    try:
        from livecollab.celery_app import celery

        if celery.conf.task_always_eager:
            return jsonify({"status": "eager", "message": "Tasks run in the web process"}), 200

        # Check active workers
        inspect = celery.control.inspect()
        active_workers = inspect.active()
        stats = inspect.stats()

        if active_workers:
            return jsonify({
                "status": "running",
                "workers": list(active_workers.keys()),
                "stats": stats
            }), 200
        else:
            return jsonify({
                "status": "no_workers",
                "message": "No Celery workers are running"
            }), 503

    except Exception as e:
        return jsonify({
            "status": "error",
            "error": str(e),
            "message": "Cannot connect to Celery"
        }), 500
