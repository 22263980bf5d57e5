from celery import Celery, Task
from flask import has_app_context

_flask_app = None


class ContextTask(Task):
    """Run task bodies inside the Flask app context"""

    def __call__(self, *args, **kwargs):
        if has_app_context() or _flask_app is None:
            return self.run(*args, **kwargs)
        with _flask_app.app_context():
            return self.run(*args, **kwargs)


celery = Celery('livecollab', task_cls=ContextTask)


def init_celery(app):
    """Initialize Celery with Flask app context"""
    global _flask_app
    _flask_app = app
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_serializer='json',
        result_serializer='json',
        accept_content=['json'],
        timezone=app.config.get('CELERY_TIMEZONE', 'UTC'),
        enable_utc=True,
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
        imports=['livecollab.tasks.execution_tasks'],
    )
    return celery
