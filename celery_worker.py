from livecollab import create_app
from livecollab.celery_app import celery

# Create Flask app context
app = create_app()
app.app_context().push()

# Import tasks to register them with Celery
from livecollab.tasks import execution_tasks  # noqa: E402,F401
