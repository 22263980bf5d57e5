import logging
from flask import current_app
from livecollab.celery_app import celery
from livecollab.errors import LiveCollabError

logger = logging.getLogger(__name__)

ORCHESTRATOR_EXTENSION = 'livecollab.orchestrator'


@celery.task(name='execute_code_task', bind=True)
def execute_code_task(self, session_id, language, filename, source_code):
    """Compile and run one submission in the worker.

    Returns the serialized ExecutionResult. Request and infrastructure
    errors come back as ``{'error': ..., 'kind': ...}`` so the web process
    can tell them apart without unpickling exceptions.
    """
    orchestrator = current_app.extensions[ORCHESTRATOR_EXTENSION]
    logger.info(f"Task {self.request.id}: {language} run for session {session_id}")

    try:
        result = orchestrator.run(session_id, language, filename, source_code)
    except LiveCollabError as e:
        logger.error(f"Task {self.request.id} failed: {e}")
        return {'error': str(e), 'kind': type(e).__name__}

    return result.to_dict()
