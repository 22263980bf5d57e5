import logging
from celery.exceptions import TimeoutError as CeleryTimeoutError
from flask import current_app
from livecollab.errors import BadRequestError, InfrastructureError
from livecollab.services.execution_orchestrator import ExecutionResult
from livecollab.services.process_runner import KILL_GRACE_SECONDS
from livecollab.tasks.execution_tasks import execute_code_task

# Configure logging
logger = logging.getLogger(__name__)


class CodeExecutionService:
    @staticmethod
    def execute_code(session_id, language, filename, code):
        """Run code for a session in a Celery worker and wait for the result.

        The compile/run steps never execute in the web process, so a hung
        program cannot hold up socket traffic.
        """
        if not language or not code:
            raise BadRequestError('language & code required')

        config = current_app.config
        # each of the two steps may spend KILL_GRACE_SECONDS draining after a kill
        wait = (config['COMPILE_TIMEOUT'] + config['RUN_TIMEOUT']
                + 2 * KILL_GRACE_SECONDS + config['RESULT_GRACE_SECONDS'])

        logger.info(f"🚀 Dispatching {language} run for session {session_id}")
        async_result = execute_code_task.apply_async(args=[session_id, language, filename, code])

        try:
            payload = async_result.get(timeout=wait)
        except CeleryTimeoutError as e:
            logger.error(f"❌ No result for session {session_id} within {wait}s")
            async_result.revoke(terminate=True)
            raise InfrastructureError(f"execution worker did not answer within {wait:g} seconds") from e

        if 'error' in payload:
            if payload.get('kind') == BadRequestError.__name__:
                raise BadRequestError(payload['error'])
            raise InfrastructureError(payload['error'])

        result = ExecutionResult.from_dict(payload)
        logger.info(f"📤 Run for session {session_id} finished: {result.status}")
        return result
