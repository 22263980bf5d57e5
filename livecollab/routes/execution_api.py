import logging
from flask import current_app
from flask_restx import Namespace, Resource, fields
from livecollab.errors import BadRequestError, InfrastructureError
from livecollab.services.code_execution_service import CodeExecutionService

logger = logging.getLogger(__name__)

# Create namespace
ns = Namespace('run', description='Compile and run the current file')

run_request_model = ns.model('RunRequest', {
    'session': fields.String(required=False, description='Session identifier', default='default'),
    'language': fields.String(
        required=True,
        description='Language to run',
        enum=['python', 'javascript', 'node', 'java', 'c', 'cpp', 'html'],
    ),
    'filename': fields.String(required=False, description='Source file name'),
    'code': fields.String(required=True, description='Source code'),
})

run_response_model = ns.model('RunResponse', {
    'ok': fields.Boolean(description='Whether the program compiled and exited cleanly'),
    'output': fields.String(description='Program output, or diagnostics on failure'),
    'status': fields.String(
        description='Execution status',
        enum=['COMPLETED', 'COMPILE_FAILED', 'FAILED', 'TIMEOUT', 'UNSUPPORTED'],
    ),
    'execution_time_ms': fields.Integer(description='Execution time in milliseconds'),
})

error_model = ns.model('Error', {
    'message': fields.String(description='Error message')
})


@ns.route('')
class Run(Resource):
    @ns.doc('run_code')
    @ns.expect(run_request_model, validate=False)
    @ns.response(200, 'Program finished (successfully or not)', run_response_model)
    @ns.response(400, 'language & code required', error_model)
    @ns.response(500, 'Server error', run_response_model)
    def post(self):
        """Run code and wait for its output

        Example payload:
        {
            "session": "demo",
            "language": "python",
            "code": "print('Hello World!')"
        }
        """
        data = ns.payload or {}
        session_id = str(data.get('session') or data.get('sessionId') or current_app.config['DEFAULT_SESSION'])

        try:
            result = CodeExecutionService.execute_code(
                session_id, data.get('language'), data.get('filename'), data.get('code')
            )
        except BadRequestError as e:
            ns.abort(400, str(e))
        except InfrastructureError as e:
            logger.error(f"Run error: {e}")
            return {'ok': False, 'output': f"Server error: {e}", 'status': 'FAILED', 'execution_time_ms': 0}, 500

        return result.to_dict(), 200
