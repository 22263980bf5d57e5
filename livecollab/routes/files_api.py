import logging
from flask_restx import Namespace, Resource, fields
from livecollab.errors import BadRequestError, InfrastructureError
from livecollab.extensions import get_synchronizer

logger = logging.getLogger(__name__)

ns = Namespace('files', description='Shared session files')

files_response_model = ns.model('FilesResponse', {
    'files': fields.Raw(description='Map of filename to content'),
})

save_request_model = ns.model('SaveFile', {
    'filename': fields.String(required=True, description='File name'),
    'content': fields.String(required=True, description='Full replacement content'),
})

ok_model = ns.model('Ok', {
    'ok': fields.Boolean(description='Saved'),
})


@ns.route('/<string:session_id>')
@ns.param('session_id', 'The session identifier')
class SessionFiles(Resource):
    @ns.doc('get_files')
    @ns.response(200, 'Success', files_response_model)
    @ns.response(503, 'Workspace store unavailable')
    def get(self, session_id):
        """Every file in the session"""
        try:
            files = get_synchronizer().files(session_id)
        except InfrastructureError as e:
            ns.abort(503, str(e))
        return {'files': files}, 200


@ns.route('/<string:session_id>/save')
@ns.param('session_id', 'The session identifier')
class SaveFile(Resource):
    @ns.doc('save_file')
    @ns.expect(save_request_model, validate=False)
    @ns.response(200, 'Saved and broadcast', ok_model)
    @ns.response(400, 'filename & content required')
    @ns.response(503, 'Workspace store unavailable')
    def post(self, session_id):
        """Overwrite a file and tell everyone in the session"""
        data = ns.payload or {}
        try:
            get_synchronizer().save_file(session_id, data.get('filename'), data.get('content'))
        except BadRequestError as e:
            ns.abort(400, str(e))
        except InfrastructureError as e:
            ns.abort(503, str(e))
        logger.info(f"💾 {data.get('filename')} saved in session {session_id}")
        return {'ok': True}, 200
