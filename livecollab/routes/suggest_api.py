from flask_restx import Namespace, Resource, fields

ns = Namespace('ai-suggest', description='AI suggestions (disabled)')

DISABLED_MESSAGE = 'AI suggestions are temporarily disabled.'

suggestion_model = ns.model('Suggestion', {
    'suggestion': fields.String(description='Suggestion text'),
})


@ns.route('')
class Suggest(Resource):
    @ns.doc('ai_suggest')
    @ns.marshal_with(suggestion_model)
    def post(self):
        """Always answers that suggestions are disabled"""
        return {'suggestion': DISABLED_MESSAGE}, 200
