from flask_restx import Api

# Initialize API with Swagger documentation
api = Api(
    version='1.0',
    title='LiveCollab API',
    description='Shared session files and multi-language code execution for the collaborative editor',
    doc='/docs',
)
