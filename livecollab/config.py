import os
import sys
import json
import tempfile
from pathlib import Path
from dotenv import load_dotenv

# Get the base directory (project root)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / '.env'

load_dotenv(ENV_FILE, override=True)


def _env_bool(name, default='False'):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Workspace store (files + presence)
    WORKSPACE_STORE = os.getenv('WORKSPACE_STORE', 'redis')
    REDIS_URL = os.getenv('REDIS_URL', 'redis://127.0.0.1:6379/0')
    REDIS_SOCKET_TIMEOUT = float(os.getenv('REDIS_SOCKET_TIMEOUT', '5'))
    DEFAULT_SESSION = os.getenv('DEFAULT_SESSION', 'default')

    # Celery Configuration
    CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL)
    CELERY_RESULT_BACKEND = os.getenv('CELERY_RESULT_BACKEND', REDIS_URL)
    CELERY_TASK_ALWAYS_EAGER = _env_bool('CELERY_TASK_ALWAYS_EAGER')
    CELERY_TIMEZONE = 'UTC'

    # Execution limits
    EXECUTION_ROOT = os.getenv('EXECUTION_ROOT', str(BASE_DIR / 'temp'))
    COMPILE_TIMEOUT = float(os.getenv('COMPILE_TIMEOUT', '10'))
    RUN_TIMEOUT = float(os.getenv('RUN_TIMEOUT', '15'))
    RESULT_GRACE_SECONDS = float(os.getenv('RESULT_GRACE_SECONDS', '5'))
    MAX_OUTPUT_SIZE = int(os.getenv('MAX_OUTPUT_SIZE', str(1024 * 100)))

    # Toolchains
    PYTHON_BIN = os.getenv('PYTHON_BIN', sys.executable or 'python')
    NODE_BIN = os.getenv('NODE_BIN', 'node')
    JAVA_HOME = os.getenv('JAVA_HOME')
    # e.g. {"ruby": {"kind": "interpreted", "filename": "main.rb", "run": ["ruby", "{source}"]}}
    EXTRA_LANGUAGES = json.loads(os.getenv('EXTRA_LANGUAGES', '{}'))

    # Transport
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')
    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'threading')
    PORT = int(os.getenv('PORT', '4000'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    DEBUG = _env_bool('DEBUG')


class TestConfig(Config):
    TESTING = True
    WORKSPACE_STORE = 'memory'
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'
    CELERY_TASK_ALWAYS_EAGER = True
    EXECUTION_ROOT = os.path.join(tempfile.gettempdir(), 'livecollab-test')
    COMPILE_TIMEOUT = 5
    RUN_TIMEOUT = 2
    EXTRA_LANGUAGES = {}
    PYTHON_BIN = sys.executable
