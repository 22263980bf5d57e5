import os
import re
import shutil
import logging
import tempfile
from contextlib import contextmanager

from livecollab.errors import InfrastructureError

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r'[^A-Za-z0-9._-]')


def safe_segment(name):
    """Turn a session id into a single, harmless directory name."""
    cleaned = _UNSAFE.sub('_', name or '').strip('.')
    return cleaned[:128] or 'default'


class ExecutionWorkspace:
    """Filesystem scopes for running submitted programs.

    Each session gets a directory under ``root``; every run request gets its
    own ``run-*`` directory inside it, so two users running at the same time
    never see each other's sources or binaries. The request directory is
    removed when the ``request_scope`` block exits, timeout or not.
    """

    def __init__(self, root):
        self.root = root

    def session_dir(self, session_id):
        path = os.path.join(self.root, safe_segment(session_id))
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise InfrastructureError(f"cannot create workspace for session {session_id}: {e}") from e
        return path

    @contextmanager
    def request_scope(self, session_id):
        parent = self.session_dir(session_id)
        try:
            workdir = tempfile.mkdtemp(prefix='run-', dir=parent)
        except OSError as e:
            raise InfrastructureError(f"cannot create run directory: {e}") from e
        try:
            yield workdir
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    @staticmethod
    def write_source(workdir, filename, content):
        path = os.path.join(workdir, filename)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise InfrastructureError(f"cannot write {filename}: {e}") from e
        return path
