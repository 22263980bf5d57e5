"""Compile/run orchestration for submitted programs.

A failing user program is never an exception here: compile errors, runtime
errors and timeouts all come back as an ``ExecutionResult`` with
``success=False`` and the diagnostic text. Exceptions are reserved for bad
requests (``BadRequestError``) and for the server's own failures
(``InfrastructureError``).
"""
import re
import time
import logging
from dataclasses import dataclass

from livecollab.errors import BadRequestError
from livecollab.services.execution_workspace import ExecutionWorkspace
from livecollab.services.language_adapters import build_adapters
from livecollab.services.process_runner import run_command

logger = logging.getLogger(__name__)

COMPLETED = 'COMPLETED'
COMPILE_FAILED = 'COMPILE_FAILED'
FAILED = 'FAILED'
TIMEOUT = 'TIMEOUT'
UNSUPPORTED = 'UNSUPPORTED'

UNSUPPORTED_MESSAGE = 'Language not supported'
TRUNCATED_MARKER = "\n... [Output truncated - exceeded limit]"

SAFE_NAME = re.compile(r'^(?!\.+$)[A-Za-z0-9._-]{1,128}$')  # no slashes/paths, no spaces, not . or ..


@dataclass
class ExecutionResult:
    success: bool
    output: str
    status: str
    execution_time_ms: int = 0

    def to_dict(self):
        return {
            'ok': self.success,
            'output': self.output,
            'status': self.status,
            'execution_time_ms': self.execution_time_ms,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            success=bool(data.get('ok')),
            output=data.get('output', ''),
            status=data.get('status', FAILED),
            execution_time_ms=data.get('execution_time_ms', 0),
        )


def _seconds(value):
    return f"{value:g}"


class ExecutionOrchestrator:
    def __init__(self, adapters, workspace, compile_timeout=10, run_timeout=15, max_output_size=1024 * 100):
        self.adapters = adapters
        self.workspace = workspace
        self.compile_timeout = compile_timeout
        self.run_timeout = run_timeout
        self.max_output_size = max_output_size

    @classmethod
    def from_config(cls, config):
        return cls(
            build_adapters(config),
            ExecutionWorkspace(config['EXECUTION_ROOT']),
            compile_timeout=config.get('COMPILE_TIMEOUT', 10),
            run_timeout=config.get('RUN_TIMEOUT', 15),
            max_output_size=config.get('MAX_OUTPUT_SIZE', 1024 * 100),
        )

    def run(self, session_id, language, filename, source):
        if not language or not source:
            raise BadRequestError('language & code required')
        if filename and not SAFE_NAME.match(filename):
            raise BadRequestError(f"invalid filename: {filename}")

        adapter = self.adapters.get(language)
        if adapter is None:
            logger.warning(f"Unsupported language: {language}")
            return ExecutionResult(False, UNSUPPORTED_MESSAGE, UNSUPPORTED)

        if adapter.passthrough:
            return ExecutionResult(True, source, COMPLETED)

        start_time = time.time()
        with self.workspace.request_scope(session_id) as workdir:
            source_name, entry = adapter.plan(source, filename)
            source_path = self.workspace.write_source(workdir, source_name, source)
            result = self._compile_and_run(adapter, workdir, source_path, entry)
        result.execution_time_ms = int((time.time() - start_time) * 1000)

        logger.info(f"{language} run for session {session_id}: {result.status} ({result.execution_time_ms}ms)")
        return result

    def _compile_and_run(self, adapter, workdir, source_path, entry):
        compile_argv = adapter.compile_argv(workdir, source_path, entry)
        if compile_argv:
            logger.info(f"Compiling {adapter.name} code...")
            compiled = run_command(compile_argv, workdir, self.compile_timeout, self.max_output_size)
            if compiled.timed_out:
                message = f"Compilation timeout exceeded ({_seconds(self.compile_timeout)} seconds)"
                return ExecutionResult(False, message, TIMEOUT)
            if compiled.returncode != 0 or compiled.truncated:
                diagnostics = self._truncate(compiled.stderr or compiled.stdout, compiled.truncated)
                return ExecutionResult(False, f"Compilation Error:\n{diagnostics}", COMPILE_FAILED)

        ran = run_command(adapter.run_argv(workdir, source_path, entry), workdir, self.run_timeout, self.max_output_size)
        if ran.timed_out:
            captured = self._truncate(ran.stderr or ran.stdout, ran.truncated)
            message = f"Execution timeout exceeded ({_seconds(self.run_timeout)} seconds)"
            if captured:
                message = f"{captured.rstrip()}\n{message}"
            return ExecutionResult(False, message, TIMEOUT)
        if ran.truncated:
            # stopped early, so the exit code says nothing about the program
            return ExecutionResult(False, self._truncate(ran.stdout or ran.stderr, True), FAILED)
        if ran.returncode != 0:
            logger.warning(f"{adapter.name} execution failed with return code {ran.returncode}")
            output = ran.stderr or ran.stdout or f"Process exited with code {ran.returncode}"
            return ExecutionResult(False, self._truncate(output), FAILED)
        return ExecutionResult(True, self._truncate(ran.stdout), COMPLETED)

    def _truncate(self, output, truncated=False):
        if truncated or len(output) > self.max_output_size:
            logger.warning(f"Output truncated to {self.max_output_size} bytes")
            return output[:self.max_output_size] + TRUNCATED_MARKER
        return output
