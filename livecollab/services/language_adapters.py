"""Per-language policy: what the source file is called, how it is compiled
(if at all), and how it is run.

Commands are argv templates. Placeholders are filled per request:

``{source}``   absolute path of the written source file
``{binary}``   absolute path of the compiled artifact
``{workdir}``  the request's run directory
``{entry}``    entry point name (managed languages)
"""
import os
import re

IS_WINDOWS = os.name == 'nt'

PUBLIC_CLASS = re.compile(r'public\s+(?:(?:final|abstract)\s+)*class\s+([A-Za-z_]\w*)')


def _expand(template, **values):
    return [part.format(**values) for part in template]


class LanguageAdapter:
    kind = None
    passthrough = False

    def __init__(self, name, default_filename=None, compile_cmd=None, run_cmd=None):
        self.name = name
        self.default_filename = default_filename
        self.compile_cmd = list(compile_cmd) if compile_cmd else None
        self.run_cmd = list(run_cmd) if run_cmd else None

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"

    def plan(self, source, filename=None):
        """Return ``(source_filename, entry)`` for one request."""
        name = filename or self.default_filename
        return name, os.path.splitext(name)[0]

    def artifact(self, workdir, entry):
        return None

    def _values(self, workdir, source_path, entry):
        return {
            'source': source_path,
            'binary': self.artifact(workdir, entry) or '',
            'workdir': workdir,
            'entry': entry,
        }

    def compile_argv(self, workdir, source_path, entry):
        if not self.compile_cmd:
            return None
        return _expand(self.compile_cmd, **self._values(workdir, source_path, entry))

    def run_argv(self, workdir, source_path, entry):
        return _expand(self.run_cmd, **self._values(workdir, source_path, entry))


class InterpretedAdapter(LanguageAdapter):
    """Source goes straight to an interpreter."""

    kind = 'interpreted'

    def __init__(self, name, default_filename, run_cmd):
        super().__init__(name, default_filename, None, run_cmd)


class CompiledAdapter(LanguageAdapter):
    """Compile to a native binary, then execute it."""

    kind = 'compiled'

    def __init__(self, name, default_filename, compile_cmd, run_cmd=('{binary}',), binary_name=None):
        super().__init__(name, default_filename, compile_cmd, run_cmd)
        self.binary_name = binary_name or ('main.exe' if IS_WINDOWS else 'a.out')

    def artifact(self, workdir, entry):
        return os.path.join(workdir, self.binary_name)


class ManagedAdapter(LanguageAdapter):
    """Compile for a VM whose entry point must match the public type name.

    The entry point is read from the first ``public class Name`` in the
    source; without one it comes from the given filename, then ``Main``.
    """

    kind = 'managed'

    def __init__(self, name, extension, compile_cmd, run_cmd, fallback_entry='Main'):
        super().__init__(name, f"{fallback_entry}{extension}", compile_cmd, run_cmd)
        self.extension = extension
        self.fallback_entry = fallback_entry

    def infer_entry(self, source, filename=None):
        match = PUBLIC_CLASS.search(source or '')
        if match:
            return match.group(1)
        if filename:
            return os.path.splitext(os.path.basename(filename))[0]
        return self.fallback_entry

    def plan(self, source, filename=None):
        entry = self.infer_entry(source, filename)
        return f"{entry}{self.extension}", entry


class PassthroughAdapter(LanguageAdapter):
    """Markup: the source is the output, nothing is spawned."""

    kind = 'passthrough'
    passthrough = True

    def __init__(self, name):
        super().__init__(name)

    def plan(self, source, filename=None):
        return None, None


def _java_tool(java_home, tool):
    if not java_home:
        return tool
    return os.path.join(java_home, 'bin', f"{tool}.exe" if IS_WINDOWS else tool)


def _from_definition(name, definition):
    kind = definition.get('kind', 'interpreted')
    if kind == 'interpreted':
        return InterpretedAdapter(name, definition['filename'], definition['run'])
    if kind == 'compiled':
        return CompiledAdapter(
            name,
            definition['filename'],
            definition['compile'],
            definition.get('run', ('{binary}',)),
            definition.get('binary'),
        )
    if kind == 'managed':
        return ManagedAdapter(name, definition['extension'], definition['compile'], definition['run'])
    if kind == 'passthrough':
        return PassthroughAdapter(name)
    raise ValueError(f"Unknown adapter kind {kind!r} for language {name!r}")


def build_adapters(config):
    """Language name -> adapter, from a Flask-style config mapping."""
    python_bin = config.get('PYTHON_BIN') or 'python'
    node_bin = config.get('NODE_BIN') or 'node'
    java_home = config.get('JAVA_HOME')

    node = InterpretedAdapter('javascript', 'main.js', [node_bin, '{source}'])
    adapters = {
        'python': InterpretedAdapter('python', 'main.py', [python_bin, '{source}']),
        'javascript': node,
        'node': node,
        'c': CompiledAdapter('c', 'main.c', ['gcc', '{source}', '-o', '{binary}']),
        'cpp': CompiledAdapter('cpp', 'main.cpp', ['g++', '{source}', '-o', '{binary}']),
        'java': ManagedAdapter(
            'java',
            '.java',
            [_java_tool(java_home, 'javac'), '{source}'],
            [_java_tool(java_home, 'java'), '-cp', '{workdir}', '{entry}'],
        ),
        'html': PassthroughAdapter('html'),
    }
    for name, definition in (config.get('EXTRA_LANGUAGES') or {}).items():
        adapters[name] = _from_definition(name, definition)
    return adapters
