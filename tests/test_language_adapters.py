import os

import pytest

from livecollab.services import language_adapters
from livecollab.services.language_adapters import (
    CompiledAdapter,
    InterpretedAdapter,
    ManagedAdapter,
    PassthroughAdapter,
    build_adapters,
)

JAVA_SOURCE = """
import java.util.*;

public final class Greeter {
    public static void main(String[] args) { System.out.println("hi"); }
}
"""


@pytest.fixture
def adapters():
    return build_adapters({'PYTHON_BIN': '/usr/bin/python3', 'NODE_BIN': 'node'})


def test_default_languages(adapters):
    assert set(adapters) == {'python', 'javascript', 'node', 'c', 'cpp', 'java', 'html'}
    assert isinstance(adapters['python'], InterpretedAdapter)
    assert isinstance(adapters['cpp'], CompiledAdapter)
    assert isinstance(adapters['java'], ManagedAdapter)
    assert adapters['html'].passthrough
    assert adapters['node'] is adapters['javascript']


def test_interpreted_plan_and_commands(adapters):
    python = adapters['python']
    assert python.plan('print(1)') == ('main.py', 'main')
    assert python.plan('print(1)', 'script.py') == ('script.py', 'script')
    assert python.compile_argv('/w', '/w/main.py', 'main') is None
    assert python.run_argv('/w', '/w/main.py', 'main') == ['/usr/bin/python3', '/w/main.py']


def test_compiled_commands_use_platform_binary(adapters):
    c = adapters['c']
    binary = os.path.join('/w', c.binary_name)
    assert c.compile_argv('/w', '/w/main.c', 'main') == ['gcc', '/w/main.c', '-o', binary]
    assert c.run_argv('/w', '/w/main.c', 'main') == [binary]
    assert c.binary_name in ('a.out', 'main.exe')


def test_managed_entry_point_from_public_class(adapters):
    java = adapters['java']
    assert java.plan(JAVA_SOURCE) == ('Greeter.java', 'Greeter')
    assert java.plan('class Hidden {}', 'Tool.java') == ('Tool.java', 'Tool')
    assert java.plan('class Hidden {}') == ('Main.java', 'Main')
    assert java.run_argv('/w', '/w/Greeter.java', 'Greeter') == ['java', '-cp', '/w', 'Greeter']


def test_java_home_selects_toolchain(mocker):
    mocker.patch.object(language_adapters, 'IS_WINDOWS', False)
    java = build_adapters({'JAVA_HOME': '/opt/jdk'})['java']

    assert java.compile_argv('/w', '/w/Main.java', 'Main') == [os.path.join('/opt/jdk', 'bin', 'javac'), '/w/Main.java']
    assert java.run_argv('/w', '/w/Main.java', 'Main')[0] == os.path.join('/opt/jdk', 'bin', 'java')


def test_passthrough_has_no_plan():
    html = PassthroughAdapter('html')
    assert html.plan('<p>hi</p>') == (None, None)


def test_extra_languages_from_config():
    adapters = build_adapters({
        'EXTRA_LANGUAGES': {
            'ruby': {'kind': 'interpreted', 'filename': 'main.rb', 'run': ['ruby', '{source}']},
            'rust': {'kind': 'compiled', 'filename': 'main.rs', 'compile': ['rustc', '{source}', '-o', '{binary}'],
                     'binary': 'prog'},
            'markdown': {'kind': 'passthrough'},
        }
    })

    assert adapters['ruby'].run_argv('/w', '/w/main.rb', 'main') == ['ruby', '/w/main.rb']
    assert adapters['rust'].compile_argv('/w', '/w/main.rs', 'main')[-1] == os.path.join('/w', 'prog')
    assert adapters['markdown'].passthrough


def test_unknown_adapter_kind_rejected():
    with pytest.raises(ValueError):
        build_adapters({'EXTRA_LANGUAGES': {'cobol': {'kind': 'mainframe'}}})
