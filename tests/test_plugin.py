import io

import pytest

from protopipe.plugin import CodeGenerator, run_with_bytes, run_with_input_stream


class Upper(CodeGenerator):
    def run(self, request, env=None):
        return request.upper() + (env or b'')


class Named(CodeGenerator):
    name = 'gen-named'

    def run(self, request, env=None):
        return bytearray(request)


def test_code_generator():
    gen = Upper()
    assert gen.name == 'Upper'
    assert repr(gen) == "Upper(name='Upper')"
    assert Named().name == 'gen-named'

    assert run_with_bytes(gen, b'abc') == b'ABC'
    assert run_with_bytes(gen, b'abc', b'!') == b'ABC!'
    assert run_with_input_stream(gen, io.BytesIO(b'abc'), b'?') == b'ABC?'

    z = run_with_bytes(Named(), b'\x00x')
    assert type(z) is bytes
    assert z == b'\x00x'


def test_abstract():
    with pytest.raises(TypeError):
        CodeGenerator()


def test_callable():
    calls = []

    def plugin(request, env):
        calls.append((request, env))
        return memoryview(request[::-1])

    assert run_with_bytes(plugin, b'abc', 3) == b'cba'
    assert run_with_input_stream(plugin, io.BytesIO(b'xyz')) == b'zyx'
    assert calls == [(b'abc', 3), (b'xyz', None)]


def test_bad_return():
    with pytest.raises(TypeError):
        run_with_bytes(lambda request, env: None, b'abc')
    with pytest.raises(TypeError):
        run_with_input_stream(lambda request, env: 'abc', io.BytesIO(b'abc'))


def test_plugin_error_propagates():
    def plugin(request, env):
        raise ValueError('bad')

    with pytest.raises(ValueError):
        run_with_bytes(plugin, b'')
