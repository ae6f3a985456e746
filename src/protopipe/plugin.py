"""
The in-process side of a compiler plugin.

A plugin is either a :class:`CodeGenerator` or a plain callable
``f(request: bytes, env) -> bytes``. The request and response are whatever
the compiler speaks (for ``protoc``, a serialized ``CodeGeneratorRequest``
and ``CodeGeneratorResponse``); this package never looks inside them.
``env`` is handed to the plugin untouched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, Any, Callable, Union

__all__ = [
    'CodeGenerator',
    'Plugin',
    'run_with_bytes',
    'run_with_input_stream',
]


class CodeGenerator(ABC):
    name: str | None = None

    def __init__(self):
        if self.name is None:
            self.name = type(self).__name__

    @abstractmethod
    def run(self, request: bytes, env: Any = None) -> bytes:
        raise NotImplementedError

    def run_with_input_stream(self, stream: IO[bytes], env: Any = None) -> bytes:
        # Override this to consume the request incrementally.
        return self.run(stream.read(), env)

    def __repr__(self):
        return f"{type(self).__name__}(name={self.name!r})"


Plugin = Union[CodeGenerator, Callable[[bytes, Any], bytes]]


def _as_bytes(plugin, z) -> bytes:
    if isinstance(z, bytes):
        return z
    if isinstance(z, (bytearray, memoryview)):
        return bytes(z)
    raise TypeError(
        f"plugin {plugin!r} returned {type(z).__name__}; expecting bytes"
    )


def run_with_bytes(plugin: Plugin, request: bytes, env: Any = None) -> bytes:
    if isinstance(plugin, CodeGenerator):
        z = plugin.run(request, env)
    else:
        z = plugin(request, env)
    return _as_bytes(plugin, z)


def run_with_input_stream(plugin: Plugin, stream: IO[bytes], env: Any = None) -> bytes:
    '''
    Run ``plugin`` on the request read from ``stream``.

    A :class:`CodeGenerator` gets the stream itself; a plain callable
    gets the whole request after ``stream`` has been read to EOF.
    '''
    if isinstance(plugin, CodeGenerator):
        z = plugin.run_with_input_stream(stream, env)
    else:
        z = plugin(stream.read(), env)
    return _as_bytes(plugin, z)
