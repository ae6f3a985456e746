"""
A "frontend" makes an in-process plugin look like a plugin executable
to an external compiler.

:meth:`PluginFrontend.prepare` returns the path of an executable to hand to
the compiler, plus an opaque state object. After the compiler process has
exited, pass the state to :meth:`PluginFrontend.wait` to learn how the
in-process side went (optional), and then to :meth:`PluginFrontend.cleanup`
(mandatory).

The usual pattern is the context manager::

    frontend = PosixPluginFrontend()
    with frontend.bridge(my_generator) as (path, state):
        subprocess.run(['protoc', f'--plugin=protoc-gen-my={path}', ...])
        frontend.wait(state, timeout=10)
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from typing_extensions import Self  # In 3.11, import this from `typing`

from .plugin import Plugin

__all__ = [
    'DEFAULT_SHELL',
    'DEBUG_ENV_VAR',
    'SHELL_ENV_VAR',
    'FrontendConfig',
    'PluginFrontend',
    'create_temp_file',
]


DEFAULT_SHELL = '/bin/sh'
DEBUG_ENV_VAR = 'PROTOPIPE_DEBUG'
SHELL_ENV_VAR = 'PROTOPIPE_SHELL'

_TRUTHY = ('1', 'true', 'yes', 'on')


def _env_flag(name: str) -> bool:
    return os.environ.get(name, '').strip().lower() in _TRUTHY


class FrontendConfig:
    """
    Settings consulted by a frontend.

    Parameters
    ----------
    debug
        If true, :meth:`PluginFrontend.cleanup` leaves every temporary file
        on disk for inspection. If ``None``, taken from the environment
        variable ``PROTOPIPE_DEBUG``.
    shell
        Interpreter for the generated script's ``#!`` line. If ``None``,
        taken from the environment variable ``PROTOPIPE_SHELL``, falling back
        to ``/bin/sh``.
    """

    def __init__(self, *, debug: bool | None = None, shell: str | None = None):
        if debug is None:
            debug = _env_flag(DEBUG_ENV_VAR)
        if shell is None:
            shell = os.environ.get(SHELL_ENV_VAR) or DEFAULT_SHELL
        self.debug = bool(debug)
        self.shell = shell

    @classmethod
    def from_env(cls) -> Self:
        return cls()

    def __repr__(self):
        return f"{type(self).__name__}(debug={self.debug!r}, shell={self.shell!r})"


def create_temp_file(prefix: str, suffix: str, content: str) -> str:
    '''
    Write ``content`` into a newly created, uniquely named file in the
    system temp directory and return the file's absolute path.
    '''
    fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
    except BaseException:
        os.unlink(path)
        raise
    return os.path.abspath(path)


class PluginFrontend(ABC):
    def __init__(self, config: FrontendConfig | None = None):
        if config is None:
            config = FrontendConfig.from_env()
        self.config = config

    @abstractmethod
    def prepare(self, plugin: Plugin, env: Any = None) -> tuple[str, Any]:
        '''
        Set up the bridge for one invocation of ``plugin``.

        Return the path of the executable to give to the compiler,
        and a state object to be passed to :meth:`wait` and :meth:`cleanup`.
        This must not block on the compiler.
        '''
        raise NotImplementedError

    @abstractmethod
    def cleanup(self, state) -> None:
        raise NotImplementedError

    def wait(self, state, timeout=None):
        '''
        Wait for the in-process side of the bridge to finish.

        Raise whatever the plugin raised, or :class:`protopipe.TimeoutError`
        if ``timeout`` (seconds) expires first.
        '''
        return state.worker.result(timeout)

    async def a_wait(self, state, timeout=None):
        return await state.worker.a_result(timeout)

    @contextlib.contextmanager
    def bridge(self, plugin: Plugin, env: Any = None) -> Iterator[tuple[str, Any]]:
        path, state = self.prepare(plugin, env)
        try:
            yield path, state
        finally:
            self.cleanup(state)
