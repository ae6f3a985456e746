"""
Run a compiler command with in-process plugins bridged in.

::

    from protopipe.runner import run_compiler

    run_compiler(
        ['protoc', '-I', 'protos', '--my_out=gen', 'protos/foo.proto'],
        {'my': MyGenerator()},
        check=True,
    )

Each plugin is passed to the compiler as ``--plugin=protoc-gen-<name>=<script>``.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping, Sequence
from typing import Any

from ._common import TimeoutError
from .frontend import PluginFrontend
from .plugin import Plugin

__all__ = ['plugin_arg', 'run_compiler']

logger = logging.getLogger(__name__)


def plugin_arg(name: str, path: str) -> str:
    return f"--plugin=protoc-gen-{name}={path}"


def run_compiler(
    command: Sequence[str],
    plugins: Mapping[str, Plugin],
    *,
    env: Any = None,
    frontend: PluginFrontend | None = None,
    timeout: float | None = None,
    grace: float = 1.0,
    **kwargs,
) -> subprocess.CompletedProcess:
    '''
    Parameters
    ----------
    command
        The compiler command line, without the ``--plugin`` arguments.
    plugins
        Map from plugin name to in-process plugin.
    env
        Passed to every plugin untouched. Not the subprocess environment;
        use ``kwargs`` for that.
    frontend
        Defaults to a :class:`protopipe.named_pipe.PosixPluginFrontend`.
    timeout
        Passed to ``subprocess.run``.
    grace
        After the compiler has exited, seconds to wait for each bridge worker
        to finish.
    kwargs
        Passed to ``subprocess.run``.

    If a plugin raised, the exception is re-raised here once the compiler
    has exited, even if the compiler itself reported success.

    Every bridge is cleaned up on the way out. A cleanup failure is raised
    only if nothing else is; otherwise it is logged and the original
    exception propagates.
    '''
    if frontend is None:
        from .named_pipe import PosixPluginFrontend
        frontend = PosixPluginFrontend()

    bridges = []
    try:
        z = _run(command, plugins, bridges, env, frontend, timeout, grace, kwargs)
    except BaseException:
        for e in _cleanup(frontend, bridges):
            logger.error("cleanup failed while handling another error: %r", e)
        raise
    errors = _cleanup(frontend, bridges)
    if errors:
        raise errors[0]
    return z


def _run(command, plugins, bridges, env, frontend, timeout, grace, kwargs):
    args = list(command)
    for name, plugin in plugins.items():
        path, state = frontend.prepare(plugin, env)
        bridges.append((name, state))
        args.append(plugin_arg(name, path))

    logger.debug("running %s", args)
    z = subprocess.run(args, timeout=timeout, **kwargs)  # noqa: S603
    logger.debug("compiler exited with code %d", z.returncode)

    for name, state in bridges:
        try:
            frontend.wait(state, grace)
        except TimeoutError:
            logger.warning(
                "plugin '%s' was not run to completion by the compiler", name
            )
    return z


def _cleanup(frontend, bridges) -> list:
    errors = []
    for _, state in bridges:
        try:
            frontend.cleanup(state)
        except OSError as e:
            errors.append(e)
    return errors
