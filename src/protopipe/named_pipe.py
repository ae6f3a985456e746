"""
The module ``protopipe.named_pipe`` bridges an in-process plugin to a compiler
through two named pipes (FIFOs) on Unix-like systems.

:meth:`PosixPluginFrontend.prepare` creates a temporary directory holding two
FIFOs, ``input`` (compiler to plugin) and ``output`` (plugin to compiler),
and a small shell script. The compiler runs the script as the plugin
executable. The script copies its stdin into ``input`` and then
copies ``output`` to its stdout. On our side, a background thread
opens the other ends of the pipes, runs the plugin on the request, and writes
the response.

There are no locks. The two sides synchronize on the fact that opening a FIFO
blocks until the other end has been opened as well. Both sides open ``input``
first and ``output`` second; if either side flipped that order, each would
wait on an open the other never gets to.

If the plugin fails, the thread leaves a file named ``failed`` in the
temporary directory before closing ``output``. The script checks for it last
and exits non-zero, so the compiler reports the plugin as failed instead of
taking the empty response.

The background thread blocks in ``open`` until the compiler actually runs the
script. If that never happens, the thread stays blocked; it is a daemon thread,
so it won't keep the interpreter alive. Use :meth:`PosixPluginFrontend.wait`
with a ``timeout`` to find out.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
from typing import Any, NamedTuple

from ._common import CleanupError, PipeCreationError, UnsupportedPlatformError
from .frontend import FrontendConfig, PluginFrontend, create_temp_file
from .plugin import Plugin, run_with_input_stream
from .threading import Thread

__all__ = [
    'BridgeState',
    'PosixPluginFrontend',
    'make_script',
]

logger = logging.getLogger(__name__)


PIPE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600
SCRIPT_MODE = stat.S_IRUSR | stat.S_IXUSR  # 0o500
FAILURE_MARKER = 'failed'


class BridgeState(NamedTuple):
    request_pipe: str
    response_pipe: str
    temp_dir: str
    script: str
    worker: Thread

    @property
    def failure_marker(self) -> str:
        return os.path.join(self.temp_dir, FAILURE_MARKER)


def _mkfifo(dirname: str, name: str) -> str:
    path = os.path.join(dirname, name)
    os.mkfifo(path, PIPE_MODE)
    # `mkfifo` is subject to the umask.
    os.chmod(path, PIPE_MODE)
    return path


def _mark_failed(response_pipe: str) -> None:
    path = os.path.join(os.path.dirname(response_pipe), FAILURE_MARKER)
    try:
        open(path, 'xb').close()
    except OSError as e:
        # The script will exit 0 with an empty response.
        logger.error("failed to create failure marker '%s': %r", path, e)


def _quote(path: str) -> str:
    # Escape the characters that stay special inside double quotes.
    for c in ('\\', '"', '$', '`'):
        path = path.replace(c, '\\' + c)
    return f'"{path}"'


def make_script(
    shell: str, request_pipe: str, response_pipe: str, failure_marker: str | None = None
) -> str:
    '''
    Return the text of the script that the compiler runs as the plugin.

    The script opens the request pipe before the response pipe,
    the same order as :meth:`PosixPluginFrontend._serve`.
    It exits non-zero if ``failure_marker`` (by default ``failed`` next to
    the response pipe) exists once the response has been relayed.
    '''
    if failure_marker is None:
        failure_marker = os.path.join(os.path.dirname(response_pipe), FAILURE_MARKER)
    return (
        f"#!{shell}\n"
        "set -e\n"
        f"exec 4> {_quote(request_pipe)}\n"
        f"exec 5< {_quote(response_pipe)}\n"
        "cat /dev/stdin >&4\n"
        "exec 4>&-\n"
        "cat <&5\n"
        "exec 5<&-\n"
        f"test ! -e {_quote(failure_marker)}\n"
    )


class PosixPluginFrontend(PluginFrontend):
    """
    Plugin frontend for Unix-like systems, using named pipes.

    One :meth:`prepare` call sets up one bridge, which serves exactly
    one run of the script. Call :meth:`cleanup` with the returned state
    once the compiler has exited.
    """

    def __init__(self, config: FrontendConfig | None = None):
        if not hasattr(os, 'mkfifo'):
            raise UnsupportedPlatformError(
                "named pipes are not available on this platform"
            )
        super().__init__(config)

    def prepare(self, plugin: Plugin, env: Any = None) -> tuple[str, BridgeState]:
        try:
            temp_dir = os.path.abspath(tempfile.mkdtemp(prefix='protopipe-'))
        except OSError as e:
            raise PipeCreationError(f"failed to create temp directory: {e}") from e

        try:
            request_pipe = _mkfifo(temp_dir, 'input')
            response_pipe = _mkfifo(temp_dir, 'output')
            script = self._create_script(request_pipe, response_pipe)
        except OSError as e:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise PipeCreationError(
                f"failed to set up named pipes in '{temp_dir}': {e}"
            ) from e

        try:
            worker = Thread(
                target=self._serve,
                args=(plugin, request_pipe, response_pipe, env),
                name=f"protopipe-{os.path.basename(temp_dir)}",
                daemon=True,
            )
            worker.start()
        except BaseException:
            shutil.rmtree(temp_dir, ignore_errors=True)
            os.unlink(script)
            raise
        logger.debug("prepared bridge in '%s' with script '%s'", temp_dir, script)
        return script, BridgeState(request_pipe, response_pipe, temp_dir, script, worker)

    def _create_script(self, request_pipe: str, response_pipe: str) -> str:
        path = create_temp_file(
            'protopipe-', '.sh', make_script(self.config.shell, request_pipe, response_pipe)
        )
        try:
            os.chmod(path, SCRIPT_MODE)
        except OSError:
            os.unlink(path)
            raise
        return path

    def _serve(self, plugin: Plugin, request_pipe: str, response_pipe: str, env: Any) -> int:
        # Runs in the worker thread. Each `open` returns only after the script
        # has opened the other end of the same pipe.
        fin = open(request_pipe, 'rb')
        try:
            # Without O_CREAT, so a removed pipe is not replaced by a regular file.
            fout = os.fdopen(os.open(response_pipe, os.O_WRONLY), 'wb')
        except BaseException:
            fin.close()
            raise
        logger.debug("script connected to '%s'", request_pipe)

        with fout:
            try:
                try:
                    response = run_with_input_stream(plugin, fin, env)
                finally:
                    fin.close()
                fout.write(response)
            except BaseException:
                # The marker must exist before `fout` is closed; the script
                # checks for it right after it sees the end of the response.
                _mark_failed(response_pipe)
                raise
        logger.debug("wrote %d response bytes to '%s'", len(response), response_pipe)
        return len(response)

    def cleanup(self, state: BridgeState) -> None:
        if state.worker.is_alive():
            logger.warning(
                "bridge worker '%s' is still running; "
                "was the script never run, or is the plugin stuck?",
                state.worker.name,
            )

        if self.config.debug:
            logger.info(
                "debug mode; keeping '%s', '%s', '%s', '%s'",
                state.request_pipe, state.response_pipe, state.temp_dir, state.script,
            )
            return

        failures = []
        # The directory must be empty before it can be removed.
        for path, remove in (
            (state.request_pipe, os.unlink),
            (state.response_pipe, os.unlink),
            (state.script, os.unlink),
            (state.failure_marker, os.unlink),
            (state.temp_dir, os.rmdir),
        ):
            try:
                remove(path)
            except FileNotFoundError:
                logger.debug("'%s' is already gone", path)
            except OSError as e:
                logger.error("failed to remove '%s': %r", path, e)
                failures.append((path, e))
        if failures:
            raise CleanupError(failures)
