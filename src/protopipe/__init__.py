"""
The package ``protopipe`` runs a code generator written in Python as a plugin
of an external compiler, such as ``protoc``, without packaging the generator
as its own executable.

The compiler only knows how to run a plugin as a subprocess, writing the
request to its stdin and reading the response from its stdout.
:class:`protopipe.named_pipe.PosixPluginFrontend` gives the compiler a
tiny shell script to run instead. The script relays stdin and stdout through
a pair of named pipes to a thread in the current process, which calls the
generator.

::

    from protopipe import PosixPluginFrontend

    frontend = PosixPluginFrontend()
    with frontend.bridge(my_generator) as (path, state):
        subprocess.run(['protoc', f'--plugin=protoc-gen-my={path}', '--my_out=gen', 'foo.proto'])
        frontend.wait(state, timeout=10)

:func:`protopipe.runner.run_compiler` wraps this pattern.

Only Unix-like systems with named pipe (FIFO) support are served.
"""

__version__ = '0.1.0'


from . import frontend, named_pipe, plugin, runner, threading
from ._common import (
    CleanupError,
    PipeCreationError,
    TimeoutError,
    UnsupportedPlatformError,
)
from .frontend import FrontendConfig, PluginFrontend
from .named_pipe import BridgeState, PosixPluginFrontend
from .plugin import CodeGenerator
from .runner import run_compiler
