import errno
import os
import subprocess
import time

import pytest

requires_fifo = pytest.mark.skipif(
    not hasattr(os, 'mkfifo'), reason='named pipes are not available'
)


def run_script(path, data: bytes, timeout=10):
    # Act as the compiler: run the plugin executable with `data` on stdin.
    return subprocess.run(  # noqa: S603
        [path], input=data, stdout=subprocess.PIPE, stderr=subprocess.PIPE, timeout=timeout
    )


def release(state, timeout=5):
    '''
    Stand in for the script so that a worker stranded in `open`
    can run to completion with an empty request.
    '''
    # A reader opened with O_NONBLOCK never blocks, and lets the worker's
    # open-for-writing of the response pipe go through whenever it happens.
    rfd = os.open(state.response_pipe, os.O_RDONLY | os.O_NONBLOCK)
    try:
        deadline = time.monotonic() + timeout
        while True:
            # Fails with ENXIO until the worker is waiting to read.
            try:
                wfd = os.open(state.request_pipe, os.O_WRONLY | os.O_NONBLOCK)
                break
            except OSError as e:
                if e.errno != errno.ENXIO or time.monotonic() > deadline:
                    raise
                time.sleep(0.01)
        os.close(wfd)
        state.worker.exception(timeout)
    finally:
        os.close(rfd)


@pytest.fixture
def identity():
    def plugin(request, env):
        return request

    return plugin
