from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading

from ._common import TimeoutError

__all__ = ['Thread']

logger = logging.getLogger(__name__)


class Thread(threading.Thread):
    """
    A subclass of the standard ``threading.Thread``,
    this class makes the result or exception produced in a thread
    accessible from the thread object itself, similar to the ``Future``
    object returned by ``concurrent.futures.ThreadPoolExecutor.submit``.

    The bridge worker of :class:`protopipe.named_pipe.PosixPluginFrontend`
    runs in one of these. It spends most of its life blocked in ``open``
    on a FIFO, which no executor shared with other work should be made to
    wait on.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._future_: concurrent.futures.Future = concurrent.futures.Future()

    def run(self):
        try:
            if self._target is not None:
                z = self._target(*self._args, **self._kwargs)
                self._future_.set_result(z)
            else:
                self._future_.set_result(None)
        except SystemExit:
            self._future_.set_result(None)
        except BaseException as e:
            self._future_.set_exception(e)
            logger.error(
                "%s: %r", threading.current_thread().name, e, exc_info=True
            )
        finally:
            # Avoid a refcycle if the thread is running a function with
            # an argument that has a member that points to the thread.
            del self._target, self._args, self._kwargs

    def join(self, timeout=None):
        '''
        Same behavior as the standard lib, except that if the thread
        terminates with an exception, the exception is raised.
        '''
        super().join(timeout=timeout)
        if self.is_alive():
            # Timed out
            return
        if self._future_.exception():
            raise self._future_.exception()

    def done(self) -> bool:
        '''
        Return ``True`` if the thread has terminated.
        Return ``False`` if the thread is running or not yet started.
        '''
        if self.is_alive():
            return False
        return self._started.is_set()

    def result(self, timeout=None):
        '''
        Behavior is similar to ``concurrent.futures.Future.result``.
        '''
        super().join(timeout)
        if self.is_alive():
            raise TimeoutError
        return self._future_.result()

    def exception(self, timeout=None):
        '''
        Behavior is similar to ``concurrent.futures.Future.exception``.
        '''
        super().join(timeout)
        if self.is_alive():
            raise TimeoutError
        return self._future_.exception()

    async def a_result(self, timeout=None):
        '''
        Wait for the thread from a coroutine without blocking the event loop.
        '''
        if timeout is None:
            timeout = 3600 * 24
        while not self.done():
            if timeout <= 0:
                raise TimeoutError
            await asyncio.sleep(0.0123)
            timeout -= 0.0123
        return self._future_.result()
