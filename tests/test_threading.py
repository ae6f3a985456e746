import asyncio
import logging
from time import sleep

import pytest

from protopipe import TimeoutError
from protopipe.threading import Thread

logger = logging.getLogger(__name__)


def delay_double(x, delay=1):
    sleep(delay)
    if x < 10:
        return x * 2
    raise ValueError(x)


def test_thread():
    t = Thread(target=delay_double, args=(3,))
    assert not t.done()
    t.start()
    logger.info('to sleep')
    sleep(0.1)
    assert not t.done()
    assert t.is_alive()
    with pytest.raises(TimeoutError):
        t.result(0.1)
    with pytest.raises(TimeoutError):
        t.exception(0.1)
    assert t.result() == 6
    assert t.exception() is None
    assert t.done()
    t.join()

    t = Thread(target=delay_double, args=(12,))
    t.start()
    with pytest.raises(TimeoutError):
        t.result(0.2)

    with pytest.raises(ValueError):
        t.result()

    e = t.exception()
    assert type(e) is ValueError

    with pytest.raises(ValueError):
        t.join()


def test_no_target():
    t = Thread()
    t.start()
    assert t.result() is None


def test_system_exit():
    def f():
        raise SystemExit(0)

    t = Thread(target=f)
    t.start()
    assert t.result() is None
    assert t.exception() is None


@pytest.mark.asyncio
async def test_a_result():
    t = Thread(target=delay_double, args=(3, 0.5))
    t.start()
    with pytest.raises(TimeoutError):
        await t.a_result(0.1)
    # The event loop stays responsive while waiting.
    z, _ = await asyncio.gather(t.a_result(), asyncio.sleep(0.1))
    assert z == 6

    t = Thread(target=delay_double, args=(13, 0.2))
    t.start()
    with pytest.raises(ValueError):
        await t.a_result()
