"""
Configure logging, mainly the format.

A call to the function ``config_logger`` in a launching script is all that is needed to set up the logging format.
Usually the 'level' argument is the only argument one needs to customize::

  config_logger(level='info')

If `level` is not specified, environment variable `LOGLEVEL` is used;
if that is not set, a default level (currently 'info') is used.

Do not call this in library modules.
Library modules should have ::

   logger = logging.getLogger(__name__)

and then just use ``logger`` to write logs without concern about formatting,
destination of the log message, etc.

The bridge worker logs from its own thread, named after the bridge's temp
directory; use ``with_thread_name=True`` to tell bridges apart.
"""

from __future__ import annotations

import logging
import os
import time
import warnings
from datetime import datetime
from logging import Formatter

import pytz

__all__ = ['config_logger', 'log_level_from_str', 'log_level_to_str']


def log_level_to_str(level: int) -> str:
    '''
    `level`: `logging.DEBUG`, `logging.INFO`, etc.
    '''
    return logging.getLevelName(level)
    # Return uppercase 'DEBUG', 'INFO', etc.


def log_level_from_str(level: str) -> int:
    '''
    `level`: 'debug', 'info', etc.
    '''
    return getattr(logging, level.upper())


def _make_config(
    *,
    level: str | int | None = None,
    with_thread_name: bool = False,
    timezone: str = 'UTC',
    **kwargs,
) -> dict:
    if level is None:
        level = os.environ.get('LOGLEVEL', 'info')
    if level not in (
        logging.DEBUG,
        logging.INFO,
        logging.WARNING,
        logging.ERROR,
        logging.CRITICAL,
    ):
        level = log_level_from_str(level)

    if timezone.lower() == 'utc':
        converter = time.gmtime
    elif timezone.lower() == 'local':
        converter = time.localtime
    else:
        tz = pytz.timezone(timezone)

        def converter(*args):
            return datetime.now(pytz.utc).astimezone(tz).timetuple()

    datefmt = '%Y-%m-%d %H:%M:%S'

    msg = (
        '[%(asctime)s.%(msecs)03d '
        + timezone
        + '; %(levelname)s; %(name)s, %(funcName)s, %(lineno)d]'
    )
    msg += '  '

    if with_thread_name:
        fmt = f'{msg}[%(threadName)s]  %(message)s'
    else:
        fmt = f'{msg}%(message)s'

    return dict(format=fmt, datefmt=datefmt, level=level, converter=converter, **kwargs)


def config_logger(**kwargs) -> None:
    kw = _make_config(**kwargs)
    converter = kw.pop('converter')

    rootlogger = logging.getLogger()
    if rootlogger.hasHandlers():
        rootlogger.handlers = []

    logging.basicConfig(**kw)
    for h in rootlogger.handlers:
        h.formatter.converter = converter

    logging.captureWarnings(True)
    warnings.filterwarnings('default', category=ResourceWarning)
    warnings.filterwarnings('default', category=DeprecationWarning)
