# -*- coding: utf-8 -*-

"""Configuration of the logs, for programs using pledge.

The pledge library only emits log records, through one logger per module
(``pledge.promise.promise``, ``pledge.promise.rejection``, ...). Nothing is
configured on import: the host program opens a ``Context`` to send these
records (and its own) to the console and to a log file.

The log file 'pledge.log', in the user log folder, is rotated at midnight;
a week of files is kept. On a terminal, the level and logger name are
colorized.

The levels are taken from the config entries 'debug_mode' and 'log_levels',
so ``config.load()`` should be called first.

Example:

    >>> config.load()
    >>> with Context():
    ...     run_the_program()
"""

import logging
import logging.handlers
import os.path
import sys

from . import config
from . import path as pledge_path

_logger = logging.getLogger(__name__)

_FORMAT = '%(asctime)s %(levelname)-7s %(name)s - %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _support_color_output():
    """True if the standard output is a terminal who supports ANSI codes."""
    isatty = getattr(sys.stdout, 'isatty', None)
    return bool(isatty and isatty()) and not sys.platform.startswith('win')


def _get_file_handler(filename, nb_max_files=7):
    """Open the log file, in the user log folder.

    Args:
        filename (str): name of the log file. Ex: 'pledge.log'
        nb_max_files (int): number of old log files kept.
    Returns:
        Handler: a handler writing in the file, rotated each day; None if the
            file can't be opened.
    """
    try:
        log_path = os.path.join(pledge_path.get_log_dir(), filename)
        return logging.handlers.TimedRotatingFileHandler(
            log_path, when='midnight', backupCount=nb_max_files,
            encoding='utf-8')
    except (OSError, IOError):
        _logger.warning('Unable to create the log file', exc_info=True)
        return None


class ColoredFormatter(logging.Formatter):
    """Formatter who colors the level and the logger name."""

    _colors = {
        'RESET': '\033[0m',
        'DEBUG': '\033[34m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[31;1m',
        'NAME': '\033[36m'
    }

    def _colorize(self, msg, color):
        return self._colors.get(color, '') + msg + self._colors['RESET']

    def format(self, record):
        # Other handlers share the record.
        record = logging.makeLogRecord(record.__dict__)
        record.name = self._colorize(record.name, 'NAME')
        record.levelname = self._colorize(record.levelname, record.levelname)
        return logging.Formatter.format(self, record)


def _excepthook(exctype, value, traceback):
    _logger.critical('Uncaught exception',
                     exc_info=(exctype, value, traceback))


class Context(object):
    """Context manager who installs the log handlers, then removes them."""

    def __init__(self, filename='pledge.log'):
        """
        Args:
            filename (str): name of the log file. If None, logs are only
                written on the standard output.
        """
        self._filename = filename
        self._handlers = []
        self._excepthook = None

    def __enter__(self):
        logging.captureWarnings(True)

        stdout_handler = logging.StreamHandler(sys.stdout)
        if _support_color_output():
            stdout_handler.setFormatter(
                ColoredFormatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        else:
            stdout_handler.setFormatter(
                logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
        self._handlers.append(stdout_handler)

        if self._filename:
            file_handler = _get_file_handler(self._filename)
            if file_handler:
                file_handler.setFormatter(
                    logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
                self._handlers.append(file_handler)

        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.addHandler(handler)

        set_debug_mode(config.get('debug_mode'))
        set_logs_level(config.get('log_levels'))

        self._excepthook = sys.excepthook
        sys.excepthook = _excepthook
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _logger.debug('Stop logger ...')
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        logging.captureWarnings(False)
        sys.excepthook = self._excepthook


def set_logs_level(levels):
    """Configure a fine-grained log levels for the different modules.

    Args:
        levels (dict): associates a logger name and a log level. A level can
            be a number, or the name of one of the logging levels (DEBUG,
            WARNING, ...), in any case. Invalid values are ignored.

    Example:

        >>> # Accept DEBUG logs only for the rejection reporter
        >>> set_logs_level({'pledge': 'info',
        ...                 'pledge.promise.rejection': 'debug'})
    """
    for (module, level) in levels.items():
        try:
            if isinstance(level, str):
                level = int(level) if level.isdigit() else level.upper()
            logging.getLogger(module).setLevel(level)
        except (TypeError, ValueError):
            _logger.warning('Invalid log level "%s" for logger "%s". '
                            'Will be ignored.', level, module)


def set_debug_mode(debug):
    """Set, or unset the debug log level.

    Loggers others than pledge.* are never set to DEBUG. If needed, use
    ``set_logs_level()``.

    Args:
        debug (boolean): if True, pledge logs are at DEBUG level, and others
            at INFO. If False, pledge logs are at INFO, and others at WARNING.
    """
    if debug:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger('pledge').setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.WARNING)
        logging.getLogger('pledge').setLevel(logging.INFO)


def reset():
    """Reset the root logger (remove handlers and filters)."""
    logger = logging.getLogger()

    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for f in logger.filters[:]:
        logger.removeFilter(f)
