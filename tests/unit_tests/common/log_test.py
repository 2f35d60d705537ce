# -*- coding: utf-8 -*-

import logging
import logging.handlers
import sys

from pledge.common import config
from pledge.common import log
from pledge.common.log import ColoredFormatter, Context, set_debug_mode, \
    set_logs_level

colored_formatter = ColoredFormatter()


class TestColoredFormatter(object):

    def test_colorize(self):
        for color in ('DEBUG', 'ERROR', 'NAME'):
            assert colored_formatter._colorize('plop', color) == \
                ColoredFormatter._colors[color] + 'plop' + \
                ColoredFormatter._colors['RESET']

    def test_colorize_unknown_color(self):
        assert colored_formatter._colorize('plop', 'UNKNOWN') == \
            'plop' + ColoredFormatter._colors['RESET']

    def test_format_does_not_modify_record(self):
        formatter = ColoredFormatter(fmt='%(levelname)s %(name)s')
        record = logging.LogRecord(
            'pledge', logging.ERROR, '/here/', 1, 'msg', None, None)

        result = formatter.format(record)
        assert ColoredFormatter._colors['ERROR'] + 'ERROR' in result
        assert ColoredFormatter._colors['NAME'] + 'pledge' in result
        assert record.levelname == 'ERROR'
        assert record.name == 'pledge'


class TestLogLevels(object):

    def setup_method(self, method):
        self._levels = {name: logging.getLogger(name).level
                        for name in ('', 'pledge', 'pledge.test')}

    def teardown_method(self, method):
        for (name, level) in self._levels.items():
            logging.getLogger(name).setLevel(level)

    def test_set_debug_true(self):
        set_debug_mode(True)
        assert logging.getLogger().getEffectiveLevel() == logging.INFO
        assert logging.getLogger('pledge').getEffectiveLevel() == \
            logging.DEBUG

    def test_set_debug_false(self):
        set_debug_mode(False)
        assert logging.getLogger().getEffectiveLevel() == logging.WARNING
        assert logging.getLogger('pledge').getEffectiveLevel() == \
            logging.INFO

    def test_set_logs_level(self):
        set_logs_level({'pledge': 'error', 'pledge.test': '10'})
        assert logging.getLogger('pledge').level == logging.ERROR
        assert logging.getLogger('pledge.test').level == logging.DEBUG

    def test_set_invalid_logs_level(self, caplog):
        logging.getLogger('pledge.test').setLevel(logging.INFO)
        with caplog.at_level(logging.WARNING):
            set_logs_level({'pledge.test': 'not-a-level'})

        assert 'Invalid log level "NOT-A-LEVEL"' in caplog.text
        assert logging.getLogger('pledge.test').level == logging.INFO


class TestContext(object):

    def setup_method(self, method):
        self._levels = {name: logging.getLogger(name).level
                        for name in ('', 'pledge', 'pledge.test')}

    def teardown_method(self, method):
        for (name, level) in self._levels.items():
            logging.getLogger(name).setLevel(level)
        sys.excepthook = sys.__excepthook__

    def test_context_without_file(self, config_file):
        root_logger = logging.getLogger()
        handlers = list(root_logger.handlers)

        with Context(filename=None) as context:
            assert isinstance(context, Context)
            assert len(root_logger.handlers) == len(handlers) + 1
            assert sys.excepthook is log._excepthook

        assert root_logger.handlers == handlers
        assert sys.excepthook is not log._excepthook

    def test_context_with_file(self, config_file, tmpdir, monkeypatch):
        monkeypatch.setattr(log.pledge_path, 'get_log_dir',
                            lambda: str(tmpdir))
        root_logger = logging.getLogger()
        handlers = list(root_logger.handlers)

        with Context(filename='test.log'):
            assert len(root_logger.handlers) == len(handlers) + 2
            logging.getLogger('pledge.test').warning('written in file')

        assert root_logger.handlers == handlers
        content = tmpdir.join('test.log').read_text('utf-8')
        assert 'written in file' in content


    def test_context_uses_config(self, config_file):
        config.set('debug_mode', True)
        config.set('log_levels', {'pledge.test': 'ERROR'})

        with Context(filename=None):
            assert logging.getLogger().level == logging.INFO
            assert logging.getLogger('pledge').level == logging.DEBUG
            assert logging.getLogger('pledge.test').level == logging.ERROR


class TestFileHandler(object):

    def test_file_handler_rotated_at_midnight(self, tmpdir, monkeypatch):
        monkeypatch.setattr(log.pledge_path, 'get_log_dir',
                            lambda: str(tmpdir))

        handler = log._get_file_handler('test.log')
        try:
            assert isinstance(handler,
                              logging.handlers.TimedRotatingFileHandler)
            assert handler.when == 'MIDNIGHT'
            assert handler.backupCount == 7
            assert handler.baseFilename == str(tmpdir.join('test.log'))
        finally:
            handler.close()

    def test_file_handler_in_missing_dir(self, tmpdir, monkeypatch, caplog):
        missing = str(tmpdir.join('missing'))
        monkeypatch.setattr(log.pledge_path, 'get_log_dir', lambda: missing)

        with caplog.at_level(logging.WARNING):
            assert log._get_file_handler('test.log') is None
        assert 'Unable to create the log file' in caplog.text


class TestReset(object):

    def test_reset(self):
        root_logger = logging.getLogger()
        handlers = list(root_logger.handlers)
        log_filter = logging.Filter('pledge')
        root_logger.addFilter(log_filter)
        try:
            log.reset()
            assert root_logger.handlers == []
            assert root_logger.filters == []
        finally:
            for h in handlers:
                root_logger.addHandler(h)
            root_logger.removeFilter(log_filter)
