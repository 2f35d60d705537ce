# -*- coding: utf-8 -*-

import configparser
import pytest

from pledge.common import config
from pledge.promise import (QueueScheduler, RejectionSink,
                            set_default_scheduler, set_default_sink)


class RecordingSink(RejectionSink):
    """Rejection sink keeping all notifications received."""

    def __init__(self):
        self.notifications = []

    def notify_unobserved_rejection(self, promise, reason):
        self.notifications.append((promise, reason))
        return True

    @property
    def reasons(self):
        return [reason for (_, reason) in self.notifications]


@pytest.fixture(autouse=True)
def scheduler(request):
    """Install a new QueueScheduler as default scheduler.

    Nothing is executed until the test calls ``scheduler.run()``.

    Returns:
        QueueScheduler: the default scheduler during the test.
    """
    scheduler = QueueScheduler()
    previous = set_default_scheduler(scheduler)
    request.addfinalizer(lambda: set_default_scheduler(previous))
    return scheduler


@pytest.fixture(autouse=True)
def sink(request):
    """Install a RecordingSink as default rejection sink.

    Returns:
        RecordingSink: the default sink during the test.
    """
    sink = RecordingSink()
    previous = set_default_sink(sink)
    request.addfinalizer(lambda: set_default_sink(previous))
    return sink


@pytest.fixture
def config_file(tmpdir, monkeypatch):
    """Redirect the config module to an empty, temporary, config file.

    Returns:
        str: path of the config file (it doesn't exist yet).
    """
    path = str(tmpdir.join('pledge.ini'))
    parser = configparser.ConfigParser()
    parser.add_section('config')
    monkeypatch.setattr(config, '_config_parser', parser)
    monkeypatch.setattr(config, '_get_config_file_path', lambda: path)
    return path
