# -*- coding: utf-8 -*-

"""Report the rejected promises that nobody observes.

Without error handler (set by ``then()`` or ``catch()``), a rejection is
silently ignored. To detect these errors, when a Promise is rejected, a check
is scheduled. If, when the check is executed, there is still no callback
registered on the Promise, the rejection is sent to a ``RejectionSink``.

It's a best-effort detection: a callback registered after the check will not
cancel the report.

By default, the ``LoggingRejectionSink`` is used: it logs the rejection as an
error, unless one of its handlers suppresses it.
"""

import logging

from ..common import config
from ..common.signal import Signal
from .util import exc_info_of

_logger = logging.getLogger(__name__)


class RejectionSink(object):
    """Interface of the objects receiving the unobserved rejections."""

    def notify_unobserved_rejection(self, promise, reason):
        """Called when a rejection has not been observed.

        It's called at most once per Promise.

        Args:
            promise (Promise): the Promise rejected.
            reason: the rejection reason.
        Returns:
            bool: True if the rejection has been suppressed (handled by the
                sink); False if it should be considered as an uncaught error.
        """
        raise NotImplementedError()


class LoggingRejectionSink(RejectionSink):
    """Default sink: log the rejections as errors.

    Handlers connected to the signal ``unobserved_rejection`` receive the
    promise and the reason. If one of them returns True, the rejection is
    considered handled and nothing is logged.

    The log can be disabled by the config entry
    ``report_unhandled_rejections``.

    Attributes:
        unobserved_rejection (Signal): fired for each unobserved rejection.
    """

    def __init__(self):
        self.unobserved_rejection = Signal()

    def notify_unobserved_rejection(self, promise, reason):
        suppressed = any(self.unobserved_rejection.fire(promise, reason))
        if suppressed:
            _logger.debug('Unobserved rejection of %r has been suppressed.',
                          promise)
        elif config.get('report_unhandled_rejections'):
            _logger.error('Uncaught (in promise) %r: %r', promise, reason,
                          exc_info=exc_info_of(reason))
        return suppressed


_default_sink = LoggingRejectionSink()


def get_default_sink():
    """Returns the sink used by promises created without sink."""
    return _default_sink


def set_default_sink(sink):
    """Replace the process-wide default sink.

    Only promises created after this call are affected.

    Args:
        sink (RejectionSink): the new default. If None, a new
            ``LoggingRejectionSink`` is used.
    Returns:
        RejectionSink: the previous default sink.
    """
    global _default_sink

    previous = _default_sink
    if sink is None:
        sink = LoggingRejectionSink()
    _default_sink = sink
    return previous
