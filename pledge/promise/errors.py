# -*- coding: utf-8 -*-

import builtins


class TimeoutError(builtins.TimeoutError):
    """An operation could not be executed within the time allowed."""
    pass


class PromiseRejection(Exception):
    """Raised in place of a rejection reason who is not an exception.

    A Promise can be rejected with any value. When such value must be raised
    (by ``Promise.result()``, or thrown into a coroutine), it's wrapped into
    a ``PromiseRejection``.

    Attributes:
        reason: the original rejection reason.
    """

    def __init__(self, reason):
        Exception.__init__(self, reason)
        self.reason = reason


class AggregateError(Exception):
    """Ordered collection of the failures of a group of promises.

    It's the rejection reason of ``Promise.any()`` when no promise has been
    fulfilled. The reasons are kept in the order the rejections occurred,
    which is not necessarily the order of the promises.
    """

    def __init__(self):
        Exception.__init__(self, 'All promises were rejected')
        self._reasons = []

    @property
    def reasons(self):
        """tuple: read-only copy of the rejection reasons."""
        return tuple(self._reasons)

    def _add(self, reason):
        self._reasons.append(reason)

    def __repr__(self):
        return 'AggregateError(%r)' % (self._reasons,)
