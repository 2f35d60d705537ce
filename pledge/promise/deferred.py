# -*- coding: utf-8 -*-

from .promise import Promise


class Deferred(object):
    """Promise controlled from the outside.

    A Deferred is the "creator" side of an async task, whereas a Promise
    represents the asynchronous value from the "consumer" side. It avoids to
    write an executor when the code settling the Promise is not known at the
    creation.

    Example:

        >>> df = Deferred()
        >>> timer = Timer(1.0, df.reject, args=[TimeoutError()])
        >>> timer.start()
        >>> first = Promise.race([long_task(), df.promise])

    Attributes:
        promise (Promise): the Promise associated to the Deferred.
        resolve (function): resolve the promise with a value or a thenable.
        reject (function): reject the promise with a reason.
    """

    def __init__(self, scheduler=None, sink=None, _name='DEFERRED'):
        self.promise = Promise(self._executor, scheduler=scheduler,
                               sink=sink, _name=_name)

    def _executor(self, resolve, reject):
        self.resolve = resolve
        self.reject = reject
