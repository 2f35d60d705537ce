# -*- coding: utf-8 -*-

from collections import namedtuple
from functools import partial
import logging
from threading import Condition, Lock

from .errors import AggregateError, PromiseRejection, TimeoutError
from .rejection import get_default_sink
from .scheduler import get_default_scheduler
from .util import exc_info_of, is_thenable

_logger = logging.getLogger(__name__)


# Callbacks registered by then(), and the functions settling the promise
# returned by then().
_Reaction = namedtuple('_Reaction',
                       ['on_fulfilled', 'on_rejected', 'resolve', 'reject'])


def _once():
    """Returns a function who returns True the first time, then False."""
    lock = Lock()
    called = [False]

    def first_call():
        with lock:
            if called[0]:
                return False
            called[0] = True
            return True

    return first_call


class Promise(object):
    """It represents an operation expected to be completed in the future.

    A Promise contains a value not yet known when the Promise is created. It
    allows to set callbacks who will be called as soon as the result is known.
    It's a "promise" of a future value.

    A Promise is settled only once: it goes from the state "pending" to
    either "fulfilled" (it has a result) or "rejected" (it has a reason,
    usually an exception). All further attempts to settle it are ignored.

    Callbacks are never executed directly: they're given to a scheduler (see
    ``pledge.promise.scheduler``), who executes them after the current code.
    A rejection that no callback observes is reported to a rejection sink
    (see ``pledge.promise.rejection``).
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'

    def __init__(self, executor, scheduler=None, sink=None, _name=None,
                 _previous=None):
        """Constructor of the Promise.

        Generate the two callbacks for the executor, then call the `executor`.
        It means the executor will be fully executed before the constructor
        returns.
        If the executor raises an exception, it's caught and the Promise is
        rejected with this exception.

        Args:
            executor (callable): Takes 2 callable arguments:
                The first one, `resolve()`, should be called when the Promise
                is fulfilled (ie the tasks is done) and must accept the
                result's value as its only argument. If the value is a
                thenable, the Promise will follow its state.
                The second, `reject()`, should be called when an error
                occurs. Its argument is the reason of the failure, usually
                an instance of `Exception`.
            scheduler (Scheduler, optional): scheduler executing the
                callbacks. Default to the process-wide default scheduler.
            sink (RejectionSink, optional): receive the rejection if nobody
                observes it. Default to the process-wide default sink.
            _name (str): if set, name used when converted to text.
            _previous (Promise): if set, the promise this one is chained to.
        """
        self._state = self.PENDING
        self._result = None
        self._condition = Condition()
        self._scheduler = get_default_scheduler() if scheduler is None \
            else scheduler
        self._sink = get_default_sink() if sink is None else sink
        self._name = _name or getattr(executor, '__name__', '???')
        self._previous = _previous

        self._reactions = []

        # True as soon as a callback has been registered.
        self._observed = False

        # True as soon as resolve() or reject() has been called. The state
        # stays PENDING while the resolution waits for another thenable.
        self._resolved = False

        try:
            executor(self._external_resolve, self._external_reject)
        except Exception as error:
            if self._claim():
                self._settle(self.REJECTED, error)
            else:
                _logger.warning('Executor of Promise %r raised an exception '
                                'after resolution. It will be ignored.',
                                self, exc_info=True)

    @property
    def state(self):
        """str: one of PENDING, FULFILLED or REJECTED."""
        with self._condition:
            return self._state

    @property
    def scheduler(self):
        return self._scheduler

    @property
    def sink(self):
        return self._sink

    def is_pending(self):
        return self.state == self.PENDING

    def is_fulfilled(self):
        return self.state == self.FULFILLED

    def is_rejected(self):
        return self.state == self.REJECTED

    def result(self, timeout=None):
        """Wait for the result and returns it as soon as it's available.

        The waiting blocks the current thread: the Promise must be settled by
        another thread. Note that a ``QueueScheduler`` must be run before the
        call, as nobody else will execute the callbacks.

        Args:
            timeout (float, optional): if set, maximum time to wait the promise
                to be fulfilled. By default, it can wait indefinitely.
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
            PromiseRejection: if the promise is rejected with a value who is
                not an exception.
            *: If the promise is rejected, the rejection cause is raised.
        """
        with self._condition:
            if self._state == self.PENDING:
                self._condition.wait_for(self._is_settled, timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            elif self._state == self.REJECTED:
                if isinstance(self._result, BaseException):
                    raise self._result
                raise PromiseRejection(self._result)
            else:
                return self._result

    def exception(self, timeout=None):
        """Wait for the promise rejection and returns it's reason.

        Args:
            timeout (float, optional): if set, maximum time to wait the promise
                to be rejected. By default, it can wait indefinitely.
        Returns:
            *: the reason of the rejection of the Promise, usually an
                Exception.
            None: if the promise is fulfilled.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
        """
        with self._condition:
            if self._state == self.PENDING:
                self._condition.wait_for(self._is_settled, timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            elif self._state == self.REJECTED:
                return self._result
            else:
                return None

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new promise from callbacks called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` callback will be
        called. Otherwise (the promise has been rejected), the `on_rejected`
        callback is called. The callback is always called by the scheduler,
        even if the promise is already settled.
        In any case, the callback will define the state of the returned
        Promise. If the callback raises an exception, the new Promise is
        rejected, unless the exception is itself a thenable: in this case the
        new Promise follows it. The callback can returns:
        - A value: the new promise will be fulfilled with this value.
        - Another Promise, or any object with a `then` method: when fulfilled
            or rejected, will transfer its status (state and result/reason) to
            the Promise returned by this method.

        If a callback is not defined, the state of the "self promise" is
        transferred at the new promise (the state and the value/reason).

        Many callbacks can be chained to the same Promise. They're called in
        the order they've been registered.

        Args:
            on_fulfilled (callable, optional):  This callback will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This callback will receive the
                reason of the rejection of the original promise as argument.
        Returns:
            Promise<*>: new promise depending of self.
        """

        def chained_executor(resolve, reject):
            self._add_reaction(
                _Reaction(on_fulfilled, on_rejected, resolve, reject))

        if not on_rejected:
            name = '%s' % getattr(on_fulfilled, '__name__', '???')
        elif not on_fulfilled:
            name = '<None, %s>' % getattr(on_rejected, '__name__', '???')
        else:
            name = '<%s, %s>' % (getattr(on_fulfilled, '__name__', '???'),
                                 getattr(on_rejected, '__name__', '???'))
        return Promise(chained_executor, scheduler=self._scheduler,
                       sink=self._sink, _name=name, _previous=self)

    def catch(self, on_rejected):
        """Create a new promise with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Will be called with the rejection reason
                if `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` callback.
        """
        return self.then(None, on_rejected)

    def finally_(self, on_finally):
        """Create a new promise with a callback called in all cases.

        `on_finally()` is called without argument when `self` is settled,
        whatever the outcome. The returned Promise is settled like `self`,
        except if `on_finally()` raises an exception, or returns a thenable
        who is rejected: in these cases, the new Promise is rejected with
        this new reason.
        If `on_finally()` returns a thenable, the new Promise waits for it
        before being settled.

        Args:
            on_finally (callable): callback without argument.
        Returns:
            Promise<*>: new Promise chained to `self`.
        """

        def after(outcome):
            waiting = on_finally()
            if is_thenable(waiting):
                return self._new_resolved(waiting).then(lambda _: outcome())
            return outcome()

        def on_fulfilled(value):
            return after(lambda: value)

        def on_rejected(reason):
            return after(lambda: self._new_rejected(reason))

        on_fulfilled.__name__ = on_rejected.__name__ = getattr(
            on_finally, '__name__', '???')
        return self.then(on_fulfilled, on_rejected)

    def safeguard(self):
        """Catch all errors and log them with the most details possible.

        Calling `safeguard()` after all chains are set will catch the errors
        and log them as ERROR with the maximum of details possible. Contrary
        to the unobserved rejection report, an error will be logged even if
        another callback has been registered.
        """
        def guard(reason):
            _logger.error('[SAFEGUARD] %r: %r', self, reason,
                          exc_info=exc_info_of(reason))

        self.then(None, guard)

    def __repr__(self):
        return 'Promise(%s)' % self._inner_print()

    def _inner_print(self):
        with self._condition:
            if self._state == self.REJECTED:
                state = 'R'
            elif self._state == self.FULFILLED:
                state = 'F'
            else:
                state = 'P'

        if self._previous:
            return '%s -> %s %s' % (self._previous._inner_print(), self._name,
                                    state)
        return '%s %s' % (self._name, state)

    @classmethod
    def resolve(cls, value=None, scheduler=None, sink=None):
        """Create a promise who resolves the selected value.

        Args:
            value: result of the promise. If it's a Promise, it's returned as
                is. If it's another thenable, the new Promise will follow it.
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            Promise: new Promise fulfilled (or soon to be), containing the
                value passed in parameter.
        """
        if isinstance(value, Promise):
            return value
        else:
            return cls(lambda ok, error: ok(value), scheduler=scheduler,
                       sink=sink, _name='RESOLVE')

    @classmethod
    def reject(cls, reason, scheduler=None, sink=None):
        """Create a Promise rejected for the reason specified.

        The reason is used as is, even if it's a thenable.

        Args:
            reason: reason of the rejection, usually an Exception.
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            Promise: new Promise already rejected.
        """
        return cls(lambda ok, error: error(reason), scheduler=scheduler,
                   sink=sink, _name='REJECT')

    @classmethod
    def with_resolvers(cls, scheduler=None, sink=None):
        """Create a pending Promise, and the functions to settle it.

        Args:
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            tuple: (promise, resolve, reject). `resolve()` and `reject()` are
                the functions the executor would have received.
        """
        resolvers = []

        def executor(resolve, reject):
            resolvers.extend((resolve, reject))

        promise = cls(executor, scheduler=scheduler, sink=sink,
                      _name='WITH_RESOLVERS')
        return promise, resolvers[0], resolvers[1]

    @classmethod
    def all(cls, items, scheduler=None, sink=None):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolve when all of the promises in the list are
        resolved, and returns a list of all the resulting values, keeping the
        order of the promise list.
        If a promise is rejected, then the resulting promise is rejected with
        the same reason, and all results from other promises are ignored.

        Args:
            items (iterable): promises. Values who aren't thenable are
                considered as already fulfilled promises.
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            Promise<list>: resulting promise, fulfilled when all promises
                are fulfilled, or rejected when one of the promises has been
                rejected. If `items` is empty, it's fulfilled immediately.
        """
        items = list(items)
        if not items:
            return cls.resolve([], scheduler=scheduler, sink=sink)

        def executor(resolve, reject):
            results = [None] * len(items)
            nb_fulfilled = [0]

            def resolve_one_promise(index, value):
                results[index] = value
                nb_fulfilled[0] += 1
                if nb_fulfilled[0] == len(items):
                    resolve(results)

            for index, item in enumerate(items):
                cls.resolve(item, scheduler=scheduler, sink=sink).then(
                    partial(resolve_one_promise, index), reject)

        return cls(executor, scheduler=scheduler, sink=sink, _name='ALL')

    @classmethod
    def any(cls, items, scheduler=None, sink=None):
        """Create a Promise fulfilled by the first promise fulfilled.

        The resulting Promise is rejected only if all promises are rejected.
        The reason is then an `AggregateError` containing all reasons, in the
        order the promises have been rejected.

        Args:
            items (iterable): promises. Values who aren't thenable are
                considered as already fulfilled promises.
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            Promise<*>: resulting promise. If `items` is empty, it's rejected
                immediately with an empty `AggregateError`.
        """
        items = list(items)
        error = AggregateError()
        if not items:
            return cls.reject(error, scheduler=scheduler, sink=sink)

        def executor(resolve, reject):
            nb_rejected = [0]

            def reject_one_promise(reason):
                error._add(reason)
                nb_rejected[0] += 1
                if nb_rejected[0] == len(items):
                    reject(error)

            for item in items:
                cls.resolve(item, scheduler=scheduler, sink=sink).then(
                    resolve, reject_one_promise)

        return cls(executor, scheduler=scheduler, sink=sink, _name='ANY')

    @classmethod
    def race(cls, items, scheduler=None, sink=None):
        """Create a Promise settled like the first promise settled.

        Result value or rejection reason of the first finished promise are
        transmitted. All other promise's results are ignored.

        A timeout can be made by racing a promise against a promise rejected
        by a timer.

        Args:
            items (iterable): promises. Values who aren't thenable are
                considered as already fulfilled promises.
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            Promise: a promise. If `items` is empty, it stays pending forever.
        """
        items = list(items)

        def executor(resolve, reject):
            for item in items:
                cls.resolve(item, scheduler=scheduler, sink=sink).then(
                    resolve, reject)

        return cls(executor, scheduler=scheduler, sink=sink, _name='RACE')

    @classmethod
    def all_settled(cls, items, scheduler=None, sink=None):
        """Create a Promise who wait all promises to be settled.

        The resulting Promise is never rejected. It's fulfilled with a list
        containing, for each promise (in the same order), a dict describing
        its outcome:
        ``{'status': 'fulfilled', 'value': value}`` or
        ``{'status': 'rejected', 'reason': reason}``.

        Args:
            items (iterable): promises. Values who aren't thenable are
                considered as already fulfilled promises.
            scheduler (Scheduler, optional): scheduler of the new Promise.
            sink (RejectionSink, optional): rejection sink of the new Promise.
        Returns:
            Promise<list of dict>
        """
        def fulfilled(value):
            return {'status': cls.FULFILLED, 'value': value}

        def rejected(reason):
            return {'status': cls.REJECTED, 'reason': reason}

        return cls.all([
            cls.resolve(item, scheduler=scheduler, sink=sink).then(
                fulfilled, rejected)
            for item in items], scheduler=scheduler, sink=sink)

    def _new_resolved(self, value):
        return Promise.resolve(value, scheduler=self._scheduler,
                               sink=self._sink)

    def _new_rejected(self, reason):
        return Promise.reject(reason, scheduler=self._scheduler,
                              sink=self._sink)

    def _is_settled(self):
        return self._state != self.PENDING

    def _claim(self):
        """Mark the Promise as resolved. Returns False if it already was."""
        with self._condition:
            if self._resolved:
                return False
            self._resolved = True
            return True

    def _external_resolve(self, value=None):
        if not self._claim():
            _logger.debug('Try to resolve Promise %r already resolved. New '
                          'value will be ignored: %r', self, value)
            return
        self._resolve(value)

    def _external_reject(self, reason=None):
        if not self._claim():
            _logger.debug('Try to reject Promise %r already resolved. New '
                          'reason will be ignored: %r', self, reason)
            return
        self._settle(self.REJECTED, reason)

    def _resolve(self, value):
        """Resolution algorithm: settle the Promise, or follow a thenable."""
        if value is self:
            return self._settle(self.REJECTED, TypeError(
                'Promise %r cannot be resolved with itself.' % self))

        if not is_thenable(value):
            return self._settle(self.FULFILLED, value)

        first_call = _once()

        def on_fulfilled(result):
            if first_call():
                self._resolve(result)

        def on_rejected(reason):
            if first_call():
                self._settle(self.REJECTED, reason)

        try:
            value.then(on_fulfilled, on_rejected)
        except Exception as error:
            if first_call():
                self._settle(self.REJECTED, error)
            else:
                _logger.warning('then() of the thenable %r followed by '
                                'Promise %r raised an exception after '
                                'settlement.', value, self, exc_info=True)

    def _settle(self, state, value):
        # Reactions are enqueued under the lock: registration order holds
        # across threads.
        with self._condition:
            if self._state != self.PENDING:
                return
            self._state = state
            self._result = value
            reactions = self._reactions
            self._reactions = None  # Free the references
            self._condition.notify_all()

            for reaction in reactions:
                self._scheduler.enqueue(
                    partial(self._run_reaction, reaction))

            if state == self.REJECTED:
                self._scheduler.enqueue(self._report_if_unobserved)

    def _add_reaction(self, reaction):
        with self._condition:
            self._observed = True
            if self._state == self.PENDING:
                self._reactions.append(reaction)
            else:
                self._scheduler.enqueue(
                    partial(self._run_reaction, reaction))

    def _run_reaction(self, reaction):
        if self._state == self.FULFILLED:
            handler, transfer = reaction.on_fulfilled, reaction.resolve
        else:
            handler, transfer = reaction.on_rejected, reaction.reject

        if handler is None:
            return transfer(self._result)

        try:
            value = handler(self._result)
        except Exception as error:
            if is_thenable(error):
                return reaction.resolve(error)
            return reaction.reject(error)
        reaction.resolve(value)

    def _report_if_unobserved(self):
        with self._condition:
            if self._observed:
                return
        self._sink.notify_unobserved_rejection(self, self._result)
