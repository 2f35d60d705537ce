# -*- coding: utf-8 -*-

"""Schedulers used to run the Promise callbacks.

A Promise never calls its callbacks directly: each one is given to a
scheduler, who runs it later, after the code currently executing. The only
operation a scheduler must provide is ``enqueue(callback)``:

- callbacks are executed in the order they were enqueued (FIFO);
- a callback is never executed before ``enqueue()`` returns;
- a callback runs until completion before the next one starts.

Two implementations are provided:

- ``QueueScheduler`` stores the callbacks until someone calls ``run()``. It's
  the default scheduler, and is useful in tests as the execution can be done
  step by step.
- ``ThreadScheduler`` executes the callbacks in a dedicated thread, like the
  main loop of a GUI.

The scheduler used by a Promise can be passed to its constructor. By default,
the process-wide scheduler returned by ``get_default_scheduler()`` is used.
"""

from collections import deque
import logging
import queue
from threading import current_thread, Lock, Thread

_logger = logging.getLogger(__name__)


def _run_callback(callback):
    try:
        callback()
    except Exception:
        _logger.exception('Scheduled callback %r raised an exception!'
                          % callback)


class Scheduler(object):
    """Interface of all schedulers."""

    def enqueue(self, callback):
        """Add a callback at the end of the queue.

        Args:
            callback (callable): function without argument.
        """
        raise NotImplementedError()


class QueueScheduler(Scheduler):
    """Scheduler who stores callbacks until the queue is explicitly drained.

    ``enqueue()`` can be called from any thread, but ``run()`` and
    ``run_once()`` should always be called from the same thread.
    """

    def __init__(self):
        self._queue = deque()
        self._lock = Lock()

    def enqueue(self, callback):
        with self._lock:
            self._queue.append(callback)

    def run_once(self):
        """Execute the first callback of the queue.

        Returns:
            bool: True if a callback has been executed; False if the queue
                was empty.
        """
        with self._lock:
            if not self._queue:
                return False
            callback = self._queue.popleft()
        _run_callback(callback)
        return True

    def run(self):
        """Execute callbacks until the queue is empty.

        Callbacks added to the queue during the execution are also executed.

        Returns:
            int: number of callbacks executed.
        """
        count = 0
        while self.run_once():
            count += 1
        return count

    def __len__(self):
        with self._lock:
            return len(self._queue)


class ThreadScheduler(Scheduler):
    """Scheduler executing the callbacks in a dedicated thread.

    Callbacks enqueued before ``start()`` are kept, and executed as soon as
    the thread is started.

    Example:

        >>> with ThreadScheduler() as scheduler:
        ...     p = Promise.resolve(3, scheduler=scheduler).then(str)
        ...     assert p.result(1) == '3'
    """

    _STOP = object()

    def __init__(self, name='PromiseScheduler'):
        self._queue = queue.Queue()
        self._name = name
        self._thread = None

    def enqueue(self, callback):
        self._queue.put(callback)

    def start(self):
        """Start the thread. Does nothing if it's already running."""
        if self.is_running():
            return
        self._thread = Thread(target=self._run, name=self._name)
        self._thread.daemon = True
        self._thread.start()
        _logger.debug('Scheduler thread "%s" started.' % self._name)

    def stop(self, timeout=None):
        """Stop the thread once all callbacks already enqueued are executed.

        Called from a callback, it only asks the thread to stop after the
        current callback, without waiting.

        Args:
            timeout (float, optional): maximum time to wait the end of the
                thread. By default, it can wait indefinitely.
        Returns:
            bool: True if the thread is stopped; False if it's still running
                (at the end of the timeout, or when called from a callback).
        """
        if self._thread is None:
            return True
        if not self._thread.is_alive():
            self._thread = None
            return True
        self._queue.put(self._STOP)
        if current_thread() is self._thread:
            return False
        self._thread.join(timeout)
        if self._thread.is_alive():
            _logger.warning('Scheduler thread "%s" is still running.'
                            % self._name)
            return False
        self._thread = None
        _logger.debug('Scheduler thread "%s" stopped.' % self._name)
        return True

    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        while True:
            callback = self._queue.get()
            if callback is self._STOP:
                return
            _run_callback(callback)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


_default_scheduler = QueueScheduler()


def get_default_scheduler():
    """Returns the scheduler used by promises created without scheduler."""
    return _default_scheduler


def set_default_scheduler(scheduler):
    """Replace the process-wide default scheduler.

    Only promises created after this call are affected.

    Args:
        scheduler (Scheduler): the new default. If None, a new
            ``QueueScheduler`` is used.
    Returns:
        Scheduler: the previous default scheduler.
    """
    global _default_scheduler

    previous = _default_scheduler
    if scheduler is None:
        scheduler = QueueScheduler()
    _default_scheduler = scheduler
    return previous
