# -*- coding: utf-8 -*-

from concurrent.futures import ThreadPoolExecutor as Executor
from functools import partial
import logging

from ..common import config
from .deferred import Deferred

_logger = logging.getLogger(__name__)


class ThreadPoolExecutor(object):
    """Execute callables asynchronously on demand, in another threads.

    The promises returned are settled through their scheduler, never directly
    from the worker threads.
    """

    def __init__(self, max_workers=None, scheduler=None, sink=None):
        """Initialize the thread pool

        Args:
            max_workers (int, optional): The maximum number of threads that
                can be used to execute the given calls. Default to the config
                entry 'thread_pool_workers'.
            scheduler (Scheduler, optional): scheduler of the promises.
            sink (RejectionSink, optional): rejection sink of the promises.
        """
        if max_workers is None:
            max_workers = config.get('thread_pool_workers')
        self._executor = Executor(max_workers)
        self._scheduler = scheduler
        self._sink = sink
        _logger.debug('Thread pool started with %s workers.', max_workers)

    def submit(self, callback, *args, **kwargs):
        """Schedule the callable to be executed and return a Promise.

        Args:
            callback (callable): callback who will run in another thread.
            *args: argument passed to callback.
            **kwargs: keywords arguments passed to callback.
        Returns:
            Promise: Promise who resolve after the callback has been executed.
                It's fulfilled with the value returned by the callback.
                If the callback raise an exception, the promise is rejected
                with this exception.
        """
        df = Deferred(scheduler=self._scheduler, sink=self._sink,
                      _name='THREAD %s' % getattr(callback, '__name__', '???'))
        scheduler = df.promise.scheduler

        def on_future_done(f):
            try:
                result = f.result()
            except BaseException as error:
                scheduler.enqueue(partial(df.reject, error))
            else:
                scheduler.enqueue(partial(df.resolve, result))

        f = self._executor.submit(callback, *args, **kwargs)
        f.add_done_callback(on_future_done)

        return df.promise

    def shutdown(self, wait=True):
        """Stop the thread pool. Tasks already submitted are not cancelled.

        Args:
            wait (boolean): if True, wait the end of all running tasks.
        """
        self._executor.shutdown(wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
