# -*- coding: utf-8 -*-

from .decorators import wrap_promise
from .deferred import Deferred
from .errors import AggregateError, PromiseRejection, TimeoutError
from .promise import Promise
from .reduce_coroutine import reduce_coroutine
from .rejection import (get_default_sink, LoggingRejectionSink,
                        RejectionSink, set_default_sink)
from .scheduler import (get_default_scheduler, QueueScheduler, Scheduler,
                        set_default_scheduler, ThreadScheduler)
from .thread_pool import ThreadPoolExecutor
from .util import is_thenable

__all__ = ['AggregateError', 'Deferred', 'get_default_scheduler',
           'get_default_sink', 'is_thenable', 'LoggingRejectionSink',
           'Promise', 'PromiseRejection', 'QueueScheduler', 'reduce_coroutine',
           'RejectionSink', 'Scheduler', 'set_default_scheduler',
           'set_default_sink', 'ThreadPoolExecutor', 'ThreadScheduler',
           'TimeoutError', 'wrap_promise']
