# -*- coding: utf-8 -*-

from functools import wraps

from .deferred import Deferred
from .errors import PromiseRejection
from .util import is_thenable


def reduce_coroutine(safeguard=False):
    """Decorator who converts a coroutine of promises into a single promise.

    The greatest interest is the ability to write a function in an
    synchronous-like style, using many asynchronous Promises.
    Whatever is the number of Promises or async calls used, the result will
    always be an unique Promise wrapping the whole process.

    Each time the generator yields a thenable, the generator is resumed with
    its result, or the rejection reason is raised inside the generator.
    The first value yielded who is not a thenable is the result of the
    Promise. The value returned by the generator is also accepted, unless
    it's None: a generator can't tell apart `return None` from the end of
    its body, so in both cases the result is the value of the last promise
    yielded.

    Example:

        >>> @reduce_coroutine()
        ... def download_and_parse(url):
        ...     content = yield download(url)
        ...     document = yield parse(content)
        ...     return document.title

    Args:
        safeguard (boolean): if true, use `Promise.safeguard()` on the
            resulting promise.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            """
            Args:
                *args
                **kwargs
            Returns:
                Promise<*>
            """
            df = Deferred(_name='COROUTINE %s' % func.__name__)
            if safeguard:
                df.promise.safeguard()

            try:
                # Create generator; Initialization phase
                gen = func(*args, **kwargs)
            except Exception as error:
                df.reject(error)
                return df.promise

            def _call_next_or_set_result(value):
                if is_thenable(value):
                    value.then(iter_next, iter_error)
                else:
                    gen.close()
                    df.resolve(value)

            def _stop(stop, last_value):
                # `return None` and the end of the body are the same.
                if stop.value is None:
                    df.resolve(last_value)
                else:
                    df.resolve(stop.value)

            def iter_next(yielded_value):
                try:
                    next_value = gen.send(yielded_value)
                except StopIteration as stop:
                    return _stop(stop, yielded_value)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            def iter_error(reason):
                raised = reason
                if not isinstance(reason, BaseException):
                    raised = PromiseRejection(reason)
                try:
                    next_value = gen.throw(raised)
                except StopIteration as stop:
                    return _stop(stop, None)
                except Exception as error:
                    # Not caught by the generator: keep the original reason.
                    return df.reject(reason if error is raised else error)
                _call_next_or_set_result(next_value)

            # Start and resolve loop.
            try:
                f = next(gen)
            except StopIteration as stop:
                df.resolve(stop.value)
                return df.promise
            except Exception as error:
                df.reject(error)
                return df.promise
            _call_next_or_set_result(f)

            return df.promise

        return wrapper
    return decorator
