# -*- coding: utf-8 -*-


def is_thenable(value):
    """Check if an object can be chained, like a Promise, or is a "result".

    The promise module uses this function to differentiate "chainable" objects
    and direct values, when a value is used to resolve a Promise, or when
    a callback can returns both.

    A class is always a direct value, even if its instances are thenables.

    Returns:
        boolean: True if the value has an attribute 'then' who is callable.
            False if not.
    """
    if isinstance(value, type):
        return False
    return callable(getattr(value, 'then', None))


def exc_info_of(reason):
    """Build the ``exc_info`` tuple to log a rejection reason.

    Args:
        reason: rejection reason of a Promise. It can be any value.
    Returns:
        tuple: (type, value, traceback) if the reason is an exception;
            otherwise None, so the log entry contains no traceback.
    """
    if isinstance(reason, BaseException):
        return type(reason), reason, reason.__traceback__
    return None
