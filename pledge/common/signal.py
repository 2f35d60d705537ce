# -*- coding: utf-8 -*-


class Signal(object):
    """Utility class to register and call callbacks.

    It's a variation of the Observer pattern.

    Observers of a signal can "connect" theirs callables to the signal.
    When the signal is "fired", all connected callbacks are called, and
    their return values are collected.

    Example:

        >>> class RejectionSink(object):
        ...     def __init__(self):
        ...         self.unobserved_rejection = Signal()
        >>>
        >>> def on_rejection(promise, reason):
        ...     print('Nobody listens to %s' % reason)
        ...     return True
        >>>
        >>> sink = RejectionSink()
        >>>
        >>> # Observer side:
        >>> sink.unobserved_rejection.connect(on_rejection)
        >>>
        >>> # observable side:
        >>> sink.unobserved_rejection.fire(None, 'ERROR')
        Nobody listens to ERROR
        [True]
    """

    def __init__(self):
        self._handlers = []

    def connect(self, handler):
        """Register a handler/callback to the signal.

        Args:
            handler (callable): handler which will be called each time the
                signal is fired.
        """
        self._handlers.append(handler)

    def fire(self, *args, **kwargs):
        """Call all handlers, in connection order.

        Returns:
            list: values returned by each handler.
        """
        return [h(*args, **kwargs) for h in list(self._handlers)]

    def disconnect(self, handler):
        """Remove/disconnect a callback.

        Args:
            handler (callable): callback to disconnect
        Returns:
            bool: True if the handler was connected; False otherwise.
        """
        try:
            self._handlers.remove(handler)
            return True
        except ValueError:
            return False

    def disconnect_all(self):
        """Remove all handler/callback registered."""
        self._handlers = []

    def __len__(self):
        return len(self._handlers)
