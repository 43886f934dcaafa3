"""Abort signal and controller used to tear down promise subscriptions."""

from collections import namedtuple

from .config import Default


ABORT = 'abort'

AbortEvent = namedtuple('AbortEvent', ['type', 'target'])


class CancelableAbortSignal(object):
    """Signal with listener bookkeeping.

    ``subscribe()`` returns a function removing the listener, and the
    owning controller keeps every such function so that ``dispose()`` can
    remove them in bulk.
    """

    def __init__(self, controller=None):
        self.aborted = False
        self.reason = None
        self._listeners = []
        self._controller = controller

    def add_event_listener(self, event_type, listener, *, once=False):
        assert callable(listener), "CancelableAbortSignal.add_event_listener expects callable"
        for t, l, _ in self._listeners:
            if t == event_type and l == listener:
                return
        self._listeners.append((event_type, listener, once))

    def remove_event_listener(self, event_type, listener):
        for i, (t, l, _) in enumerate(self._listeners):
            if t == event_type and l == listener:
                del self._listeners[i]
                return True
        return False

    def subscribe(self, listener_or_type, listener=None, *, once=False):
        """Adds listener and returns a function removing it.

        Accepts either ``subscribe(listener)`` for abort events or
        ``subscribe(event_type, listener)``.
        """
        if listener is None:
            event_type, listener = ABORT, listener_or_type
        else:
            event_type = listener_or_type

        self.add_event_listener(event_type, listener, once=once)

        def unsubscribe():
            self.remove_event_listener(event_type, listener)
            if self._controller is not None:
                self._controller._forget(unsubscribe)

        if self._controller is not None:
            self._controller._subscriptions.append(unsubscribe)
        return unsubscribe

    def dispatch_event(self, event_type):
        event = AbortEvent(event_type, self)
        for entry in self._listeners[:]:
            t, listener, once = entry
            if t != event_type:
                continue
            if once and entry in self._listeners:
                self._listeners.remove(entry)
            try:
                listener(event)
            except Exception as ex:
                Default.on_unhandled_error(ex)


class CancelableAbortController(object):
    """Controller of a CancelableAbortSignal.

    Unlike a one-shot abort controller, ``abort()`` resets the signal after
    notifying listeners, so the controller can be reused.
    """

    def __init__(self):
        self._subscriptions = []
        self.signal = CancelableAbortSignal(self)

    @property
    def subscriptions(self):
        """Unsubscribe functions of the listeners added through ``subscribe()``."""
        return list(self._subscriptions)

    def abort(self, reason=None):
        """Abort and reset the controller."""
        signal = self.signal
        signal.aborted = True
        signal.reason = reason
        signal.dispatch_event(ABORT)
        self.dispose()
        signal.aborted = False
        signal.reason = None

    def dispose(self):
        """Remove all listeners added through ``subscribe()``."""
        subscriptions = self._subscriptions[:]
        for unsubscribe in subscriptions:
            unsubscribe()
        self._subscriptions[:] = []

    def _forget(self, unsubscribe):
        try:
            self._subscriptions.remove(unsubscribe)
        except ValueError:
            pass
