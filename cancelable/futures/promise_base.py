import asyncio
import concurrent.futures
import inspect

from ..config import Default
from ..exceptions import CancelledError, RejectedError, InvalidStateError
from .promise_chain import PromiseChain, subscribe, invoke_all
from .synchronous_executor import Synchronous


# Statuses of a promise.
PENDING = 'pending'
RESOLVED = 'resolved'
REJECTED = 'rejected'
CANCELED = 'canceled'

_UNSET = object()


def is_promise(value):
    """Returns True if value can be awaited or is a concurrent.futures.Future."""
    return inspect.isawaitable(value) or isinstance(value, concurrent.futures.Future)


def as_exception(reason):
    if isinstance(reason, BaseException):
        return reason
    return RejectedError(reason)


def _noop():
    pass


class PromiseBase:
    """Encapsulates promise state and maintains callbacks.

    Status and outcome are tracked separately: ``status`` leaves ``pending``
    exactly once, while the outcome (result or reason) is what awaiters and
    done callbacks observe. They are set together except for a canceled
    continuation with a rejection handler, whose outcome is produced by that
    handler after the cancellation.
    """

    # Structural marker recognized by is_cancelable_promise()
    __cancelable_promise__ = True

    _status = PENDING
    _result = None
    _reason = _UNSET
    _cancel_reason = None
    _done = False
    _following = False
    _parent = None
    _catches_cancel = False
    _handler_started = False

    def __init__(self, *, clb_executor=None, chain=None):
        """Initializes promise instance.

        Args:
            clb_executor: executor for continuations and done callbacks
            (by default set from ``config.Default.CALLBACK_EXECUTOR``).
            chain: PromiseChain to join, a new one is created by default.
        """
        self._callbacks = []
        self._cancel_callbacks = []
        self._dispose_callbacks = []
        self._executor = clb_executor
        self._chain = (chain or PromiseChain()).link(self)

    @property
    def status(self):
        """One of 'pending', 'resolved', 'rejected' or 'canceled'."""
        return self._status

    def done(self):
        """Return True if the outcome of the promise is available."""
        return self._done

    def cancelled(self):
        """Return True if the promise was canceled."""
        return self._status == CANCELED

    def result(self):
        """Return the result this promise represents.

        Raises:
            InvalidStateError: if the outcome is not available yet.
            CancelledError: if the promise was canceled.
            Exception: the rejection reason, non-exception reasons are
            wrapped into RejectedError.
        """
        if not self._done:
            raise InvalidStateError('Result is not ready.')
        if self._reason is not _UNSET:
            raise as_exception(self._reason)
        return self._result

    def exception(self):
        """Return the exception of the outcome, including CancelledError,
        or None if the promise was fulfilled.

        Raises:
            InvalidStateError: if the outcome is not available yet.
        """
        if not self._done:
            raise InvalidStateError('Exception is not set.')
        if self._reason is not _UNSET:
            return as_exception(self._reason)
        return None

    def add_done_callback(self, fn, *, executor=None):
        """Add a callback to be run when the outcome becomes available.

        The callback is called with a single argument - the promise object.
        Callback is scheduled with either provided executor or with default
        executor of this promise.
        """
        assert callable(fn), "CancelablePromise.add_done_callback expects callable"

        if self._done:
            self._run_callback(fn, executor)
        else:
            self._callbacks.append((fn, executor))

    def remove_done_callback(self, fn):
        """Remove all instances of a callback from the "call when done" list.

        Returns the number of callbacks removed.
        """
        filtered_callbacks = [(f, executor) for f, executor in self._callbacks if f != fn]
        removed_count = len(self._callbacks) - len(filtered_callbacks)
        if removed_count:
            self._callbacks[:] = filtered_callbacks
        return removed_count

    def cancel(self, reason=None):
        """Cancel the promise and every pending promise of its chain.

        All members get the 'canceled' status first, then own cancel
        callbacks of each member are called with the reason, then dispose
        callbacks run, and finally outcomes are published. Does nothing if
        the promise is already settled.

        Returns:
            The promise itself.
        """
        if self._status != PENDING:
            return self

        members = [m for m in self._chain.members if m._status == PENDING]
        for m in members:
            m._status = CANCELED
            m._cancel_reason = reason

        for m in members:
            callbacks = m._cancel_callbacks[:]
            m._cancel_callbacks[:] = []
            invoke_all(callbacks, reason)

        for m in members:
            m._dispose()

        for m in members:
            if not m._defers_cancel_outcome():
                m._set_outcome(reason=CancelledError(reason))
        return self

    def on_cancel(self, callback, *, signal=None):
        """Subscribe to the cancellation of this promise.

        The callback receives the cancellation reason. It is called
        immediately if the promise is already canceled and never if it
        settled otherwise.

        Args:
            callback: function accepting the reason.
            signal: optional CancelableAbortSignal, the subscription is
            removed when it aborts.

        Returns:
            Function removing the subscription.
        """
        assert callable(callback), "CancelablePromise.on_cancel expects callable"

        if self._status == CANCELED:
            try:
                callback(self._cancel_reason)
            except Exception as ex:
                Default.on_unhandled_error(ex)
            return _noop
        if self._status != PENDING:
            return _noop

        unsubscribe = subscribe(self._cancel_callbacks, callback)
        return self._bind_signal(unsubscribe, signal)

    def on_progress(self, callback, *, signal=None):
        """Subscribe to progress reported anywhere in the chain.

        Args:
            callback: function accepting percentage and metadata.
            signal: optional CancelableAbortSignal, the subscription is
            removed when it aborts.

        Returns:
            Function removing the subscription.
        """
        assert callable(callback), "CancelablePromise.on_progress expects callable"

        unsubscribe = self._chain.add_progress_callback(callback)
        return self._bind_signal(unsubscribe, signal)

    def report_progress(self, percentage, metadata=None):
        """Deliver progress to every subscriber of the chain.

        Returns:
            The promise itself.
        """
        self._chain.report_progress(percentage, metadata)
        return self

    def _bind_signal(self, unsubscribe, signal):
        if signal is None:
            return unsubscribe
        if signal.aborted:
            unsubscribe()
            return _noop

        remove_listener = signal.subscribe(lambda event: unsubscribe(), once=True)
        if self._status == PENDING:
            self._dispose_callbacks.append((remove_listener, None))

        def unsubscribe_all():
            unsubscribe()
            remove_listener()

        return unsubscribe_all

    def _resolve(self, value=None):
        if self._following or self._done:
            return False
        if is_promise(value):
            if value is self:
                return self._publish(REJECTED, reason=TypeError('Chaining cycle detected for promise'))
            self._following = True
            self._follow(value)
            return True
        return self._publish(RESOLVED, result=value)

    def _reject(self, reason=None):
        if self._following or self._done:
            return False
        return self._publish(REJECTED, reason=reason)

    #virtual
    def _follow(self, value):
        raise NotImplementedError()

    def _publish(self, status, result=None, reason=_UNSET):
        if self._status == PENDING:
            self._status = status
            self._cancel_callbacks[:] = []
            self._dispose()
            return self._set_outcome(result, reason)
        # canceled continuation waiting for its handler
        if not self._done:
            return self._set_outcome(result, reason)
        return False

    def _publish_from(self, other):
        if other._reason is not _UNSET:
            return self._publish(REJECTED, reason=other._reason)
        return self._publish(RESOLVED, result=other._result)

    def _defers_cancel_outcome(self):
        return (self._catches_cancel and not self._handler_started
                and self._parent is not None
                and self._parent._status == CANCELED)

    def _set_outcome(self, result=None, reason=_UNSET):
        if self._done:
            return False
        self._done = True
        self._result = result
        self._reason = reason

        callbacks = self._callbacks[:]
        if not callbacks:
            return True

        self._callbacks[:] = []
        for clb, executor in callbacks:
            self._run_callback(clb, executor)
        return True

    def _dispose(self):
        callbacks = self._dispose_callbacks[:]
        self._dispose_callbacks[:] = []
        invoke_all(callbacks)

    def _run_callback(self, clb, executor):
        executor = executor or self._executor or Default.get_callback_executor()
        executor(clb, self)

    def __await__(self):
        if not self._done:
            waiter = asyncio.get_running_loop().create_future()

            def wake(_):
                if not waiter.done():
                    waiter.set_result(None)

            self.add_done_callback(wake, executor=Synchronous)
            try:
                yield from waiter.__await__()
            finally:
                self.remove_done_callback(wake)
        return self.result()

    def __repr__(self):
        res = self.__class__.__name__
        if self._done:
            if self._reason is not _UNSET:
                res += '<{}, reason={!r}>'.format(self._status, self._reason)
            else:
                res += '<{}, result={!r}>'.format(self._status, self._result)
        elif self._callbacks:
            size = len(self._callbacks)
            if size > 2:
                res += '<{}, [{}, <{} more>, {}]>'.format(
                    self._status, self._callbacks[0],
                    size - 2, self._callbacks[-1])
            else:
                res += '<{}, {}>'.format(self._status, self._callbacks)
        else:
            res += '<{}>'.format(self._status)
        return res
