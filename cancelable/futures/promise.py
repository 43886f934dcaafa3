from collections import namedtuple

from .promise_base import PENDING
from .promise_extensions import PromiseBaseExt


PromiseUtils = namedtuple('PromiseUtils', ['cancel', 'on_cancel', 'on_progress', 'report_progress'])


class CancelablePromise(PromiseBaseExt):
    """Promise that can be canceled and can report progress.

    Status is one of 'pending', 'resolved', 'rejected' or 'canceled'.
    Promises derived through then/catch/finally_ form a chain: canceling any
    of them cancels every pending promise of the chain, and progress reported
    by any of them reaches every subscriber of the chain.

    Example::

        def work(resolve, reject, utils):
            utils.on_cancel(lambda reason: print('canceled:', reason))
            loop.call_later(1, resolve, 'done')

        promise = CancelablePromise(work)
        child = promise.then(str.upper)
        child.cancel('user-abort')

        promise.status  # 'canceled'
    """

    def __init__(self, callback=None, *, clb_executor=None, chain=None):
        """Initializes promise instance.

        Args:
            callback: function accepting ``resolve``, ``reject`` and
            ``utils`` (PromiseUtils bound to this promise), invoked
            synchronously. An exception raised by it rejects the promise.
            clb_executor: executor for continuations and done callbacks.
            chain: PromiseChain to join, a new one is created by default.
        """
        PromiseBaseExt.__init__(self, clb_executor=clb_executor, chain=chain)

        if callback is not None:
            assert callable(callback), "CancelablePromise expects callable"
            try:
                callback(self._resolve, self._reject, self.utils)
            except Exception as ex:
                self._reject(ex)

    @property
    def utils(self):
        """PromiseUtils bound to this promise."""
        return PromiseUtils(self.cancel, self.on_cancel, self.on_progress, self.report_progress)


class DecoupledPromise(object):
    """CancelablePromise paired with its controls, for settling it from
    outside of the construction callback.
    """

    def __init__(self, clb_executor=None):
        """Initializes new DecoupledPromise instance.

        Args:
            clb_executor: Executor object to use when calling
                promise continuations and done callbacks.
        """
        self._promise = CancelablePromise(clb_executor=clb_executor)

    def resolve(self, value=None):
        """Resolves associated promise with provided value.

        Returns:
            True if the promise was settled by this call.
        """
        return self._promise._resolve(value)

    def reject(self, reason=None):
        """Rejects associated promise with provided reason.

        Returns:
            True if the promise was settled by this call.
        """
        return self._promise._reject(reason)

    def cancel(self, reason=None):
        """Cancels associated promise and its chain."""
        return self._promise.cancel(reason)

    def on_cancel(self, callback, *, signal=None):
        return self._promise.on_cancel(callback, signal=signal)

    def on_progress(self, callback, *, signal=None):
        return self._promise.on_progress(callback, signal=signal)

    def report_progress(self, percentage, metadata=None):
        return self._promise.report_progress(percentage, metadata)

    @property
    def is_completed(self):
        """Returns True if the promise left the pending status."""
        return self._promise.status != PENDING

    @property
    def is_cancelled(self):
        """Returns True if the promise was canceled."""
        return self._promise.cancelled()

    @property
    def promise(self):
        """Returns associated promise instance."""
        return self._promise


def create_decoupled_promise(*, clb_executor=None):
    """Creates a promise together with its controls.

    Example::

        decoupled = create_decoupled_promise()
        decoupled.promise.then(print)
        decoupled.resolve('hello world')
    """
    return DecoupledPromise(clb_executor)
