from collections import namedtuple
import functools

from ..config import Default
from .promise_base import (PromiseBase, is_promise, _UNSET,
                           PENDING, REJECTED, CANCELED)
from .synchronous_executor import Synchronous


class SettledResult(namedtuple('SettledResult', ['status', 'value', 'reason'])):
    """Outcome of one member of ``all_settled``.

    ``status`` is 'fulfilled', 'rejected' or 'canceled'.
    """
    __slots__ = ()

    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'
    CANCELED = 'canceled'

    @classmethod
    def of(cls, promise):
        if promise.cancelled():
            return cls(cls.CANCELED, None, promise._cancel_reason)
        if promise._reason is not _UNSET:
            return cls(cls.REJECTED, None, promise._reason)
        return cls(cls.FULFILLED, promise._result, None)


class PromiseBaseExt(PromiseBase):
    """Derivation operators and combinators."""

    @classmethod
    def resolve(cls, value=None, *, clb_executor=None):
        """Returns promise resolved with value.

        Awaitables are followed, a promise of this type is returned as is.
        """
        if isinstance(value, cls):
            return value
        f = cls._new(clb_executor=clb_executor)
        f._resolve(value)
        return f

    @classmethod
    def reject(cls, reason=None, *, clb_executor=None):
        """Returns promise rejected with reason."""
        f = cls._new(clb_executor=clb_executor)
        f._reject(reason)
        return f

    @classmethod
    def canceled(cls, reason=None, *, clb_executor=None):
        """Returns promise with status 'canceled'."""
        f = cls._new(clb_executor=clb_executor)
        return f.cancel(reason)

    def then(self, on_fulfilled=None, on_rejected=None, *, executor=None):
        """Returns promise set from the handler matching the outcome of this one.

        The new promise joins the chain of this one: canceling either
        cancels both, and progress is shared. When this promise is canceled
        the fulfillment handler is skipped, the new promise is canceled
        with the same reason and the rejection handler (if any) receives
        that reason; its return value becomes the awaited value of the new
        promise while its status stays 'canceled'.

        Args:
            on_fulfilled: function accepting the result.
            on_rejected: function accepting the rejection or cancellation reason.
            executor: Executor to use when performing call to handlers.
        """
        assert on_fulfilled is None or callable(on_fulfilled), "CancelablePromise.then expects callable"
        assert on_rejected is None or callable(on_rejected), "CancelablePromise.then expects callable"

        child = self._derive(catches_cancel=on_rejected is not None)

        def on_done_then(parent):
            if parent._status == CANCELED:
                child.cancel(parent._cancel_reason)
                if on_rejected is not None:
                    child._handle(on_rejected, parent._cancel_reason)
            elif child._status != PENDING:
                return
            elif parent._reason is _UNSET:
                if on_fulfilled is None:
                    child._publish_from(parent)
                else:
                    child._handle(on_fulfilled, parent._result)
            elif on_rejected is None:
                child._publish_from(parent)
            else:
                child._handle(on_rejected, parent._reason)

        self.add_done_callback(on_done_then, executor=executor)
        return child

    def catch(self, on_rejected=None, *, executor=None):
        """Returns promise recovering from rejection or cancellation of this one.

        Same as ``then(None, on_rejected)``.
        """
        return self.then(None, on_rejected, executor=executor)

    def finally_(self, on_finally=None, *, executor=None):
        """Returns promise that runs on_finally once this one settles in any
        way, including cancellation, and then forwards the original outcome.

        If on_finally raises, the new promise is rejected with that exception.
        If it returns an awaitable, forwarding waits for it.
        """
        assert on_finally is None or callable(on_finally), "CancelablePromise.finally_ expects callable"

        child = self._derive(catches_cancel=True)

        def on_done_finally(parent):
            if parent._status == CANCELED:
                child.cancel(parent._cancel_reason)
            child._handler_started = True
            try:
                value = on_finally() if on_finally is not None else None
            except Exception as ex:
                child._fail_handler(ex)
                return

            if not is_promise(value):
                child._publish_from(parent)
                return

            def on_done_wait(waiter):
                if waiter._reason is _UNSET:
                    child._publish_from(parent)
                else:
                    child._publish(REJECTED, reason=waiter._reason)

            self.convert(value).add_done_callback(on_done_wait, executor=Synchronous)

        self.add_done_callback(on_done_finally, executor=executor)
        return child

    def _derive(self, catches_cancel):
        child = self._new(self)
        child._parent = self
        child._catches_cancel = catches_cancel
        return child

    def _handle(self, fun, arg):
        self._handler_started = True
        try:
            value = fun(arg)
        except Exception as ex:
            self._fail_handler(ex)
        else:
            self._resolve(value)

    def _fail_handler(self, ex):
        if not self._publish(REJECTED, reason=ex):
            Default.on_unhandled_error(ex)

    #override
    def _follow(self, value):
        other = self.convert(value)
        owned = other is not value

        def on_done_follow(fut):
            if fut._status == CANCELED:
                self.cancel(fut._cancel_reason)
            self._publish_from(fut)

        def detach():
            other.remove_done_callback(on_done_follow)
            if owned and self._status == CANCELED:
                other.cancel(self._cancel_reason)

        if self._status == PENDING:
            self._dispose_callbacks.append((detach, None))
        other.add_done_callback(on_done_follow, executor=Synchronous)

    @classmethod
    def race(cls, sources, *, clb_executor=None):
        """Returns promise which will be set from the first member to settle,
        both successfully or with failure. A member canceled first cancels the
        race. Cancellation is propagated both ways - if aggregate promise is
        canceled it will cancel all members.

        Args:
            sources: promises, awaitables or values to combine.
            clb_executor: default executor to use when running new promise's callbacks.
        """
        promises = list(map(cls.convert, sources))
        if not promises:
            raise TypeError("CancelablePromise.race() got empty sequence")

        f = cls._new(clb_executor=clb_executor)

        def on_done_race(fut):
            if fut._status == CANCELED:
                f.cancel(fut._cancel_reason)
            f._publish_from(fut)

        for fi in promises:
            fi.add_done_callback(on_done_race)

        f.on_cancel(functools.partial(_cancel_all, promises))
        return f

    @classmethod
    def all(cls, sources, *, clb_executor=None):
        """Transforms list of promises into one promise that will contain list
        of results in the order of the original sequence. In case of any
        failure promise will be rejected with first reason to occur, a
        canceled member cancels the aggregate. If the aggregate promise is
        canceled all members are canceled.

        Args:
            sources: promises, awaitables or values to combine.
            clb_executor: default executor to use when running new promise's callbacks.
        """
        promises = list(map(cls.convert, sources))
        if not promises:
            return cls.resolve([], clb_executor=clb_executor)

        f = cls._new(clb_executor=clb_executor)
        results = [None] * len(promises)
        left = len(promises)

        def done(i, fut):
            nonlocal left
            if fut._status == CANCELED:
                f.cancel(fut._cancel_reason)
            elif fut._reason is not _UNSET:
                f._reject(fut._reason)
            else:
                results[i] = fut._result
                left -= 1
                if not left:
                    f._resolve(results)

        for i, fi in enumerate(promises):
            fi.add_done_callback(functools.partial(done, i))

        f.on_cancel(functools.partial(_cancel_all, promises))
        return f

    @classmethod
    def all_settled(cls, sources, *, clb_executor=None):
        """Returns promise with a SettledResult for every member, in the order
        of the original sequence. Never rejects. If the aggregate promise is
        canceled all members are canceled.

        Args:
            sources: promises, awaitables or values to combine.
            clb_executor: default executor to use when running new promise's callbacks.
        """
        promises = list(map(cls.convert, sources))
        if not promises:
            return cls.resolve([], clb_executor=clb_executor)

        f = cls._new(clb_executor=clb_executor)
        results = [None] * len(promises)
        left = len(promises)

        def done(i, fut):
            nonlocal left
            results[i] = SettledResult.of(fut)
            left -= 1
            if not left:
                f._resolve(results)

        for i, fi in enumerate(promises):
            fi.add_done_callback(functools.partial(done, i))

        f.on_cancel(functools.partial(_cancel_all, promises))
        return f

    @classmethod
    def _new(cls, other=None, *, clb_executor=None):
        executor = clb_executor or (other._executor if other else None)
        chain = other._chain if other else None
        return cls(clb_executor=executor, chain=chain)

    @classmethod
    def convert(cls, source):
        """Normalizes promise, awaitable or plain value into a cancelable promise."""
        from .conversion import to_cancelable_promise

        return to_cancelable_promise(source)


def _cancel_all(promises, reason):
    for p in promises:
        p.cancel(reason)
