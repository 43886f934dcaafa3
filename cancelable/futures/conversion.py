import asyncio
import concurrent.futures

from .promise import CancelablePromise, create_decoupled_promise
from .promise_base import is_promise
from .synchronous_executor import Synchronous, loop_as_executor_threadsafe


MARKER = '__cancelable_promise__'


def is_cancelable_promise(value):
    """Checks for the cancelable promise marker instead of the type, so
    promises from independently loaded copies of this package are
    recognized too.
    """
    return not isinstance(value, type) and getattr(value, MARKER, False) is True


def to_cancelable_promise(source, *, clb_executor=None):
    """Converts a value to a CancelablePromise.

    Cancelable promises are returned unchanged. Awaitables and
    concurrent.futures.Future objects are wrapped, any other value becomes
    an already resolved promise.

    Example::

        task = asyncio.ensure_future(fetch())
        promise = to_cancelable_promise(task)
        promise.on_cancel(lambda reason: print('promise canceled'))
        promise.cancel()
    """
    if is_cancelable_promise(source):
        return source
    if isinstance(source, concurrent.futures.Future):
        return wrap_concurrent_future(source, clb_executor=clb_executor)
    if is_promise(source):
        return wrap_awaitable(source, clb_executor=clb_executor)
    return CancelablePromise.resolve(source, clb_executor=clb_executor)


def wrap_awaitable(aw, *, clb_executor=None):
    """Wraps an asyncio future or any other awaitable.

    Coroutines and other awaitables are scheduled as tasks on the running
    loop; such a task belongs to the wrapper and is cancelled with it.
    Canceling the wrapper of an existing future only detaches from it.
    """
    owned = not asyncio.isfuture(aw)
    fut = asyncio.ensure_future(aw)
    decoupled = create_decoupled_promise(clb_executor=clb_executor)

    def on_done_source(fut):
        _copy_state(decoupled, fut)

    def detach(reason):
        fut.remove_done_callback(on_done_source)
        if owned:
            fut.cancel()

    decoupled.on_cancel(detach)
    fut.add_done_callback(on_done_source)
    return decoupled.promise


def wrap_concurrent_future(cf, *, clb_executor=None):
    """Wraps concurrent.futures.Future.

    Completion is handed over to the running event loop, or applied in the
    completing thread when there is no loop. Canceling the wrapper cancels
    the concurrent future, which only succeeds before it starts running.
    """
    try:
        executor = loop_as_executor_threadsafe(asyncio.get_running_loop())
    except RuntimeError:
        executor = Synchronous

    decoupled = create_decoupled_promise(clb_executor=clb_executor)
    decoupled.on_cancel(lambda reason: cf.cancel())
    cf.add_done_callback(lambda cf: executor(_copy_state, decoupled, cf))
    return decoupled.promise


def _copy_state(decoupled, fut):
    if decoupled.is_completed:
        return
    if fut.cancelled():
        decoupled.cancel()
        return
    exc = fut.exception()
    if exc is not None:
        decoupled.reject(exc)
    else:
        decoupled.resolve(fut.result())
