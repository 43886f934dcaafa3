from collections import namedtuple
import logging

from ..config import Default
from ..futures import CancelablePromise, CANCELED, is_promise, to_cancelable_promise

logger = logging.getLogger(__name__)


TryCatchResult = namedtuple('TryCatchResult', ['error', 'result'])

TryCatchPromiseResult = namedtuple('TryCatchPromiseResult', ['error', 'result', 'promise'])

_LOG_LEVELS = {
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'log': logging.INFO,
}


def _log_error(error, exception_handling_type):
    if exception_handling_type == 'ignore':
        return
    exc_info = error if isinstance(error, BaseException) else None
    logger.log(_LOG_LEVELS[exception_handling_type], 'Caught error: %r', error,
               exc_info=exc_info)


def _check_handling_type(exception_handling_type):
    exception_handling_type = exception_handling_type or Default.EXCEPTION_HANDLING_TYPE
    assert exception_handling_type == 'ignore' or exception_handling_type in _LOG_LEVELS, \
        "exception_handling_type expects one of 'error', 'warn', 'log', 'ignore'"
    return exception_handling_type


def try_catch(callback, *, default_result=None, exception_handling_type=None):
    """Calls callback and catches any exception it raises.

    Args:
        callback: function without arguments.
        default_result: result to report when callback raises.
        exception_handling_type: 'error', 'warn', 'log' or 'ignore', how the
        caught exception is logged (default - ``Default.EXCEPTION_HANDLING_TYPE``).

    Returns:
        TryCatchResult with either error or result set.
    """
    exception_handling_type = _check_handling_type(exception_handling_type)
    try:
        result = callback()
    except Exception as ex:
        _log_error(ex, exception_handling_type)
        return TryCatchResult(ex, default_result)
    return TryCatchResult(None, result)


def try_catch_promise(source, *, default_result=None, exception_handling_type=None,
                      ignore_cancel=True):
    """Awaits source and turns its outcome into a TryCatchPromiseResult.

    The returned promise is derived from the normalized source, so
    canceling it cancels the source; the record is produced anyway, with the
    cancellation reason as error. The ``promise`` field of the record is the
    normalized source, its ``status`` tells a cancellation from a failure.

    Args:
        source: cancelable promise, awaitable, or a function returning one.
        default_result: result to report on rejection or cancellation.
        exception_handling_type: 'error', 'warn', 'log' or 'ignore'.
        ignore_cancel: do not log cancellations (default - True).

    Returns:
        CancelablePromise of TryCatchPromiseResult. It is rejected with
        TypeError if source is a function returning None, as no outcome can
        be derived from it.
    """
    exception_handling_type = _check_handling_type(exception_handling_type)

    def log(error, promise):
        if ignore_cancel and promise is not None and promise.status == CANCELED:
            return
        _log_error(error, exception_handling_type)

    if is_promise(source) or not callable(source):
        promise = to_cancelable_promise(source)
    else:
        try:
            value = source()
        except Exception as ex:
            log(ex, None)
            return CancelablePromise.resolve(TryCatchPromiseResult(ex, default_result, None))

        if value is None:
            return CancelablePromise.reject(
                TypeError('try_catch_promise: callback must return a value () => promise'))
        promise = to_cancelable_promise(value)

    def on_fulfilled(result):
        return TryCatchPromiseResult(None, result, promise)

    def on_rejected(error):
        log(error, promise)
        return TryCatchPromiseResult(error, default_result, promise)

    return promise.then(on_fulfilled, on_rejected)
