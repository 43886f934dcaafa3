"""Cancelable, progress-reporting promises for asyncio."""

from .config import Default
from .exceptions import Error, CancelledError, RejectedError, InvalidStateError
from .abort import CancelableAbortController, CancelableAbortSignal
from .futures import (CancelablePromise, PromiseUtils, DecoupledPromise, SettledResult,
                      PENDING, RESOLVED, REJECTED, CANCELED,
                      create_decoupled_promise, to_cancelable_promise,
                      is_promise, is_cancelable_promise)
from .schedulers import group_as_cancelable_promise, all_settled_cancelable
from .utils import (TryCatchResult, TryCatchPromiseResult,
                    try_catch, try_catch_promise)
