from .promise_base import (PromiseBase, is_promise,
                           PENDING, RESOLVED, REJECTED, CANCELED)
from .promise_chain import PromiseChain
from .promise_extensions import PromiseBaseExt, SettledResult
from .promise import (CancelablePromise, PromiseUtils, DecoupledPromise,
                      create_decoupled_promise)
from .conversion import is_cancelable_promise, to_cancelable_promise
from .synchronous_executor import Synchronous, loop_as_executor
