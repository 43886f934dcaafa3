from .try_catch import (TryCatchResult, TryCatchPromiseResult,
                        try_catch, try_catch_promise)
