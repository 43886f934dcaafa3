import asyncio
import functools

from ..config import Default


class SynchronousExecutor(object):
    def __call__(self, fn, *args):
        try:
            fn(*args)
        except Exception as ex:
            Default.on_unhandled_error(ex)


# alias
Synchronous = SynchronousExecutor()


def loop_as_executor(loop):
    return functools.partial(loop.call_soon, Synchronous)


def loop_as_executor_threadsafe(loop):
    return functools.partial(loop.call_soon_threadsafe, Synchronous)


def running_loop_or_synchronous():
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return Synchronous
    return loop_as_executor(loop)
