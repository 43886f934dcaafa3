import functools
import logging

from ..config import Default
from ..futures import CancelablePromise, is_promise, to_cancelable_promise
from ..utils.try_catch import try_catch_promise

logger = logging.getLogger(__name__)


def group_as_cancelable_promise(sources, *, max_concurrent=None, execute_in_order=False,
                                before_each_callback=None, after_each_callback=None,
                                on_queue_empty_callback=None, clb_executor=None):
    """Runs sources with bounded concurrency as a single CancelablePromise.

    Each source is either a function returning an awaitable, a promise or a
    plain value, or an awaitable itself. Functions are not called until
    their turn comes. The group resolves with a list holding the outcome of
    ``sources[i]`` at index ``i``: the result, or the exception of a member
    that failed or was canceled on its own. A failing member never stops the
    others.

    Canceling the group cancels the running members, skips the sources not
    started yet and calls ``on_queue_empty_callback(None)``.

    Progress ``(settled * 100 / total, {'index': i, 'result': outcome})`` is
    reported on the group after every member.

    Args:
        sources: list of functions, awaitables or promises.
        max_concurrent: maximum number of members running at the same time
        (default - ``Default.GROUP_MAX_CONCURRENT``).
        execute_in_order: start every member after the previous one settled.
        before_each_callback: called before a member is started.
        after_each_callback: called with the outcome of each member.
        on_queue_empty_callback: called with the list of outcomes once all
        members settled, or with None if the group was canceled.
        clb_executor: default executor to use when running group's callbacks.
    """
    if execute_in_order:
        max_concurrent = 1
    elif max_concurrent is None:
        max_concurrent = Default.GROUP_MAX_CONCURRENT
    assert max_concurrent >= 1, "group_as_cancelable_promise expects max_concurrent >= 1"

    group = _Group(list(sources), max_concurrent, before_each_callback,
                   after_each_callback, on_queue_empty_callback)
    return CancelablePromise(group.start, clb_executor=clb_executor)


def all_settled_cancelable(values, **options):
    """Like ``CancelablePromise.all_settled`` with a TryCatchPromiseResult
    for every member instead of a SettledResult.

    Members run through ``group_as_cancelable_promise``, so canceling the
    result cancels the running members and functions not called yet are
    never called.

    Args:
        values: promises, awaitables or functions returning them.
        options: passed to ``try_catch_promise``.
    """
    return group_as_cancelable_promise(
        [functools.partial(try_catch_promise, value, **options) for value in values])


class _Group(object):
    def __init__(self, sources, max_concurrent, before_each, after_each, on_queue_empty):
        self.sources = sources
        self.max_concurrent = max_concurrent
        self.before_each = before_each
        self.after_each = after_each
        self.on_queue_empty = on_queue_empty

        self.results = [None] * len(sources)
        self.running = {}
        self.cursor = 0
        self.active = 0
        self.settled = 0
        self.canceled = False
        self.cancel_reason = None
        self.dispatching = False
        self.resolve = None
        self.utils = None

    def start(self, resolve, reject, utils):
        self.resolve = resolve
        self.utils = utils
        utils.on_cancel(self.cancel)

        if not self.sources:
            self.finish()
        else:
            self.dispatch()

    def dispatch(self):
        # members settling synchronously re-enter here
        if self.dispatching:
            return

        self.dispatching = True
        try:
            while (not self.canceled and self.active < self.max_concurrent
                   and self.cursor < len(self.sources)):
                index = self.cursor
                self.cursor += 1
                self.active += 1
                self.run(index)
        finally:
            self.dispatching = False

    def run(self, index):
        source = self.sources[index]
        self.sources[index] = None
        _call_hook(self.before_each)
        if self.canceled:
            self.active -= 1
            return

        logger.debug('Starting group member %d of %d', index + 1, len(self.results))
        try:
            if callable(source) and not is_promise(source):
                source = source()
            member = to_cancelable_promise(source)
        except Exception as ex:
            self.member_settled(index, ex)
            return

        # the group may be canceled by the source itself
        if self.canceled:
            member.cancel(self.cancel_reason)
            return

        self.running[index] = member
        member.add_done_callback(functools.partial(self.on_member_done, index))

    def on_member_done(self, index, member):
        self.running.pop(index, None)
        if self.canceled:
            return
        exc = member.exception()
        self.member_settled(index, exc if exc is not None else member.result())

    def member_settled(self, index, outcome):
        self.results[index] = outcome
        self.active -= 1
        self.settled += 1
        logger.debug('Group member %d settled, %d of %d done',
                     index + 1, self.settled, len(self.results))

        _call_hook(self.after_each, outcome)
        if self.canceled:
            return
        self.utils.report_progress(self.settled * 100 / len(self.results),
                                   {'index': index, 'result': outcome})

        if self.settled == len(self.results):
            self.finish()
        else:
            self.dispatch()

    def finish(self):
        if self.canceled:
            return
        _call_hook(self.on_queue_empty, self.results)
        self.resolve(self.results)

    def cancel(self, reason):
        self.canceled = True
        self.cancel_reason = reason
        running = list(self.running.values())
        self.running.clear()
        logger.debug('Group canceled with %d running and %d pending members',
                     len(running), len(self.sources) - self.cursor)

        for member in running:
            member.cancel(reason)
        _call_hook(self.on_queue_empty, None)


def _call_hook(hook, *args):
    if hook is None:
        return
    try:
        hook(*args)
    except Exception as ex:
        Default.on_unhandled_error(ex)
