from ..config import Default


def subscribe(callbacks, callback):
    """Appends callback to the list and returns a function removing it.

    Unsubscribing twice, or after the list was cleared, does nothing.
    """
    entry = (callback, object())
    callbacks.append(entry)

    def unsubscribe():
        try:
            callbacks.remove(entry)
        except ValueError:
            pass

    return unsubscribe


def invoke_all(callbacks, *args):
    """Calls every subscribed callback in registration order.

    Iterates over a snapshot, so callbacks may subscribe or unsubscribe
    while being dispatched.
    """
    for clb, _ in callbacks[:]:
        try:
            clb(*args)
        except Exception as ex:
            Default.on_unhandled_error(ex)


class PromiseChain(object):
    """State shared by all promises of one derivation graph.

    Every promise created from another one through then/catch/finally_
    references the same chain. Members are kept in linkage order, which is
    the order cancellation visits them in.
    """

    def __init__(self):
        self.members = []
        self.progress_callbacks = []

    def link(self, promise):
        # members with a published outcome can never be canceled again
        self.members[:] = [m for m in self.members if not m.done()]
        self.members.append(promise)
        return self

    def add_progress_callback(self, callback):
        return subscribe(self.progress_callbacks, callback)

    def report_progress(self, percentage, metadata=None):
        invoke_all(self.progress_callbacks, percentage, metadata)

    def __repr__(self):
        return '{}<members={}, progress_callbacks={}>'.format(
            self.__class__.__name__, len(self.members),
            len(self.progress_callbacks))
