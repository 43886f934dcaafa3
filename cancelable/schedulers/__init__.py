from .group import group_as_cancelable_promise, all_settled_cancelable
