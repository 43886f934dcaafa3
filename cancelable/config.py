import traceback
import logging

logger = logging.getLogger(__package__)


def log_error_handler(cls, tb):
    logger.error('Promise callback raised an exception that was never handled:\n%s',
                 ''.join(tb))


class Default(object):
    # Called when a callback raises and the exception has nowhere to go
    # This includes cancel, progress, dispose and done callbacks
    UNHANDLED_FAILURE_CALLBACK = staticmethod(log_error_handler)

    # Executor for continuations and done callbacks, None selects
    # the running event loop (or Synchronous when there is none)
    CALLBACK_EXECUTOR = None

    # Cap of simultaneously running members of a group
    GROUP_MAX_CONCURRENT = 8

    # Severity used by try_catch wrappers: 'error', 'warn', 'log' or 'ignore'
    EXCEPTION_HANDLING_TYPE = 'error'

    @staticmethod
    def get_callback_executor():
        if Default.CALLBACK_EXECUTOR:
            return Default.CALLBACK_EXECUTOR

        from .futures.synchronous_executor import running_loop_or_synchronous
        return running_loop_or_synchronous()

    @staticmethod
    def on_unhandled_error(exc):
        tb = traceback.format_exception(exc.__class__, exc,
                                        exc.__traceback__)
        Default.UNHANDLED_FAILURE_CALLBACK(exc.__class__, tb)
