from cancelable import CancelablePromise, Default, create_decoupled_promise
from cancelable.config import log_error_handler
from cancelable.futures import Synchronous
from .test_base import SyncPromiseTestBase, PromiseTestBase
import asyncio


class PromiseCallbacksTest(SyncPromiseTestBase):
    def setUp(self):
        super().setUp()
        self.clb_called = []

    def clb(self, promise):
        self.clb_called.append(promise)

    def test_callback_called_on_result(self):
        d = create_decoupled_promise()
        d.promise.add_done_callback(self.clb)
        self.assertEqual([], self.clb_called)

        d.resolve(10)
        self.assertEqual([d.promise], self.clb_called)

    def test_callback_called_on_cancel(self):
        p = CancelablePromise()
        p.add_done_callback(self.clb)

        p.cancel()
        self.assertEqual([p], self.clb_called)

    def test_callback_called_if_already_completed(self):
        p = CancelablePromise.reject(TypeError())

        p.add_done_callback(self.clb)
        self.assertEqual([p], self.clb_called)

    def test_callbacks_called_in_order(self):
        d = create_decoupled_promise()
        order = []
        d.promise.add_done_callback(lambda f: order.append(1))
        d.promise.add_done_callback(lambda f: order.append(2))

        d.resolve()
        self.assertEqual([1, 2], order)

    def test_remove_callback(self):
        d = create_decoupled_promise()
        d.promise.add_done_callback(self.clb)
        d.promise.add_done_callback(self.clb)

        self.assertEqual(2, d.promise.remove_done_callback(self.clb))
        self.assertEqual(0, d.promise.remove_done_callback(self.clb))
        d.resolve()
        self.assertEqual([], self.clb_called)

    def test_callback_exception_is_reported(self):
        d = create_decoupled_promise()
        d.promise.add_done_callback(lambda f: 1 / 0)
        d.promise.add_done_callback(self.clb)

        d.resolve()
        self.assertEqual([ZeroDivisionError], self.unhandled)
        self.assertEqual([d.promise], self.clb_called)

    def test_custom_executor(self):
        scheduled = []

        def executor(fn, *args):
            scheduled.append((fn, args))

        d = create_decoupled_promise(clb_executor=executor)
        d.promise.add_done_callback(self.clb)
        d.resolve()
        self.assertEqual([], self.clb_called)

        fn, args = scheduled.pop()
        fn(*args)
        self.assertEqual([d.promise], self.clb_called)

    def test_configured_executor(self):
        scheduled = []
        Default.CALLBACK_EXECUTOR = lambda fn, *args: scheduled.append(fn)
        try:
            p = CancelablePromise.resolve(1)
            p.add_done_callback(self.clb)
        finally:
            Default.CALLBACK_EXECUTOR = None

        self.assertEqual([self.clb], scheduled)
        self.assertEqual([], self.clb_called)


class PromiseLoopCallbacksTest(PromiseTestBase):
    async def test_callbacks_scheduled_on_running_loop(self):
        called = []
        p = CancelablePromise.resolve(1)

        p.add_done_callback(called.append)
        self.assertEqual([], called)

        await asyncio.sleep(0)
        self.assertEqual([p], called)

    async def test_synchronous_executor_on_running_loop(self):
        called = []
        p = CancelablePromise.resolve(1)

        p.add_done_callback(called.append, executor=Synchronous)
        self.assertEqual([p], called)

    async def test_unhandled_error_logged_by_default(self):
        Default.UNHANDLED_FAILURE_CALLBACK = staticmethod(log_error_handler)
        p = CancelablePromise.resolve(1)

        with self.assertLogs('cancelable', level='ERROR') as cm:
            p.add_done_callback(lambda f: 1 / 0, executor=Synchronous)
        self.assertIn('ZeroDivisionError', cm.output[0])
