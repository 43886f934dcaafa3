from cancelable import (CancelablePromise, is_promise, is_cancelable_promise,
                        to_cancelable_promise, create_decoupled_promise)
from .test_base import SyncPromiseTestBase, PromiseTestBase
import asyncio
import concurrent.futures


class ForeignPromise(object):
    __cancelable_promise__ = True


class PromiseConversionSyncTest(SyncPromiseTestBase):
    def test_same_promise(self):
        p = CancelablePromise()
        self.assertIs(p, to_cancelable_promise(p))
        self.assertIs(p, CancelablePromise.convert(p))
        self.assertIs(p, CancelablePromise.resolve(p))

    def test_foreign_promise_recognized(self):
        foreign = ForeignPromise()
        self.assertTrue(is_cancelable_promise(foreign))
        self.assertIs(foreign, to_cancelable_promise(foreign))

    def test_is_cancelable_promise(self):
        self.assertTrue(is_cancelable_promise(CancelablePromise()))
        self.assertFalse(is_cancelable_promise(CancelablePromise))
        self.assertFalse(is_cancelable_promise(ForeignPromise))
        self.assertFalse(is_cancelable_promise(object()))
        self.assertFalse(is_cancelable_promise(None))
        self.assertFalse(is_cancelable_promise(concurrent.futures.Future()))

    def test_is_promise(self):
        async def noop():
            pass

        coro = noop()
        self.assertTrue(is_promise(coro))
        coro.close()

        self.assertTrue(is_promise(CancelablePromise()))
        self.assertTrue(is_promise(concurrent.futures.Future()))
        self.assertFalse(is_promise(1))
        self.assertFalse(is_promise(noop))

    def test_plain_value(self):
        p = to_cancelable_promise(5)
        self.assertEqual('resolved', p.status)
        self.assertEqual(5, p.result())

    def test_none_value(self):
        p = to_cancelable_promise(None)
        self.assertIsNone(p.result())

    def test_concurrent_future_without_loop(self):
        cf = concurrent.futures.Future()
        p = to_cancelable_promise(cf)

        cf.set_result(7)
        self.assertEqual(7, p.result())

    def test_concurrent_future_failure(self):
        cf = concurrent.futures.Future()
        p = to_cancelable_promise(cf)

        cf.set_exception(KeyError())
        self.assertRaises(KeyError, p.result)

    def test_cancel_concurrent_future(self):
        cf = concurrent.futures.Future()
        p = to_cancelable_promise(cf)

        p.cancel('stop')
        self.assertTrue(cf.cancelled())
        self.assertEqual('canceled', p.status)

    def test_concurrent_future_cancelled(self):
        cf = concurrent.futures.Future()
        p = to_cancelable_promise(cf)

        cf.cancel()
        self.assertEqual('canceled', p.status)


class PromiseConversionTest(PromiseTestBase):
    async def test_asyncio_future(self):
        fut = asyncio.get_running_loop().create_future()
        p = to_cancelable_promise(fut)
        self.assertIsNot(fut, p)

        fut.set_result(5)
        self.assertEqual(5, await p)

    async def test_asyncio_future_failure(self):
        fut = asyncio.get_running_loop().create_future()
        p = to_cancelable_promise(fut)

        fut.set_exception(KeyError())
        with self.assertRaises(KeyError):
            await p

    async def test_asyncio_future_not_cancelled(self):
        fut = asyncio.get_running_loop().create_future()
        p = to_cancelable_promise(fut)

        p.cancel('stop')
        fut.set_result(1)
        await asyncio.sleep(0)

        self.assertFalse(fut.cancelled())
        self.assertEqual('canceled', p.status)

    async def test_asyncio_future_cancelled(self):
        fut = asyncio.get_running_loop().create_future()
        p = to_cancelable_promise(fut)

        fut.cancel()
        await asyncio.sleep(0)
        self.assertEqual('canceled', p.status)

    async def test_coroutine(self):
        async def work():
            await asyncio.sleep(0.01)
            return 'done'

        self.assertEqual('done', await to_cancelable_promise(work()))

    async def test_coroutine_failure(self):
        async def work():
            raise KeyError()

        with self.assertRaises(KeyError):
            await to_cancelable_promise(work())

    async def test_coroutine_task_cancelled(self):
        state = []

        async def work():
            state.append('started')
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                state.append('cancelled')
                raise

        p = to_cancelable_promise(work())
        await asyncio.sleep(0.01)
        p.cancel('stop')
        await asyncio.sleep(0.01)

        self.assertEqual(['started', 'cancelled'], state)
        self.assertEqual('canceled', p.status)

    async def test_concurrent_future_from_thread(self):
        with concurrent.futures.ThreadPoolExecutor(1) as pool:
            p = to_cancelable_promise(pool.submit(lambda: 42))
            self.assertEqual(42, await p)

    async def test_adopt_coroutine_from_handler(self):
        async def work(v):
            await asyncio.sleep(0.01)
            return v + 1

        d = create_decoupled_promise()
        p = d.promise.then(work)
        d.resolve(1)
        self.assertEqual(2, await p)
