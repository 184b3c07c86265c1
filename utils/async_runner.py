import asyncio
import logging
import threading

logger = logging.getLogger(__name__)


class AsyncRunner:
    """
    Runs coroutines on one background event loop

    Flask request threads hand coroutines over and block on the result, so every
    wallet and contract call shares a single loop and interleaves with the others.
    """

    def __init__(self, name='ticketing-loop'):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def run(self, coro, timeout=None):
        """Schedule a coroutine on the loop and wait for its result"""
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout)

    def stop(self):
        if not self.loop.is_running():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)
        if not self._thread.is_alive():
            self.loop.close()
        logger.info("🛑 Async runner stopped")
