"""Background thread hosting the agent's event loop.

Emit calls can come from any thread, sync or async. They are handed to the
loop with call_soon, which runs callbacks in submission order, so events
from one thread keep their order in each queue.
"""

import asyncio
import atexit
import logging
import signal
import threading
from collections.abc import Callable, Coroutine
from types import FrameType
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventLoopThread:
    """Runs a private asyncio event loop in a daemon thread.

    The thread is a daemon so that a forgotten shutdown() cannot keep the
    interpreter alive; the atexit hook registered by init() drains the
    pipeline before the interpreter exits.

    Example:
        ```python
        runner = EventLoopThread()
        runner.start()
        runner.call_soon(batcher.add, log)
        runner.run(batcher.shutdown())
        runner.stop()
        ```
    """

    def __init__(self, name: str = "vigilant-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("Event loop thread is not running")
        return self._loop

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, timeout: float = 5.0) -> None:
        """Start the thread and wait until its loop is running."""
        if self._thread is not None:
            return
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        if not self._ready.wait(timeout=timeout):
            raise RuntimeError("Event loop thread failed to start")

    def _run(self) -> None:
        assert self._loop is not None
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)
        self._loop.run_forever()

    def in_loop_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule callback(*args) on the loop; safe from any thread."""
        self.loop.call_soon_threadsafe(callback, *args)

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """Run a coroutine on the loop and block until it finishes."""
        if self.in_loop_thread():
            coro.close()
            raise RuntimeError("Cannot block on the event loop from its own thread")
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return future.result(timeout)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop, join the thread and close the loop."""
        if self._loop is None or self._thread is None:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Event loop thread did not stop within %.1fs", timeout)
        else:
            self._loop.close()
        self._loop = None
        self._thread = None
        self._ready.clear()


class ShutdownHooks:
    """Runs a teardown callback at interpreter exit and on SIGINT/SIGTERM.

    Signal handlers can only be installed from the main thread; elsewhere
    only the atexit hook is registered. Previous signal handlers are
    restored on uninstall and invoked after the callback, so the process
    still exits (or raises KeyboardInterrupt) as it would have.
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._previous: dict[int, Any] = {}
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        if self._installed:
            return
        self._installed = True
        atexit.register(self._callback)
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in the main thread; skipping signal handlers")
            return
        for signum in self.SIGNALS:
            self._previous[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handle_signal)

    def uninstall(self) -> None:
        if not self._installed:
            return
        self._installed = False
        atexit.unregister(self._callback)
        if threading.current_thread() is not threading.main_thread():
            if self._previous:
                logger.debug("Not in the main thread; leaving signal handlers in place")
            return
        for signum, previous in self._previous.items():
            # None means the handler was not installed from Python
            if previous is not None and signal.getsignal(signum) == self._handle_signal:
                signal.signal(signum, previous)
        self._previous = {}

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        previous = self._previous.get(signum, signal.SIG_DFL)
        self._callback()
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_DFL:
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)
