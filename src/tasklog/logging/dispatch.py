"""
Background event loop for fire-and-forget remote transmissions.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, Set

_log = logging.getLogger("tasklog.dispatch")


class BackgroundDispatcher:
    """Runs coroutines on a private event loop owned by a daemon thread.

    `submit()` returns as soon as the coroutine is scheduled, whether or not
    the caller has an event loop of its own. The dispatcher is the single
    owner of the remote client's loop.
    """

    def __init__(self, name: str = "tasklog-remote") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._pending: Set[concurrent.futures.Future] = set()
        self._closed = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def start(self) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Dispatcher is closed")
            if self._thread is not None:
                return
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()
        self._ready.wait()

    def _run(self) -> None:
        loop = self._loop
        assert loop is not None
        asyncio.set_event_loop(loop)
        loop.call_soon(self._ready.set)
        try:
            loop.run_forever()
        finally:
            leftovers = asyncio.all_tasks(loop)
            for task in leftovers:
                task.cancel()
            if leftovers:
                loop.run_until_complete(asyncio.gather(*leftovers, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """Schedule ``coro`` on the background loop without waiting for it."""
        if self._thread is None and not self._closed:
            self.start()
        if not self.running:
            coro.close()
            raise RuntimeError("Dispatcher is not running")

        assert self._loop is not None
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def run(self, coro: Coroutine[Any, Any, Any], timeout: float) -> Any:
        """Run ``coro`` on the background loop and block for its result."""
        if not self.running:
            coro.close()
            raise RuntimeError("Dispatcher is not running")
        assert self._loop is not None
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result(timeout)

    def drain(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for in-flight work. True when idle."""
        with self._lock:
            futures = list(self._pending)
        if not futures:
            return True
        _, not_done = concurrent.futures.wait(futures, timeout=timeout)
        return not not_done

    def close(self, timeout: float = 1.0) -> None:
        """Stop the loop, cancelling whatever is still in flight."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            loop, thread = self._loop, self._thread

        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        if thread.is_alive():
            _log.warning("Dispatcher thread %s did not stop within %.1fs", self._name, timeout)
