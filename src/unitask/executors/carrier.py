from __future__ import annotations

import asyncio
import atexit
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from threading import Lock

_LOCK = Lock()
_DEFAULT_LOOP_NAME = "unitask-carrier"
_DEFAULT_POOL_PREFIX = "unitask-worker"
_ATEEXIT_REGISTERED = False

_LOOP: asyncio.AbstractEventLoop | None = None
_LOOP_THREAD: threading.Thread | None = None
_POOLS: dict[int, ThreadPoolExecutor] = {}


def get_carrier_loop(*, name: str | None = None) -> asyncio.AbstractEventLoop:
    """Return the process-wide event loop that multiplexes every task.

    The loop runs forever on a daemon thread started on first use; all
    runners created outside a running event loop share it.
    """

    global _LOOP, _LOOP_THREAD
    with _LOCK:
        if _LOOP is not None and not _LOOP.is_closed():
            return _LOOP
        loop = asyncio.new_event_loop()
        ready = threading.Event()
        thread = threading.Thread(
            target=_serve,
            args=(loop, ready),
            name=name or _DEFAULT_LOOP_NAME,
            daemon=True,
        )
        thread.start()
        ready.wait()
        _LOOP, _LOOP_THREAD = loop, thread
        _register_atexit()
        return loop


def get_blocking_pool(*, max_workers: int | None = None) -> ThreadPoolExecutor:
    """Return the shared pool of ``max_workers`` threads for blocking bodies.

    One pool is kept per size, so runners configured with different sizes
    each stay within their own bound. ``None`` uses the executor default.
    """

    size = max_workers or _default_pool_size()
    with _LOCK:
        pool = _POOLS.get(size)
        if pool is None:
            pool = ThreadPoolExecutor(
                max_workers=size,
                thread_name_prefix=f"{_DEFAULT_POOL_PREFIX}-{size}",
            )
            _POOLS[size] = pool
            _register_atexit()
        return pool


def _default_pool_size() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


def carrier_thread() -> threading.Thread | None:
    return _LOOP_THREAD


def reset_carrier(*, cancel_futures: bool = False) -> None:
    """Stop the carrier loop and tear down every blocking pool created.

    Tasks still pending on the loop are cancelled and awaited before the loop
    closes.
    """

    global _LOOP, _LOOP_THREAD
    with _LOCK:
        loop, thread = _LOOP, _LOOP_THREAD
        pools = list(_POOLS.values())
        _LOOP = _LOOP_THREAD = None
        _POOLS.clear()

    if loop is not None and not loop.is_closed():
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None and thread is not threading.current_thread():
            thread.join()
    for pool in pools:
        pool.shutdown(wait=True, cancel_futures=cancel_futures)


def _serve(loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
    asyncio.set_event_loop(loop)
    loop.call_soon(ready.set)
    try:
        loop.run_forever()
    finally:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


def _register_atexit() -> None:
    global _ATEEXIT_REGISTERED
    if _ATEEXIT_REGISTERED:
        return
    atexit.register(reset_carrier)
    _ATEEXIT_REGISTERED = True
