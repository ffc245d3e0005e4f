from __future__ import annotations

import asyncio
import atexit
import concurrent.futures
import threading
from typing import Any, Coroutine, Optional

# All remote calls share one event loop living in a daemon thread, so
# synchronous callers can hold plain futures for in-flight invocations.
# Blocking entry points always go through run_sync, whether or not the
# caller is itself inside an event loop.

_bg_loop: Optional[asyncio.AbstractEventLoop] = None
_bg_thread: Optional[threading.Thread] = None
_bg_started = threading.Event()
_bg_lock = threading.Lock()


def _loop_thread_target() -> None:
    global _bg_loop
    loop = asyncio.new_event_loop()
    _bg_loop = loop
    asyncio.set_event_loop(loop)
    _bg_started.set()
    try:
        loop.run_forever()
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            loop.close()
            _bg_loop = None


def _ensure_bg_loop_started() -> asyncio.AbstractEventLoop:
    global _bg_thread
    with _bg_lock:
        if _bg_loop is None or _bg_thread is None or not _bg_thread.is_alive():
            _bg_started.clear()
            _bg_thread = threading.Thread(
                target=_loop_thread_target, name="lambdaimage-bg-loop", daemon=True
            )
            _bg_thread.start()
            _bg_started.wait()
    assert _bg_loop is not None
    return _bg_loop


def submit(coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
    """Schedule ``coro`` on the background loop and return immediately."""
    loop = _ensure_bg_loop_started()
    return asyncio.run_coroutine_threadsafe(coro, loop)


def in_background_loop() -> bool:
    try:
        return asyncio.get_running_loop() is _bg_loop
    except RuntimeError:
        return False


def run_sync(coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
    """
    Run ``coro`` on the background loop and block until it finishes.

    Works from plain threads and from inside a foreign running loop (that
    loop is blocked for the duration). Calling it from the background loop
    itself would deadlock, so that raises ``RuntimeError``.
    """
    if in_background_loop():
        coro.close()
        raise RuntimeError("Blocking call made from the background loop; await the coroutine instead.")
    return submit(coro).result(timeout=timeout)


def _stop_bg_loop() -> None:
    global _bg_loop, _bg_thread
    loop = _bg_loop
    if loop is None:
        return
    loop.call_soon_threadsafe(loop.stop)
    if _bg_thread and _bg_thread.is_alive():
        _bg_thread.join(timeout=2.0)
    _bg_loop = None
    _bg_thread = None


atexit.register(_stop_bg_loop)
