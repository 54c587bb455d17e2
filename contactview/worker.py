"""Execution helpers for background work."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import threading
from typing import Any, Callable, Optional


class Worker:
    """Thread pool for coordinate fetches and other background work."""

    def __init__(self, max_workers: int = 1) -> None:
        """Initialize the executor.

        Parameters
        ----------
        max_workers
            Number of thread pool workers.

        Returns
        -------
        None
            This method does not return a value.
        """

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="contactview"
        )

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        """Run work in the thread pool.

        Parameters
        ----------
        fn
            Callable to execute.
        *args
            Positional arguments to pass to ``fn``.
        **kwargs
            Keyword arguments to pass to ``fn``.

        Returns
        -------
        concurrent.futures.Future
            Future for the submitted work.
        """
        return self._executor.submit(fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class Debouncer:
    """Trailing-edge debouncer backed by ``threading.Timer``.

    Each ``call`` replaces the pending callable and restarts the delay, so only
    the last call in a burst runs.
    """

    def __init__(self, delay: float) -> None:
        self._delay = max(0.0, float(delay))
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def call(self, fn: Callable[[], None]) -> None:
        """Schedule ``fn`` to run after the delay, cancelling any pending call.

        Parameters
        ----------
        fn
            Zero-argument callable.

        Returns
        -------
        None
            This method does not return a value.
        """

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = fn
            timer = threading.Timer(self._delay, self._fire)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def flush(self) -> bool:
        """Run the pending callable now.

        Returns
        -------
        bool
            True when a pending callable was run.
        """

        return self._fire()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def _fire(self) -> bool:
        with self._lock:
            fn = self._pending
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None
        if fn is None:
            return False
        fn()
        return True
