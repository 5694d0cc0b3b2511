"""Cancellable periodic tasks."""

from __future__ import annotations
import threading
import time
from typing import Callable, Optional

from ..logger import get_logger

logger = get_logger(__name__)


class RepeatingTask:
    """Runs a function on a background thread at a fixed period.

    The task owns a threading.Event that acts as its cancellation token:
    cancel() sets it, and the worker checks it between runs.
    """

    def __init__(self, func: Callable[[], None], period: float, name: str = "repeating-task"):
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self._func = func
        self._period = period
        self._name = name
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def period(self) -> float:
        return self._period

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread. A task can only be started once."""
        if self._thread is not None:
            logger.warning(f"Task {self._name} already started")
            return

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.debug(f"Task {self._name} started (period {self._period:.3f}s)")

    def cancel(self, timeout: Optional[float] = 1.0) -> None:
        """Stop the task and wait for the worker to exit. Idempotent."""
        self._cancelled.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Task {self._name} did not stop within {timeout}s")
        logger.debug(f"Task {self._name} cancelled")

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _run(self) -> None:
        next_run = time.monotonic()
        while not self._cancelled.is_set():
            try:
                self._func()
            except Exception:
                logger.exception(f"Unhandled error in task {self._name}; stopping it")
                self._cancelled.set()
                break

            # Keep a fixed cadence; skip missed slots instead of bursting
            next_run += self._period
            delay = next_run - time.monotonic()
            if delay < 0:
                next_run = time.monotonic()
                delay = 0
            self._cancelled.wait(delay)


class FrameLoop:
    """Runs a per-frame step on the calling thread until cancelled.

    The step returns False to end the loop (e.g. when a session finishes);
    wait_for_frame blocks until the next display refresh, typically a
    pygame Clock.tick bound to the target frame rate.
    """

    def __init__(self, step: Callable[[], bool], wait_for_frame: Callable[[], object]):
        self._step = step
        self._wait_for_frame = wait_for_frame
        self._cancelled = threading.Event()
        self.frames = 0

    def cancel(self) -> None:
        """Prevent any further frame from being scheduled. Idempotent."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self) -> int:
        """Run frames until the step returns False or the loop is cancelled.

        Returns:
            Number of frames executed
        """
        while not self._cancelled.is_set():
            self.frames += 1
            if not self._step():
                self._cancelled.set()
                break
            self._wait_for_frame()
        return self.frames
