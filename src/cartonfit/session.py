"""
Packing session — caller-side orchestration of box selection.

The engine (``choose_smallest_fitting_box``) is a pure, CPU-bound call.  A
``PackingSession`` owns the read-only box catalog, runs one computation at
a time on a dedicated worker thread and enforces a watchdog timeout.

State machine::

    IDLE ──submit──> RUNNING ──> SUCCEEDED
     ^                  │   └──> FAILED      (no box fits)
     │                  └──────> TIMED_OUT   (watchdog expired)
     └─ any terminal state may submit again

A submit while RUNNING is rejected as a no-op, as is a submit with no
products.  On timeout the worker is not interrupted: it runs to completion
in the background and its late result is discarded.

Usage:
    with PackingSession(boxes) as session:
        result = session.run(products)
        print(result.box.id, len(result.placed))
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Dict, FrozenSet, Optional, Sequence, Tuple

from cartonfit.config import Box, EngineConfig, Product
from cartonfit.selector.box_selector import SelectionResult, choose_smallest_fitting_box

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of the session's single in-flight computation."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.RUNNING}),
    SessionState.RUNNING: frozenset({
        SessionState.SUCCEEDED, SessionState.FAILED, SessionState.TIMED_OUT,
    }),
    SessionState.SUCCEEDED: frozenset({SessionState.RUNNING}),
    SessionState.FAILED: frozenset({SessionState.RUNNING}),
    SessionState.TIMED_OUT: frozenset({SessionState.RUNNING}),
}


class SessionError(Exception):
    """Base class for session-level failures."""


class NoFittingBoxError(SessionError):
    """No box in the catalog can hold all requested products."""


class ComputationTimeoutError(SessionError):
    """The computation exceeded the watchdog timeout."""


class InvalidTransitionError(SessionError):
    """A state change not allowed by the session state machine."""


class PackingSession:
    """
    Explicit context for box selection requests.

    Args:
        box_catalog:   Candidate boxes (copied into a read-only tuple).
        engine_config: Tuning and watchdog timeout; defaults when omitted.
    """

    def __init__(
        self,
        box_catalog: Sequence[Box],
        engine_config: Optional[EngineConfig] = None,
    ) -> None:
        self.box_catalog: Tuple[Box, ...] = tuple(box_catalog)
        self.engine_config: EngineConfig = engine_config or EngineConfig()
        self.last_result: Optional[SelectionResult] = None
        self.last_error: Optional[SessionError] = None
        self.last_runtime: Optional[float] = None

        self._state = SessionState.IDLE
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cartonfit")
        self._future: Optional[Future] = None
        self._started_at = 0.0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING

    def _transition(self, new_state: SessionState) -> None:
        """Move to *new_state*; caller holds the lock."""
        if new_state not in TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"Cannot move from {self._state.value} to {new_state.value}"
            )
        logger.debug("session: %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    # ── Requests ─────────────────────────────────────────────────────────

    def submit(self, products: Sequence[Product]) -> bool:
        """
        Start a selection for *products* on the worker thread.

        Returns:
            ``True`` if a computation was started, ``False`` if the request
            was a no-op (no products, or a computation already running).
        """
        products = tuple(products)
        if not products:
            logger.debug("session: empty product selection ignored")
            return False

        with self._lock:
            if self._state is SessionState.RUNNING:
                logger.debug("session: request ignored, computation in flight")
                return False
            self._transition(SessionState.RUNNING)
            self.last_result = None
            self.last_error = None
            self.last_runtime = None
            self._started_at = time.monotonic()
            self._future = self._executor.submit(
                choose_smallest_fitting_box, self.box_catalog, products, self.engine_config,
            )
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[SelectionResult]:
        """
        Block until the in-flight computation finishes.

        Args:
            timeout: Watchdog in seconds, measured from submission.
                     Defaults to ``engine_config.timeout_seconds``.

        Returns:
            The selection result, or the last result if nothing is running.

        Raises:
            ComputationTimeoutError: The watchdog expired.
            NoFittingBoxError:       No box fits all products.
        """
        with self._lock:
            future = self._future
            if self._state is not SessionState.RUNNING or future is None:
                return self.last_result
            started = self._started_at

        limit = self.engine_config.timeout_seconds if timeout is None else timeout
        remaining = max(0.0, started + limit - time.monotonic())

        try:
            result = future.result(timeout=remaining)
        except FutureTimeoutError:
            error = ComputationTimeoutError(f"Computation took longer than {limit:.1f}s")
            self._finish(future, SessionState.TIMED_OUT, error=error)
            logger.warning("session: %s", error)
            raise error from None
        except Exception:
            self._finish(future, SessionState.FAILED)
            raise

        if result is None:
            error = NoFittingBoxError(
                f"No box among {len(self.box_catalog)} fits the selected products"
            )
            self._finish(future, SessionState.FAILED, error=error)
            logger.warning("session: %s", error)
            raise error

        self._finish(future, SessionState.SUCCEEDED, result=result)
        return result

    def run(self, products: Sequence[Product]) -> Optional[SelectionResult]:
        """Submit and wait.  Returns ``None`` when the request was a no-op."""
        if not self.submit(products):
            return None
        return self.wait()

    def _finish(
        self,
        future: Future,
        new_state: SessionState,
        result: Optional[SelectionResult] = None,
        error: Optional[SessionError] = None,
    ) -> None:
        with self._lock:
            # A concurrent waiter may already have settled this computation.
            if self._future is not future or self._state is not SessionState.RUNNING:
                return
            self._transition(new_state)
            self.last_result = result
            self.last_error = error
            self.last_runtime = time.monotonic() - self._started_at
            self._future = None

    # ── Lifecycle ────────────────────────────────────────────────────────

    def shutdown(self, wait: bool = False) -> None:
        """Release the worker thread.  A timed-out computation is not cancelled."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "PackingSession":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return f"PackingSession(boxes={len(self.box_catalog)}, state={self._state.value})"
