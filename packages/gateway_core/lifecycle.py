"""Process lifecycle state machine, in-flight tracking, and shutdown signals."""

from __future__ import annotations

import asyncio
import signal
from contextlib import asynccontextmanager
from enum import StrEnum
from typing import Any, AsyncIterator, Sequence

from packages.gateway_shared.logging import fields, get_logger, log_context

_LOGGER = get_logger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(StrEnum):
    """Ordered process lifecycle states."""

    STARTING = "starting"
    VALIDATING = "validating"
    READY = "ready"
    DRAINING = "draining"
    STOPPED = "stopped"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.STARTING: frozenset(
        {LifecycleState.VALIDATING, LifecycleState.FAILED}
    ),
    LifecycleState.VALIDATING: frozenset(
        {LifecycleState.READY, LifecycleState.FAILED}
    ),
    LifecycleState.READY: frozenset({LifecycleState.DRAINING}),
    LifecycleState.DRAINING: frozenset({LifecycleState.STOPPED}),
    LifecycleState.STOPPED: frozenset(),
    LifecycleState.FAILED: frozenset(),
}


class LifecycleTransitionError(RuntimeError):
    """Raised when a transition would move the lifecycle backwards."""

    def __init__(self, current: LifecycleState, target: LifecycleState) -> None:
        super().__init__(
            f"illegal lifecycle transition: {current.value} -> {target.value}"
        )
        self.current = current
        self.target = target


class LifecycleController:
    """Single writer of the process lifecycle state.

    The controller also counts in-flight requests so draining can wait for
    them, and exposes ``shutdown_requested`` for the serving loop.
    """

    def __init__(self, *, is_production: bool = False) -> None:
        self._state = LifecycleState.STARTING
        self._is_production = is_production
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._shutdown_requested = asyncio.Event()
        self._failure_detail = ""

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def failure_detail(self) -> str:
        return self._failure_detail

    @property
    def shutdown_requested(self) -> asyncio.Event:
        return self._shutdown_requested

    def is_admitting(self) -> bool:
        """Return True only while the process accepts new metered work."""
        return self._state is LifecycleState.READY

    def begin_validation(self) -> None:
        self._transition(LifecycleState.VALIDATING)

    def mark_ready(self) -> None:
        self._transition(LifecycleState.READY)

    def fail(self, *, missing: Sequence[str] = (), detail: str = "") -> None:
        """Move to terminal FAILED, logging missing configuration by env name."""
        self._failure_detail = detail or (
            "missing required configuration: " + ", ".join(missing)
        )
        self._transition(LifecycleState.FAILED)
        _LOGGER.error(
            "gateway startup validation failed",
            extra={"missing_settings": list(missing), "detail": self._failure_detail},
        )

    def begin_drain(self, *, reason: str) -> bool:
        """Enter DRAINING; returns False when already draining or stopped."""
        if self._state in (LifecycleState.DRAINING, LifecycleState.STOPPED):
            _LOGGER.info(
                "shutdown request ignored; already draining",
                extra={"reason": reason, fields.LIFECYCLE_STATE: self._state.value},
            )
            return False
        self._transition(LifecycleState.DRAINING)
        _LOGGER.info(
            "gateway draining",
            extra={"reason": reason, "in_flight": self._in_flight},
        )
        self._shutdown_requested.set()
        return True

    def mark_stopped(self) -> None:
        self._transition(LifecycleState.STOPPED)

    def request_shutdown(self, signame: str) -> None:
        """Signal handler body: the first signal drains, later ones are ignored."""
        self.begin_drain(reason=f"signal:{signame}")

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route SIGINT/SIGTERM into ``request_shutdown`` on the running loop."""
        for sig in _SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)

    def handle_uncaught_fault(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        """Loop exception handler: production continues, other modes drain."""
        exc = context.get("exception")
        _LOGGER.error(
            "uncaught fault in event loop: %s",
            context.get("message", "unhandled exception"),
            exc_info=exc,
        )
        if self._is_production:
            return
        if self._state is LifecycleState.READY:
            self.begin_drain(reason="uncaught_fault")

    @asynccontextmanager
    async def track_request(self) -> AsyncIterator[None]:
        """Count one request as in flight for the duration of the block."""
        self._in_flight += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def wait_for_idle(self, *, timeout_seconds: float) -> bool:
        """Wait for in-flight requests to finish; False when the timeout elapsed."""
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout_seconds)
        except TimeoutError:
            _LOGGER.warning(
                "drain timeout elapsed with requests in flight",
                extra={"in_flight": self._in_flight},
            )
            return False
        return True

    def _transition(self, target: LifecycleState) -> None:
        current = self._state
        if target not in _ALLOWED_TRANSITIONS[current]:
            raise LifecycleTransitionError(current, target)
        self._state = target
        with log_context({fields.LIFECYCLE_STATE: target.value}):
            _LOGGER.info(
                "lifecycle transition",
                extra={"previous_state": current.value},
            )
