# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Offload coordinator.

Dispatches an extraction to a remote executor with a timeout and, on
any transport problem, re-runs the identical pipeline locally. Both
paths end in the same response contract.

State machine::

    idle ─► dispatched ─► remote_running ─► completed
                │               │
                │               └─► timed_out ─► local_running ─► completed
                └──────────────────────────────► local_running ─► completed

Dispatch failure, a remote crash, a malformed envelope and a remote
``success: false`` all take the local path, exactly like a timeout.
Only a local failure is surfaced as ``success: false``.

Single-flight: ``submit`` cancels the caller-facing future of any
in-flight request and abandons its remote unit before the new request
dispatches. A request superseded during its remote attempt skips the
local run; any late result is dropped.
"""

from __future__ import annotations

import dataclasses
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from tinct.errors import EnvelopeError
from tinct.runtime.envelope import decode_response, encode_request
from tinct.runtime.executors import LocalExecutor, RemoteExecutor
from tinct.schema import (
    FALLBACK_TRIAD,
    ErrorCode,
    ExtractionRequest,
    ExtractionResponse,
)


class CoordinatorState(str, Enum):
    """Lifecycle of one coordinated extraction."""
    IDLE = "idle"
    DISPATCHED = "dispatched"
    REMOTE_RUNNING = "remote_running"
    TIMED_OUT = "timed_out"
    LOCAL_RUNNING = "local_running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class CoordinatorConfig:
    """Configuration for offloaded extraction."""

    # Seconds to wait for the remote executor before running locally
    timeout: float = 15.0

    # Longest image side the caller should send (the engine never resizes)
    remote_max_dimension: int = 400
    local_max_dimension: int = 200

    # Threads driving submit(); more than one so a new request never
    # queues behind a superseded one that is waiting out its timeout
    dispatch_workers: int = 2

    # Hard cap on buffer elements copied into a remote payload
    max_buffer_length: int = 10 * 1024 * 1024


class OffloadCoordinator:
    """
    Runs extractions remotely when possible, locally otherwise.

    Args:
        remote: Offload executor (e.g. ProcessExecutor). None means
            always run locally.
        local: Synchronous executor (default: LocalExecutor())
        config: Timeout and dimension limits

    Example:
        >>> with OffloadCoordinator(remote=ProcessExecutor()) as coordinator:
        ...     response = coordinator.extract(request)
    """

    def __init__(
        self,
        remote: Optional[RemoteExecutor] = None,
        local: Optional[LocalExecutor] = None,
        config: Optional[CoordinatorConfig] = None,
    ):
        self.remote = remote
        self.local = local or LocalExecutor()
        self.config = config or CoordinatorConfig()

        self.state = CoordinatorState.IDLE
        self.trace: tuple[CoordinatorState, ...] = ()
        self.latest: Optional[ExtractionResponse] = None

        self._lock = threading.Lock()
        self._inflight: Optional[Future] = None
        # caller future -> remote unit, for abandoning superseded work
        self._units: dict[Future, Future] = {}
        self._dispatcher: Optional[ThreadPoolExecutor] = None

    # ------------------------------------------------------------------
    # Blocking API
    # ------------------------------------------------------------------

    def extract(
        self,
        request: ExtractionRequest,
        local_request: Optional[ExtractionRequest] = None,
    ) -> ExtractionResponse:
        """
        Run one extraction to completion.

        Never raises for pipeline or transport problems; the response
        always carries a renderable palette.

        Args:
            request: Request sent to the remote executor
            local_request: Smaller request for the local path (default:
                request itself)
        """
        return self._extract(request, local_request)

    def _extract(
        self,
        request: ExtractionRequest,
        local_request: Optional[ExtractionRequest] = None,
        owner: Optional[Future] = None,
    ) -> Optional[ExtractionResponse]:
        """Returns None only when ``owner`` was superseded before a local re-run."""
        trace: list[CoordinatorState] = []
        self._transition(trace, CoordinatorState.DISPATCHED)

        notice: Optional[str] = None
        if self.remote is not None:
            if self.remote.available:
                response, notice = self._run_remote(request, trace, owner)
                if response is not None:
                    return self._complete(trace, response)
                if owner is not None and owner.cancelled():
                    logger.debug("Superseded during remote attempt; skipping local run")
                    return None
            else:
                notice = "remote executor unavailable"
                logger.warning("Remote executor unavailable; extracting locally")

        local = local_request if local_request is not None else request
        return self._complete(trace, self._run_local(local, trace, notice))

    def _run_remote(
        self,
        request: ExtractionRequest,
        trace: list[CoordinatorState],
        owner: Optional[Future] = None,
    ) -> tuple[Optional[ExtractionResponse], Optional[str]]:
        """Remote attempt. Returns (response, None) or (None, notice)."""
        if request.longest_side > self.config.remote_max_dimension:
            logger.warning(
                "Image side {}px exceeds the offload limit of {}px; downscale before extracting",
                request.longest_side, self.config.remote_max_dimension,
            )

        try:
            payload = encode_request(request, max_length=self.config.max_buffer_length)
            # Registered under the lock so submit() can abandon the unit
            # before the superseding request dispatches.
            with self._lock:
                if owner is not None and owner.cancelled():
                    return None, "superseded before dispatch"
                future = self.remote.dispatch(payload)
                if owner is not None:
                    self._units[owner] = future
        except Exception as e:
            logger.warning("Remote dispatch failed ({}); extracting locally", e)
            return None, f"remote dispatch failed: {e}"

        self._transition(trace, CoordinatorState.REMOTE_RUNNING)
        try:
            envelope = future.result(timeout=self.config.timeout)
        except FutureTimeoutError:
            self._transition(trace, CoordinatorState.TIMED_OUT)
            self.remote.abandon(future)
            logger.warning(
                "Remote extraction timed out after {}s; extracting locally",
                self.config.timeout,
            )
            return None, f"remote extraction timed out after {self.config.timeout}s"
        except Exception as e:
            logger.warning("Remote extraction failed ({}: {}); extracting locally", type(e).__name__, e)
            return None, f"remote extraction failed: {e}"
        finally:
            if owner is not None:
                with self._lock:
                    self._units.pop(owner, None)

        try:
            response = decode_response(envelope)
        except EnvelopeError as e:
            logger.warning("Discarding malformed remote response ({}); extracting locally", e)
            return None, f"malformed remote response: {e}"

        if not response.success:
            reason = response.error.value if response.error else "unknown error"
            logger.warning("Remote extraction reported {}; extracting locally", reason)
            return None, f"remote extraction reported failure: {reason}"

        return response, None

    def _run_local(
        self,
        request: ExtractionRequest,
        trace: list[CoordinatorState],
        notice: Optional[str],
    ) -> ExtractionResponse:
        """Local attempt; turns any failure into an unrecoverable response."""
        self._transition(trace, CoordinatorState.LOCAL_RUNNING)
        if request.longest_side > self.config.local_max_dimension:
            logger.debug(
                "Image side {}px exceeds the local limit of {}px",
                request.longest_side, self.config.local_max_dimension,
            )

        start = time.perf_counter()
        try:
            response = self.local.run(request)
        except Exception as e:
            logger.error("Local extraction failed ({}: {})", type(e).__name__, e)
            return ExtractionResponse(
                success=False,
                colors=FALLBACK_TRIAD,
                method="fallback",
                processing_time=(time.perf_counter() - start) * 1000.0,
                error=ErrorCode.UNRECOVERABLE,
                executor="local",
                notice=notice,
                requested_method=request.method.value,
            )
        return dataclasses.replace(response, executor="local", notice=notice)

    def _complete(
        self,
        trace: list[CoordinatorState],
        response: ExtractionResponse,
    ) -> ExtractionResponse:
        self._transition(trace, CoordinatorState.COMPLETED)
        with self._lock:
            self.trace = tuple(trace)
            self.state = CoordinatorState.IDLE
        return response

    def _transition(self, trace: list[CoordinatorState], state: CoordinatorState) -> None:
        trace.append(state)
        with self._lock:
            self.state = state
        logger.debug("Coordinator -> {}", state.value)

    # ------------------------------------------------------------------
    # Single-flight API
    # ------------------------------------------------------------------

    def submit(
        self,
        request: ExtractionRequest,
        local_request: Optional[ExtractionRequest] = None,
    ) -> Future:
        """
        Start an extraction in the background.

        Any request still in flight is superseded: its future is
        cancelled, its remote unit abandoned and its eventual result
        discarded.

        Returns:
            Future resolving to an ExtractionResponse
        """
        future: Future = Future()
        with self._lock:
            previous, self._inflight = self._inflight, future
            unit = None
            if previous is not None:
                previous.cancel()
                unit = self._units.pop(previous, None)
            if self._dispatcher is None:
                self._dispatcher = ThreadPoolExecutor(
                    max_workers=self.config.dispatch_workers,
                    thread_name_prefix="tinct-dispatch",
                )
            dispatcher = self._dispatcher

        if previous is not None:
            logger.debug("Superseded in-flight extraction")
        if unit is not None:
            self.remote.abandon(unit)

        dispatcher.submit(self._deliver, request, local_request, future)
        return future

    def _deliver(
        self,
        request: ExtractionRequest,
        local_request: Optional[ExtractionRequest],
        future: Future,
    ) -> None:
        response = self._extract(request, local_request, owner=future)
        with self._lock:
            current = self._inflight is future
            if current:
                self._inflight = None
        if response is None or not future.set_running_or_notify_cancel():
            logger.debug("Discarding superseded response")
            return
        if current:
            with self._lock:
                self.latest = response
        future.set_result(response)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop background dispatch and release the remote executor."""
        with self._lock:
            dispatcher, self._dispatcher = self._dispatcher, None
        if dispatcher is not None:
            dispatcher.shutdown(wait=False, cancel_futures=True)
        if self.remote is not None:
            self.remote.close()

    def __enter__(self) -> OffloadCoordinator:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
