# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Executors for the extraction pipeline.

Two interchangeable ways to run the same unit of work:

1. LocalExecutor: Synchronously, in the caller's thread
2. ProcessExecutor: In a worker process, returning a Future

Remote executors only ever see serialized payloads (see envelope) and
hand back plain dicts, so nothing is shared with the caller.
"""

from __future__ import annotations

import dataclasses
import multiprocessing
import threading
from concurrent.futures import Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Optional, Protocol

from loguru import logger

from tinct.errors import TransportError
from tinct.quantize.config import QuantizeConfig
from tinct.quantize.extract import extract
from tinct.quantize.palette import RandomSource
from tinct.runtime.envelope import decode_request
from tinct.schema import ExtractionRequest, ExtractionResponse


class RemoteExecutor(Protocol):
    """Interface the coordinator expects from an offload executor."""

    @property
    def available(self) -> bool: ...

    def dispatch(self, payload: dict) -> Future: ...

    def abandon(self, future: Future) -> None: ...

    def close(self) -> None: ...


def run_payload(payload: dict, config: Optional[QuantizeConfig] = None) -> dict:
    """
    Worker entry point: payload dict in, response dict out.

    Module-level so it can be pickled into a worker process.
    """
    request = decode_request(payload)
    response = extract(request, config=config)
    return dataclasses.replace(response, executor="remote").to_dict()


class LocalExecutor:
    """Runs the pipeline synchronously in the caller."""

    def __init__(
        self,
        config: Optional[QuantizeConfig] = None,
        rng: RandomSource = None,
    ):
        self.config = config or QuantizeConfig()
        self.rng = rng

    def run(self, request: ExtractionRequest) -> ExtractionResponse:
        """Extract a palette; raises only if the pipeline cannot run."""
        response = extract(request, config=self.config, rng=self.rng)
        return dataclasses.replace(response, executor="local")


class ProcessExecutor:
    """
    Runs the pipeline in a single worker process.

    The pool is created lazily. Abandoning a unit that already started
    retires the pool that owns it; later dispatches get a fresh pool.
    The old worker finishes its queue in the background and its results
    are never read. Units on other pools are left alone.
    """

    def __init__(
        self,
        config: Optional[QuantizeConfig] = None,
        max_workers: int = 1,
        mp_context: Optional[multiprocessing.context.BaseContext] = None,
    ):
        self.config = config or QuantizeConfig()
        self.max_workers = max_workers
        self.mp_context = mp_context
        self._pool: Optional[ProcessPoolExecutor] = None
        self._owners: dict[Future, ProcessPoolExecutor] = {}
        self._closed = False
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return not self._closed

    def _ensure_pool(self) -> ProcessPoolExecutor:
        # Caller holds self._lock
        if self._pool is None:
            self._pool = ProcessPoolExecutor(
                max_workers=self.max_workers, mp_context=self.mp_context
            )
        return self._pool

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._owners.pop(future, None)

    def dispatch(self, payload: dict) -> Future:
        """
        Submit a serialized request to the worker.

        Raises:
            TransportError: If the executor is closed or the pool is broken
        """
        with self._lock:
            if self._closed:
                raise TransportError("Process executor is closed")
            try:
                pool = self._ensure_pool()
                future = pool.submit(run_payload, payload, self.config)
            except BrokenProcessPool as e:
                self._pool = None
                raise TransportError(f"Worker pool is broken: {e}") from e
            except (RuntimeError, OSError) as e:
                raise TransportError(f"Could not dispatch to worker: {e}") from e
            self._owners[future] = pool
        future.add_done_callback(self._forget)
        return future

    def abandon(self, future: Future) -> None:
        """Best-effort cancellation of a dispatched unit."""
        if future.cancel():
            return
        with self._lock:
            pool = self._owners.pop(future, None)
            retire = pool is not None and pool is self._pool and not future.done()
            if retire:
                self._pool = None
        if retire:
            logger.debug("Abandoning running worker; retiring its process pool")
            pool.shutdown(wait=False, cancel_futures=False)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            pool, self._pool = self._pool, None
            self._owners.clear()
        if pool is not None:
            pool.shutdown(wait=False, cancel_futures=True)
