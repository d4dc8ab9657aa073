# Copyright (c) 2026 Tinct
# SPDX-License-Identifier: MIT

"""
Runtime layer: executors, envelopes and the offload coordinator.

Quantization is CPU-bound and synchronous. This layer decides where it
runs (worker process or caller) and guarantees the caller a usable
response either way.
"""

from tinct.runtime.coordinator import CoordinatorConfig, CoordinatorState, OffloadCoordinator
from tinct.runtime.envelope import decode_request, decode_response, encode_request
from tinct.runtime.executors import LocalExecutor, ProcessExecutor, RemoteExecutor, run_payload

__all__ = [
    # Coordinator
    "OffloadCoordinator",
    "CoordinatorConfig",
    "CoordinatorState",
    # Executors
    "LocalExecutor",
    "ProcessExecutor",
    "RemoteExecutor",
    "run_payload",
    # Envelopes
    "encode_request",
    "decode_request",
    "decode_response",
]
