"""Scanning engine discovery and invocation."""

from leakgate.engine.locator import (
    BundledBinaryProvider,
    EngineHandle,
    EngineLocator,
    EngineNotFoundError,
    EngineProvider,
    EnvOverrideProvider,
    SystemPathProvider,
)
from leakgate.engine.runner import EngineInvocationError, EngineRunner, RunResult

__all__ = [
    "BundledBinaryProvider",
    "EngineHandle",
    "EngineInvocationError",
    "EngineLocator",
    "EngineNotFoundError",
    "EngineProvider",
    "EngineRunner",
    "EnvOverrideProvider",
    "RunResult",
    "SystemPathProvider",
]
