"""Core primitives for the compiler fleet."""

from .types import (
    CapabilityFlags,
    CompilerDescriptor,
    CompilerRegistry,
    ExecutionKind,
    FleetReport,
    ProbeOutcome,
    RemoteEndpoint,
    RemoteSource,
)
from .errors import (
    FleetError,
    ConfigurationError,
    ScanFailure,
    ProbeFailure,
    RemoteFetchFailure,
    InternalError,
)

__all__ = [
    "CapabilityFlags",
    "CompilerDescriptor",
    "CompilerRegistry",
    "ExecutionKind",
    "FleetReport",
    "ProbeOutcome",
    "RemoteEndpoint",
    "RemoteSource",
    "FleetError",
    "ConfigurationError",
    "ScanFailure",
    "ProbeFailure",
    "RemoteFetchFailure",
    "InternalError",
]
