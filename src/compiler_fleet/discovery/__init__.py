"""
Compiler discovery: enumeration, remote pools, probing and assembly.
"""

from .assembler import assemble_fleet, find_compilers
from .enumerator import FleetEnumerator, LocalSpec, RemoteSpec, classify
from .prober import AsyncProcessRunner, CapabilityProber, ProcessResult, ProcessRunner
from .remote import CompilerListFetcher, HttpCompilerListFetcher, RemoteRegistryClient
from .retry import RetryState, retry
from .toolchains import scan_toolchains

__all__ = [
    "assemble_fleet",
    "find_compilers",
    "FleetEnumerator",
    "LocalSpec",
    "RemoteSpec",
    "classify",
    "AsyncProcessRunner",
    "CapabilityProber",
    "ProcessResult",
    "ProcessRunner",
    "CompilerListFetcher",
    "HttpCompilerListFetcher",
    "RemoteRegistryClient",
    "RetryState",
    "retry",
    "scan_toolchains",
]
