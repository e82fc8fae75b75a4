"""
Fleet assembly: the single startup pass that produces the compiler registry.

enumerate (local + remote, concurrently)
    -> probe every local candidate (concurrently)
    -> drop discarded and duplicate entries
    -> sort by name
    -> publish an immutable CompilerRegistry
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Set, Tuple

from ..config.fields import PropertySource
from ..core.errors import ProbeFailure
from ..core.types import CompilerDescriptor, CompilerRegistry, FleetReport, ProbeOutcome
from .enumerator import FleetEnumerator, Scanner
from .prober import DEFAULT_PROBE_TIMEOUT_SECS, CapabilityProber, ProcessRunner
from .remote import DEFAULT_TIMEOUT_SECS, CompilerListFetcher, HttpCompilerListFetcher, RemoteRegistryClient
from .retry import Sleep
from .toolchains import scan_toolchains

logger = logging.getLogger(__name__)


async def _settle(prober: CapabilityProber, candidate: CompilerDescriptor) -> ProbeOutcome:
    if not candidate.is_local:
        return ProbeOutcome.probed(candidate)
    return await prober.probe(candidate)


def _drop_duplicates(compilers: List[CompilerDescriptor]) -> Tuple[List[CompilerDescriptor], List[str]]:
    seen: Set[str] = set()
    unique: List[CompilerDescriptor] = []
    duplicates: List[str] = []
    for compiler in compilers:
        if compiler.id in seen:
            logger.warning(f"Ignoring duplicate compiler id '{compiler.id}' from {compiler.origin}")
            duplicates.append(compiler.id)
            continue
        seen.add(compiler.id)
        unique.append(compiler)
    return unique, duplicates


def log_registry(registry: CompilerRegistry) -> None:
    logger.info("Compilers:")
    for compiler in registry:
        logger.info(f"{compiler.id} : {compiler.name} : {compiler.origin}")


async def assemble_fleet(
    props: PropertySource,
    *,
    runner: Optional[ProcessRunner] = None,
    fetcher: Optional[CompilerListFetcher] = None,
    sleep: Sleep = asyncio.sleep,
    scanner: Scanner = scan_toolchains,
) -> FleetReport:
    """
    Discover, probe and publish every configured compiler.

    Args:
        props: Compiler property lookup.
        runner: Process runner used for probing (subprocesses by default).
        fetcher: Remote compiler list transport (HTTP by default).
        sleep: Timer used between remote retries.
        scanner: Toolchain scanner for ``androidNdk``.

    Returns:
        FleetReport with the published registry and every dropped branch.

    Raises:
        ScanFailure / ConfigurationError: startup cannot continue.
    """
    if fetcher is None:
        fetcher = HttpCompilerListFetcher(
            timeout=float(props.get("proxyTimeoutSecs", DEFAULT_TIMEOUT_SECS)),
        )
    prober = CapabilityProber(
        runner=runner,
        timeout=float(props.get("probeTimeoutSecs", DEFAULT_PROBE_TIMEOUT_SECS)),
    )
    enumerator = FleetEnumerator(
        props,
        remote_client=RemoteRegistryClient(fetcher, sleep=sleep),
        scanner=scanner,
    )

    enumeration = await enumerator.enumerate()
    candidates = enumeration.flatten()

    outcomes = await asyncio.gather(*(_settle(prober, c) for c in candidates))

    survivors = [o.descriptor for o in outcomes if o.descriptor is not None]
    probe_failures: List[ProbeFailure] = [o.failure for o in outcomes if o.failure is not None]

    survivors, duplicates = _drop_duplicates(survivors)
    registry = CompilerRegistry(survivors)
    log_registry(registry)

    return FleetReport(
        registry=registry,
        failures=(*enumeration.failures, *probe_failures),
        duplicates=tuple(duplicates),
    )


def find_compilers(props: PropertySource, **kwargs) -> FleetReport:
    """Run fleet assembly to completion on a fresh event loop."""
    return asyncio.run(assemble_fleet(props, **kwargs))
