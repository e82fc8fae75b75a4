"""
Enumeration of configured compilers.

The ``compilers`` property is a colon-separated list of identifiers:
- ``host@port``   a remote pool whose compiler list is fetched over HTTP
- anything else   a local compiler, described by ``compiler.<id>.*`` properties

Toolchains found under ``<androidNdk>/toolchains`` are appended as local
identifiers (absolute executable paths).
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..config.fields import CompilerField, PropertySource, compiler_property
from ..core.errors import ConfigurationError, RemoteFetchFailure
from ..core.types import (
    CapabilityFlags,
    CompilerDescriptor,
    ExecutionKind,
    RemoteEndpoint,
    RemoteSource,
)
from .remote import RemoteRegistryClient
from .toolchains import scan_toolchains

logger = logging.getLogger(__name__)

DEFAULT_COMPILERS = "/usr/bin/g++"
DEFAULT_PROXY_RETRIES = 20
DEFAULT_PROXY_RETRY_MS = 500

Scanner = Callable[[Path], List[str]]


# -----------------------------
# Spec classification
# -----------------------------
@dataclass(frozen=True)
class LocalSpec:
    compiler_id: str


@dataclass(frozen=True)
class RemoteSpec:
    endpoint: RemoteEndpoint


CompilerSpec = Union[LocalSpec, RemoteSpec]


def classify(identifier: str) -> CompilerSpec:
    if "@" in identifier:
        return RemoteSpec(RemoteEndpoint.parse(identifier))
    return LocalSpec(identifier)


@dataclass(frozen=True)
class Enumeration:
    """Per-spec contributions, in configuration order, plus failed remotes."""
    contributions: Tuple[Tuple[CompilerDescriptor, ...], ...]
    failures: Tuple[RemoteFetchFailure, ...] = ()

    def flatten(self) -> List[CompilerDescriptor]:
        return [c for group in self.contributions for c in group]


# -----------------------------
# Enumerator
# -----------------------------
class FleetEnumerator:
    """
    Expands configuration into local descriptors and remote fetches.
    """

    def __init__(
        self,
        props: PropertySource,
        remote_client: Optional[RemoteRegistryClient] = None,
        scanner: Scanner = scan_toolchains,
    ):
        self.props = props
        self.remote_client = remote_client or RemoteRegistryClient()
        self.scanner = scanner

    def compiler_ids(self) -> List[str]:
        raw = str(self.props.get("compilers", DEFAULT_COMPILERS) or "")
        ids = [item.strip() for item in raw.split(":") if item.strip()]

        ndk = self.props.get("androidNdk")
        if ndk:
            ids.extend(self.scanner(Path(str(ndk)) / "toolchains"))

        return ids

    def local_descriptor(self, compiler_id: str) -> CompilerDescriptor:
        """
        Raises:
            ConfigurationError: the version flag is not a valid shell word list.
        """
        exe = compiler_property(self.props, compiler_id, CompilerField.EXE)
        if not exe:
            # Resolved through PATH at execution time
            return CompilerDescriptor(id=compiler_id, name=compiler_id, exe=compiler_id)

        def prop(field: CompilerField):
            return compiler_property(self.props, compiler_id, field)

        version_flag = prop(CompilerField.VERSION_FLAG) or CompilerField.VERSION_FLAG.default
        try:
            shlex.split(version_flag)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid version flag for compiler '{compiler_id}': {version_flag!r} ({e})",
                key=CompilerField.VERSION_FLAG.key_for(compiler_id),
            ) from e

        return CompilerDescriptor(
            id=compiler_id,
            kind=ExecutionKind.LOCAL,
            name=prop(CompilerField.NAME) or compiler_id,
            exe=exe,
            version_flag=version_flag,
            alias=prop(CompilerField.ALIAS) or "",
            options=prop(CompilerField.OPTIONS) or "",
            post_process=prop(CompilerField.POST_PROCESS) or "",
            capabilities=CapabilityFlags(
                is_6g=prop(CompilerField.IS_6G),
                intel_asm=prop(CompilerField.INTEL_ASM) or "",
                needs_multi=prop(CompilerField.NEEDS_MULTI),
                supports_binary=prop(CompilerField.SUPPORTS_BINARY),
            ),
        )

    def _int_prop(self, key: str, default: int, minimum: int) -> int:
        raw = self.props.get(key, default)
        try:
            value = int(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{key} must be an integer, got {raw!r}", key=key) from e
        if value < minimum:
            raise ConfigurationError(f"{key} must be >= {minimum}, got {value}", key=key)
        return value

    def remote_source(self, endpoint: RemoteEndpoint) -> RemoteSource:
        """
        Raises:
            ConfigurationError: the retry policy is not a valid integer range.
        """
        return RemoteSource(
            endpoint=endpoint,
            max_attempts=self._int_prop("proxyRetries", DEFAULT_PROXY_RETRIES, minimum=1),
            interval_ms=self._int_prop("proxyRetryMs", DEFAULT_PROXY_RETRY_MS, minimum=0),
        )

    async def _resolve_local(self, compiler: CompilerDescriptor):
        return (compiler,), None

    async def _resolve_remote(self, source: RemoteSource):
        try:
            compilers = await self.remote_client.fetch_compilers(source)
        except RemoteFetchFailure as e:
            logger.error(f"Remote source {source.label} contributes no compilers: {e}")
            return (), e
        return compilers, None

    async def enumerate(self) -> Enumeration:
        """
        Resolve every configured spec concurrently.

        Remote failures are contained in their branch; configuration and
        scan errors propagate before any remote is contacted.
        """
        specs: Sequence[CompilerSpec] = [classify(i) for i in self.compiler_ids()]

        resolved: List[Union[CompilerDescriptor, RemoteSource]] = [
            self.remote_source(spec.endpoint) if isinstance(spec, RemoteSpec)
            else self.local_descriptor(spec.compiler_id)
            for spec in specs
        ]

        branches = [
            self._resolve_remote(item) if isinstance(item, RemoteSource) else self._resolve_local(item)
            for item in resolved
        ]
        results = await asyncio.gather(*branches)

        return Enumeration(
            contributions=tuple(compilers for compilers, _ in results),
            failures=tuple(failure for _, failure in results if failure is not None),
        )
