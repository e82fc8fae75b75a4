"""
Remote compiler pools.

Other instances of the fleet publish their registry on ``GET /api/compilers``.
Fetched entries become remote descriptors: they keep the pool's metadata and
capability flags, lose any executable path, and are never probed here.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ..core.errors import RemoteFetchFailure
from ..core.types import CompilerDescriptor, RemoteEndpoint, RemoteSource
from .retry import Sleep, retry

logger = logging.getLogger(__name__)

COMPILERS_PATH = "/api/compilers"
DEFAULT_TIMEOUT_SECS = 10.0


# ============================================================
# Transport
# ============================================================

class CompilerListFetcher(ABC):
    """Fetches the raw compiler list of one remote pool."""

    @abstractmethod
    async def fetch(self, endpoint: RemoteEndpoint) -> List[Dict[str, Any]]:
        """
        Return the decoded JSON array served by the pool.

        Raises on network errors, non-2xx responses and malformed bodies.
        """
        raise NotImplementedError


class HttpCompilerListFetcher(CompilerListFetcher):
    """aiohttp implementation; one short-lived session per request."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECS):
        self.timeout = timeout

    async def fetch(self, endpoint: RemoteEndpoint) -> List[Dict[str, Any]]:
        url = f"{endpoint.url}{COMPILERS_PATH}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, raise_for_status=True) as response:
                payload = await response.json(content_type=None)

        if not isinstance(payload, list):
            raise ValueError(f"Expected a JSON array from {url}, got {type(payload).__name__}")
        return payload


# ============================================================
# Client
# ============================================================

def parse_compiler_list(
    payload: List[Any],
    endpoint: RemoteEndpoint,
) -> Tuple[CompilerDescriptor, ...]:
    """Turn a pool's compiler list into remote descriptors, skipping bad entries."""
    descriptors: List[CompilerDescriptor] = []
    for entry in payload:
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.warning(f"Ignoring compiler entry without id from {endpoint.label}: {entry!r}")
            continue
        descriptors.append(CompilerDescriptor.from_json(entry, endpoint))
    return tuple(descriptors)


class RemoteRegistryClient:
    """
    Pulls compiler lists from remote pools with fixed-interval retry.
    """

    def __init__(
        self,
        fetcher: Optional[CompilerListFetcher] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.fetcher = fetcher or HttpCompilerListFetcher()
        self.sleep = sleep

    async def _attempt(self, endpoint: RemoteEndpoint) -> Tuple[CompilerDescriptor, ...]:
        payload = await self.fetcher.fetch(endpoint)
        return parse_compiler_list(payload, endpoint)

    async def fetch_compilers(self, source: RemoteSource) -> Tuple[CompilerDescriptor, ...]:
        """
        Fetch and tag the compilers of one pool.

        Raises:
            RemoteFetchFailure: every attempt failed.
        """
        endpoint = source.endpoint
        logger.info(f"Fetching compilers from remote source {source.label}")

        try:
            compilers = await retry(
                lambda: self._attempt(endpoint),
                source.label,
                source.max_attempts,
                source.interval_ms,
                sleep=self.sleep,
            )
        except Exception as e:
            raise RemoteFetchFailure(
                f"Could not fetch compilers from {source.label} after "
                f"{source.max_attempts} attempt(s): {e}",
                remote=endpoint.url,
                details={"attempts": source.max_attempts, "last_error": repr(e)},
            ) from e

        logger.info(f"Remote source {source.label} provided {len(compilers)} compiler(s)")
        return compilers
