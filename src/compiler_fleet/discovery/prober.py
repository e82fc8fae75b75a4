"""
Capability probing of local compilers.

Each compiler is run out-of-process twice at most:
1. ``<exe> <versionFlag>``  -> first output line becomes the version
2. ``<exe> --target-help``  -> flag listing used to detect Intel asm support

A compiler that cannot run its version command is discarded. A failing
flag listing only skips dialect detection.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import List, Optional, Set

from ..core.errors import ProbeFailure
from ..core.types import DEFAULT_VERSION_FLAG, CompilerDescriptor, ProbeOutcome

logger = logging.getLogger(__name__)

TARGET_HELP_FLAG = "--target-help"
INTEL_ASM_OPTION = "-masm"
INTEL_ASM_FLAG = "-masm=intel"
DEFAULT_PROBE_TIMEOUT_SECS = 30.0

FLAG_PATTERN = re.compile(r"--?[-a-zA-Z]+( ?[-a-zA-Z]+)")


# ============================================================
# Process execution
# ============================================================

@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    output: str                             # stdout and stderr, interleaved

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(ABC):
    """Runs one command to completion."""

    @abstractmethod
    async def run(self, argv: List[str], timeout: float) -> ProcessResult:
        """
        Raises:
            OSError: the executable could not be spawned.
            asyncio.TimeoutError: the command outlived ``timeout``.
        """
        raise NotImplementedError


class AsyncProcessRunner(ProcessRunner):
    """asyncio subprocess implementation."""

    async def run(self, argv: List[str], timeout: float) -> ProcessResult:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise

        return ProcessResult(
            returncode=proc.returncode,
            output=stdout.decode("utf-8", errors="replace"),
        )


# ============================================================
# Output parsing
# ============================================================

def first_line(output: str) -> str:
    return output.split("\n", 1)[0].rstrip("\r")


def parse_flags(output: str) -> Set[str]:
    """Collect the first flag-like token of every line."""
    flags: Set[str] = set()
    for line in output.splitlines():
        match = FLAG_PATTERN.search(line)
        if match:
            flags.add(match.group(0))
    return flags


# ============================================================
# Prober
# ============================================================

class CapabilityProber:
    """
    Learns version and assembler dialect support of local compilers.
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        timeout: float = DEFAULT_PROBE_TIMEOUT_SECS,
    ):
        self.runner = runner or AsyncProcessRunner()
        self.timeout = timeout

    async def _run(self, compiler: CompilerDescriptor, args: List[str]) -> ProcessResult:
        argv = [compiler.exe, *args]
        try:
            result = await self.runner.run(argv, self.timeout)
        except asyncio.TimeoutError as e:
            raise ProbeFailure(
                f"{compiler.exe} timed out after {self.timeout:g}s",
                compiler_id=compiler.id,
                details={"argv": argv},
            ) from e
        except OSError as e:
            raise ProbeFailure(
                f"Cannot execute {compiler.exe}: {e}",
                compiler_id=compiler.id,
                details={"argv": argv},
            ) from e

        if not result.ok:
            raise ProbeFailure(
                f"{' '.join(argv)} exited with status {result.returncode}",
                compiler_id=compiler.id,
                details={"argv": argv, "output": first_line(result.output)},
            )
        return result

    async def probe(self, compiler: CompilerDescriptor) -> ProbeOutcome:
        if not compiler.is_local:
            raise ValueError(f"Cannot probe remote compiler '{compiler.id}'")

        version_args = shlex.split(compiler.version_flag or DEFAULT_VERSION_FLAG)
        try:
            result = await self._run(compiler, version_args)
        except ProbeFailure as e:
            logger.warning(f"Dropping compiler {compiler.id}: {e}")
            return ProbeOutcome.discarded(compiler.id, e)

        probed = replace(compiler, version=first_line(result.output))

        if probed.capabilities.intel_asm:
            return ProbeOutcome.probed(probed)

        try:
            help_result = await self._run(compiler, [TARGET_HELP_FLAG])
        except ProbeFailure as e:
            logger.debug(f"No target help for {compiler.id}: {e}")
            return ProbeOutcome.probed(probed)

        if INTEL_ASM_OPTION in parse_flags(help_result.output):
            probed = replace(
                probed,
                capabilities=replace(probed.capabilities, intel_asm=INTEL_ASM_FLAG),
            )

        return ProbeOutcome.probed(probed)
