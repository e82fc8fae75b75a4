"""
Toolchain discovery for vendor NDK style layouts.

A toolchain is any immediate subdirectory of the scanned root that ships a
compiler binary under ``prebuilt/linux-x86_64/bin``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..core.errors import ScanFailure

logger = logging.getLogger(__name__)

PREBUILT_BIN = Path("prebuilt") / "linux-x86_64" / "bin"
DEFAULT_MARKER = "g++"


def _find_compiler(bin_dir: Path, marker: str) -> Optional[Path]:
    matches = sorted(p.name for p in bin_dir.iterdir() if marker in p.name)
    if not matches:
        return None
    return bin_dir / matches[0]


def scan_toolchains(root: Union[str, Path], marker: str = DEFAULT_MARKER) -> List[str]:
    """
    Return the absolute compiler path of every toolchain under ``root``.

    Toolchains are visited in name order so repeated scans of an unchanged
    tree give identical results. Toolchains without a matching binary are
    left out.

    Raises:
        ScanFailure: the root or a toolchain directory cannot be read.
    """
    root = Path(root)

    try:
        toolchains = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError as e:
        raise ScanFailure(f"Cannot list toolchain root {root}: {e}", root=str(root)) from e

    found: List[str] = []
    for toolchain in toolchains:
        bin_dir = toolchain / PREBUILT_BIN
        if not bin_dir.is_dir():
            logger.debug(f"Skipping toolchain {toolchain.name}: no {PREBUILT_BIN}")
            continue

        try:
            compiler = _find_compiler(bin_dir, marker)
        except OSError as e:
            raise ScanFailure(f"Cannot list {bin_dir}: {e}", root=str(root)) from e

        if compiler is None:
            logger.debug(f"Skipping toolchain {toolchain.name}: no '{marker}' binary")
            continue

        found.append(str(compiler.absolute()))

    logger.info(f"Found {len(found)} toolchain(s) under {root}")
    return found
