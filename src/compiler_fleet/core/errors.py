"""
Compiler Fleet Error System

Design goals:
- Single canonical error code namespace (E#### format only)
- Explicit category per error (not prefix-derived)
- Stable exit codes for the CLI
- Machine-safe formatting (no emoji, no decoration)
- Structured details dict
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------
# Exit Codes (Process-Level Contract)
# ---------------------------------------------------------------------

class ExitCode(int, Enum):
    """
    Stable process exit codes.
    These values are part of the public CLI contract.
    """
    OK = 0

    CONFIG_ERROR = 10
    SCAN_ERROR = 11
    PROBE_ERROR = 12
    REMOTE_ERROR = 13

    INTERNAL_ERROR = 99


# ---------------------------------------------------------------------
# Error Categories (Explicit, Not Derived)
# ---------------------------------------------------------------------

class ErrorCategory(str, Enum):
    CONFIG = "config_error"
    ENVIRONMENT = "env_error"
    COMPILER = "compiler_error"
    NETWORK = "network_error"
    INTERNAL = "internal_error"


# ---------------------------------------------------------------------
# Canonical Error Codes (Single Namespace)
# ---------------------------------------------------------------------

class ErrorCode(str, Enum):
    # 1xxx – Configuration
    INVALID_CONFIG = "E1001"
    INVALID_REMOTE_SPEC = "E1002"

    # 2xxx – Filesystem / Environment
    TOOLCHAIN_SCAN_FAILED = "E2001"

    # 3xxx – Local compilers
    PROBE_FAILED = "E3001"

    # 4xxx – Remote pools
    REMOTE_FETCH_FAILED = "E4001"

    # 9xxx – Internal
    INTERNAL_ERROR = "E9001"


# ---------------------------------------------------------------------
# Base Error
# ---------------------------------------------------------------------

@dataclass(eq=False)
class FleetError(Exception):
    """
    Base class for all compiler fleet errors.

    Invariants:
    - error_code is immutable
    - category is explicit
    - exit_code is explicit
    """

    message: str
    error_code: ErrorCode
    category: ErrorCategory
    exit_code: ExitCode
    stage: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not isinstance(self.error_code, ErrorCode):
            raise TypeError("error_code must be an ErrorCode enum")

        if not isinstance(self.category, ErrorCategory):
            raise TypeError("category must be an ErrorCategory enum")

        if not isinstance(self.exit_code, ExitCode):
            raise TypeError("exit_code must be an ExitCode enum")

        self.context = self.context or {}
        self.details = self.details or {}

        super().__init__(self.message)

    # -----------------------------------------------------------------
    # Structured Output
    # -----------------------------------------------------------------

    def to_json(self) -> Dict[str, Any]:
        """
        JSON-safe representation for CLI output.
        """
        return {
            "code": self.error_code.value,
            "category": self.category.value,
            "message": self.message,
            "stage": self.stage,
            "context": self.context,
            "details": self.details,
        }

    def format(self) -> str:
        """
        Plain multi-line representation.
        """
        lines = [
            f"{self.__class__.__name__}: {self.message}",
            f"  code: {self.error_code.value}",
            f"  category: {self.category.value}",
        ]

        if self.stage:
            lines.append(f"  stage: {self.stage}")

        if self.context:
            lines.append("  context:")
            for k, v in self.context.items():
                lines.append(f"    {k}: {v}")

        if self.details:
            lines.append("  details:")
            for k, v in self.details.items():
                lines.append(f"    {k}: {v}")

        return "\n".join(lines)


# ---------------------------------------------------------------------
# Domain-Specific Errors
# ---------------------------------------------------------------------

class ConfigurationError(FleetError):
    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.INVALID_CONFIG),
            category=ErrorCategory.CONFIG,
            exit_code=ExitCode.CONFIG_ERROR,
            stage="configuration",
            context={"key": key} if key else None,
            **kwargs,
        )


class ScanFailure(FleetError):
    def __init__(self, message: str, root: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.TOOLCHAIN_SCAN_FAILED,
            category=ErrorCategory.ENVIRONMENT,
            exit_code=ExitCode.SCAN_ERROR,
            stage="toolchain_scan",
            context={"root": root} if root else None,
            **kwargs,
        )


class ProbeFailure(FleetError):
    def __init__(self, message: str, compiler_id: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.PROBE_FAILED,
            category=ErrorCategory.COMPILER,
            exit_code=ExitCode.PROBE_ERROR,
            stage="probe",
            context={"compiler_id": compiler_id} if compiler_id else None,
            **kwargs,
        )


class RemoteFetchFailure(FleetError):
    def __init__(self, message: str, remote: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.REMOTE_FETCH_FAILED,
            category=ErrorCategory.NETWORK,
            exit_code=ExitCode.REMOTE_ERROR,
            stage="remote_fetch",
            context={"remote": remote} if remote else None,
            **kwargs,
        )


class InternalError(FleetError):
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INTERNAL_ERROR,
            category=ErrorCategory.INTERNAL,
            exit_code=ExitCode.INTERNAL_ERROR,
            **kwargs,
        )


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

__all__ = [
    "ExitCode",
    "ErrorCategory",
    "ErrorCode",
    "FleetError",
    "ConfigurationError",
    "ScanFailure",
    "ProbeFailure",
    "RemoteFetchFailure",
    "InternalError",
]
