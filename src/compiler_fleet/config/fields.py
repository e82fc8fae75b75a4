"""
Typed lookup of per-compiler settings.

Every per-compiler key is ``compiler.<id>.<field>`` with a fallback to the
bare ``<field>``; the key strings are only ever built here.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol


class PropertySource(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


class CompilerField(Enum):
    """Known per-compiler fields: (property name, default, is boolean)."""

    EXE = ("exe", "", False)
    NAME = ("name", None, False)
    ALIAS = ("alias", "", False)
    OPTIONS = ("options", "", False)
    VERSION_FLAG = ("versionFlag", "--version", False)
    IS_6G = ("is6g", False, True)
    INTEL_ASM = ("intelAsm", "", False)
    NEEDS_MULTI = ("needsMulti", True, True)
    SUPPORTS_BINARY = ("supportsBinary", True, True)
    POST_PROCESS = ("postProcess", "", False)

    def __init__(self, prop: str, default: Any, is_bool: bool):
        self.prop = prop
        self.default = default
        self.is_bool = is_bool

    def key_for(self, compiler_id: str) -> str:
        return f"compiler.{compiler_id}.{self.prop}"


def compiler_property(props: PropertySource, compiler_id: str, field: CompilerField) -> Any:
    """Resolve ``field`` for one compiler: scoped key, then bare key, then default."""
    if field is CompilerField.EXE:
        # No bare fallback: an empty exe means "resolve the id on PATH"
        value = props.get(field.key_for(compiler_id), field.default)
    else:
        value = props.get(field.key_for(compiler_id), props.get(field.prop, field.default))

    if field.is_bool:
        return as_bool(value)
    if value is None:
        return None
    return str(value)
