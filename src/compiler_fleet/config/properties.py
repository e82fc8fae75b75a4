"""
Hierarchical property configuration.

Design goals:
- Layered lookup (defaults < environment < language < host)
- Plain YAML on disk, one flat or nested mapping per file
- Read-only after load
- Clear separation of concerns
"""

from __future__ import annotations

import logging
import socket
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Property group holding fleet-wide settings; language groups are named
# after the lower-cased language (e.g. 'c++').
GLOBAL_GROUP = "fleet"

_MISSING = object()


# ================================
# Hierarchy
# ================================


def build_hierarchy(
    envs: Sequence[str],
    language: str,
    hostname: Optional[str] = None,
) -> List[str]:
    """
    Levels searched for every group, lowest precedence first.
    """
    return ["defaults", *envs, language, hostname or socket.gethostname()]


def _flatten(data: Dict[Any, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


# ================================
# Lookup
# ================================


class Properties:
    """
    Immutable key/value view of one property group.
    """

    def __init__(self, group: str, values: Dict[str, Any], debug: bool = False):
        self.group = group
        self._values = dict(values)
        self.debug = debug

    def get(self, key: str, default: Any = None) -> Any:
        value = self._values.get(key, _MISSING)
        if self.debug:
            shown = default if value is _MISSING else value
            logger.debug(f"[{self.group}] {key} -> {shown!r}")
        if value is _MISSING:
            return default
        return value

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def keys(self) -> Iterable[str]:
        return self._values.keys()


class CompilerProperties:
    """
    Language-scoped lookup with fallback to fleet-wide settings.
    """

    def __init__(self, language_props: Properties, global_props: Properties):
        self.language_props = language_props
        self.global_props = global_props

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.language_props:
            return self.language_props.get(key)
        return self.global_props.get(key, default)


# ================================
# Repository Layer
# ================================


class PropertyRepository:
    """
    Loads ``<group>.<level>.yaml`` files from one config directory.
    """

    SUFFIX = ".yaml"

    def __init__(
        self,
        config_dir: Path,
        hierarchy: Sequence[str],
        debug: bool = False,
    ):
        self.config_dir = Path(config_dir)
        self.hierarchy = list(hierarchy)
        self.debug = debug
        self._cache: Dict[str, Properties] = {}

    def _load_file(self, path: Path) -> Dict[str, Any]:
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML configuration: {path}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file: {path}") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {path}")
        return _flatten(raw)

    def props_for(self, group: str) -> Properties:
        if group in self._cache:
            return self._cache[group]

        values: Dict[str, Any] = {}
        for level in self.hierarchy:
            path = self.config_dir / f"{group}.{level}{self.SUFFIX}"
            if not path.is_file():
                continue
            logger.debug(f"Loading properties from {path}")
            values.update(self._load_file(path))

        props = Properties(group, values, debug=self.debug)
        self._cache[group] = props
        return props

    def compiler_props(self, language: str) -> CompilerProperties:
        return CompilerProperties(
            language_props=self.props_for(language.lower()),
            global_props=self.props_for(GLOBAL_GROUP),
        )
