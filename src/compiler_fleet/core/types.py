from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError, ErrorCode, ProbeFailure, RemoteFetchFailure


DEFAULT_VERSION_FLAG = "--version"


# -----------------------------
# Enums
# -----------------------------
class ExecutionKind(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


# -----------------------------
# Value Types
# -----------------------------
@dataclass(frozen=True)
class RemoteEndpoint:
    """A remote compiler pool reachable over HTTP."""
    host: str
    port: int

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def label(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, spec: str) -> "RemoteEndpoint":
        """Parse a ``host@port`` compiler identifier."""
        host, sep, port_text = spec.partition("@")
        host = host.strip()
        port_text = port_text.strip()

        if not sep or not host:
            raise ConfigurationError(
                f"Invalid remote compiler spec '{spec}': expected host@port",
                key="compilers",
                error_code=ErrorCode.INVALID_REMOTE_SPEC,
            )

        try:
            port = int(port_text)
        except ValueError:
            raise ConfigurationError(
                f"Invalid port in remote compiler spec '{spec}'",
                key="compilers",
                error_code=ErrorCode.INVALID_REMOTE_SPEC,
            ) from None

        if not 0 < port < 65536:
            raise ConfigurationError(
                f"Port out of range in remote compiler spec '{spec}'",
                key="compilers",
                error_code=ErrorCode.INVALID_REMOTE_SPEC,
            )

        return cls(host=host, port=port)


@dataclass(frozen=True)
class CapabilityFlags:
    """Runtime capabilities consumed by the compile-execution layer."""
    is_6g: bool = False
    intel_asm: str = ""                     # assembler-dialect flag, e.g. '-masm=intel'
    needs_multi: bool = True
    supports_binary: bool = True


# -----------------------------
# Core Data Types
# -----------------------------
@dataclass(frozen=True)
class CompilerDescriptor:
    """
    One entry of the compiler registry.

    Local descriptors carry an executable path and get their version by
    probing. Remote descriptors carry the endpoint of the pool that owns
    them and are never executed by this process.
    """
    id: str
    kind: ExecutionKind = ExecutionKind.LOCAL
    name: str = ""
    exe: Optional[str] = None
    version_flag: str = DEFAULT_VERSION_FLAG
    version: Optional[str] = None
    remote: Optional[RemoteEndpoint] = None

    # Opaque pass-through for the execution layer
    alias: str = ""
    options: str = ""
    post_process: str = ""

    capabilities: CapabilityFlags = field(default_factory=CapabilityFlags)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Compiler descriptor requires a non-empty id")

        if not self.name:
            object.__setattr__(self, "name", self.id)

        if self.kind is ExecutionKind.LOCAL:
            if not self.exe:
                raise ValueError(f"Local compiler '{self.id}' requires an executable path")
            if self.remote is not None:
                raise ValueError(f"Local compiler '{self.id}' cannot define a remote endpoint")

        if self.kind is ExecutionKind.REMOTE:
            if self.remote is None:
                raise ValueError(f"Remote compiler '{self.id}' requires a remote endpoint")
            if self.exe is not None:
                raise ValueError(f"Remote compiler '{self.id}' cannot define an executable path")

    @property
    def is_local(self) -> bool:
        return self.kind is ExecutionKind.LOCAL

    @property
    def origin(self) -> str:
        """Executable path for local compilers, pool URL for remote ones."""
        if self.remote is not None:
            return self.remote.url
        return self.exe or ""

    # ----------------------------
    # Wire format
    # ----------------------------

    def to_json(self) -> Dict[str, Any]:
        """
        Wire representation served on /api/compilers.

        Field names are shared with every other instance of the fleet.
        """
        data = {
            "id": self.id,
            "name": self.name,
            "exe": self.exe,
            "alias": self.alias,
            "options": self.options,
            "versionFlag": self.version_flag,
            "is6g": self.capabilities.is_6g,
            "intelAsm": self.capabilities.intel_asm,
            "needsMulti": self.capabilities.needs_multi,
            "supportsBinary": self.capabilities.supports_binary,
            "postProcess": self.post_process,
        }

        if self.version is not None:
            data["version"] = self.version
        if self.remote is not None:
            data["remote"] = self.remote.url

        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any], endpoint: RemoteEndpoint) -> "CompilerDescriptor":
        """
        Build a remote descriptor from one entry of a pool's compiler list.

        Any executable path in the payload is discarded.
        """
        version = data.get("version")
        return cls(
            id=str(data["id"]),
            kind=ExecutionKind.REMOTE,
            name=str(data.get("name") or ""),
            exe=None,
            version_flag=str(data.get("versionFlag") or DEFAULT_VERSION_FLAG),
            version=str(version) if version is not None else None,
            remote=endpoint,
            alias=str(data.get("alias") or ""),
            options=str(data.get("options") or ""),
            post_process=str(data.get("postProcess") or ""),
            capabilities=CapabilityFlags(
                is_6g=bool(data.get("is6g", False)),
                intel_asm=str(data.get("intelAsm") or ""),
                needs_multi=bool(data.get("needsMulti", True)),
                supports_binary=bool(data.get("supportsBinary", True)),
            ),
        )


@dataclass(frozen=True)
class RemoteSource:
    """A pending fetch target. Lives only for the duration of its fetch."""
    endpoint: RemoteEndpoint
    max_attempts: int = 20
    interval_ms: int = 500

    @property
    def label(self) -> str:
        return self.endpoint.label


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of probing one local compiler: probed, or discarded with a reason."""
    compiler_id: str
    descriptor: Optional[CompilerDescriptor] = None
    failure: Optional[ProbeFailure] = None

    @classmethod
    def probed(cls, descriptor: CompilerDescriptor) -> "ProbeOutcome":
        return cls(compiler_id=descriptor.id, descriptor=descriptor)

    @classmethod
    def discarded(cls, compiler_id: str, failure: ProbeFailure) -> "ProbeOutcome":
        return cls(compiler_id=compiler_id, failure=failure)

    @property
    def is_probed(self) -> bool:
        return self.descriptor is not None


BranchFailure = Union[ProbeFailure, RemoteFetchFailure]


# -----------------------------
# Registry
# -----------------------------
class CompilerRegistry:
    """
    Immutable, name-sorted snapshot of every discovered compiler.

    Built once at startup and shared by reference with every reader.
    """

    __slots__ = ("_compilers", "_by_id")

    def __init__(self, compilers: Sequence[CompilerDescriptor] = ()):
        # sorted() is stable: equal names keep enumeration order
        ordered = tuple(sorted(compilers, key=lambda c: c.name))
        by_id: Dict[str, CompilerDescriptor] = {}
        for compiler in ordered:
            if compiler.id in by_id:
                raise ValueError(f"Duplicate compiler id in registry: '{compiler.id}'")
            by_id[compiler.id] = compiler

        object.__setattr__(self, "_compilers", ordered)
        object.__setattr__(self, "_by_id", by_id)

    def __setattr__(self, name, value):
        raise AttributeError("CompilerRegistry is immutable")

    def __len__(self) -> int:
        return len(self._compilers)

    def __iter__(self) -> Iterator[CompilerDescriptor]:
        return iter(self._compilers)

    def __getitem__(self, index: int) -> CompilerDescriptor:
        return self._compilers[index]

    def __contains__(self, compiler_id: object) -> bool:
        return compiler_id in self._by_id

    def __repr__(self) -> str:
        return f"CompilerRegistry({list(self.ids())!r})"

    @property
    def compilers(self) -> Tuple[CompilerDescriptor, ...]:
        return self._compilers

    def get(self, compiler_id: str) -> Optional[CompilerDescriptor]:
        return self._by_id.get(compiler_id)

    def ids(self) -> Tuple[str, ...]:
        return tuple(c.id for c in self._compilers)

    def local(self) -> Tuple[CompilerDescriptor, ...]:
        return tuple(c for c in self._compilers if c.is_local)

    def remote(self) -> Tuple[CompilerDescriptor, ...]:
        return tuple(c for c in self._compilers if not c.is_local)

    def to_json(self) -> List[Dict[str, Any]]:
        return [c.to_json() for c in self._compilers]


@dataclass(frozen=True)
class FleetReport:
    """Outcome of fleet assembly: the published registry and what was dropped."""
    registry: CompilerRegistry
    failures: Tuple[BranchFailure, ...] = ()
    duplicates: Tuple[str, ...] = ()

    def to_json(self) -> Dict[str, Any]:
        return {
            "compilers": self.registry.to_json(),
            "failures": [f.to_json() for f in self.failures],
            "duplicates": list(self.duplicates),
        }
