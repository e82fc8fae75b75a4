"""
Shared pytest fixtures for compiler fleet tests.
"""

import asyncio
from typing import Any, Dict, List, Optional, Union

import pytest

from compiler_fleet.core.types import RemoteEndpoint
from compiler_fleet.discovery.prober import ProcessResult, ProcessRunner
from compiler_fleet.discovery.remote import CompilerListFetcher


class DictProps:
    """Flat in-memory property source."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


Reply = Union[ProcessResult, BaseException]


class FakeProcessRunner(ProcessRunner):
    """
    Replies keyed by (exe, first argument).

    A missing reply behaves like a missing executable.
    """

    def __init__(self, replies: Optional[Dict[tuple, Reply]] = None):
        self.replies = dict(replies or {})
        self.calls: List[List[str]] = []

    def add(self, exe: str, arg: str, output: str = "", returncode: int = 0) -> None:
        self.replies[(exe, arg)] = ProcessResult(returncode=returncode, output=output)

    def fail(self, exe: str, arg: str, error: BaseException) -> None:
        self.replies[(exe, arg)] = error

    async def run(self, argv: List[str], timeout: float) -> ProcessResult:
        self.calls.append(list(argv))
        await asyncio.sleep(0)
        reply = self.replies.get((argv[0], argv[1] if len(argv) > 1 else ""))
        if reply is None:
            raise FileNotFoundError(2, "No such file or directory", argv[0])
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeCompilerListFetcher(CompilerListFetcher):
    """
    Serves scripted responses per endpoint label ("host:port").

    Each script is a list consumed one item per attempt; exceptions are
    raised, lists are returned. The last item repeats once the script is
    exhausted.
    """

    def __init__(self, scripts: Optional[Dict[str, list]] = None):
        self.scripts = {k: list(v) for k, v in (scripts or {}).items()}
        self.calls: List[str] = []

    async def fetch(self, endpoint: RemoteEndpoint) -> List[Dict[str, Any]]:
        self.calls.append(endpoint.label)
        await asyncio.sleep(0)
        script = self.scripts.get(endpoint.label)
        if not script:
            raise ConnectionRefusedError(f"connection refused: {endpoint.label}")
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, BaseException):
            raise item
        return [dict(entry) for entry in item]


class RecordingSleep:
    """Timer stand-in that records requested delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def fetcher() -> FakeCompilerListFetcher:
    return FakeCompilerListFetcher()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def ndk_root(tmp_path):
    """
    Vendor NDK layout:
        toolchains/arm-linux-androideabi-4.9  -> has g++
        toolchains/aarch64-linux-android-4.9  -> has g++ (two candidates)
        toolchains/llvm                       -> bin dir without g++
        toolchains/x86-4.9                    -> no prebuilt dir
    """
    toolchains = tmp_path / "ndk" / "toolchains"

    arm_bin = toolchains / "arm-linux-androideabi-4.9" / "prebuilt" / "linux-x86_64" / "bin"
    arm_bin.mkdir(parents=True)
    (arm_bin / "arm-linux-androideabi-gcc").touch()
    (arm_bin / "arm-linux-androideabi-g++").touch()

    aarch64_bin = toolchains / "aarch64-linux-android-4.9" / "prebuilt" / "linux-x86_64" / "bin"
    aarch64_bin.mkdir(parents=True)
    (aarch64_bin / "aarch64-linux-android-g++").touch()
    (aarch64_bin / "aarch64-linux-android-g++-4.9").touch()

    llvm_bin = toolchains / "llvm" / "prebuilt" / "linux-x86_64" / "bin"
    llvm_bin.mkdir(parents=True)
    (llvm_bin / "clang").touch()

    (toolchains / "x86-4.9").mkdir()
    (toolchains / "README").write_text("not a toolchain\n")

    return tmp_path / "ndk"


@pytest.fixture
def make_props():
    return DictProps
