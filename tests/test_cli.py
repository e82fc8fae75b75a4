"""
Tests for the command line interface.
"""

import sys
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from compiler_fleet.cli.main import cli
from compiler_fleet.core.errors import ExitCode


def write_config(root: Path, group: str, level: str, values: dict) -> None:
    config_dir = root / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / f"{group}.{level}.yaml").write_text(yaml.safe_dump(values))


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    write_config(tmp_path, "c++", "defaults", {
        "compilers": "py",
        "compiler": {"py": {"exe": sys.executable, "name": "Python"}},
    })
    return tmp_path


def invoke(root: Path, *args: str):
    return CliRunner().invoke(cli, ["--root-dir", str(root), *args])


class TestDiscoverCommand:

    def test_table_output(self, root_dir: Path) -> None:
        result = invoke(root_dir, "discover")

        assert result.exit_code == 0, result.output
        assert "Compilers (1)" in result.output

    def test_json_output(self, root_dir: Path) -> None:
        result = invoke(root_dir, "discover", "--json")

        assert result.exit_code == 0, result.output
        assert '"id": "py"' in result.output
        assert '"failures": []' in result.output

    def test_env_level_overrides_defaults(self, root_dir: Path) -> None:
        write_config(root_dir, "c++", "ci", {"compiler": {"py": {"name": "CPython"}}})

        result = invoke(root_dir, "--env", "ci", "discover", "--json")

        assert result.exit_code == 0, result.output
        assert '"name": "CPython"' in result.output

    def test_empty_registry_exits_non_zero(self, tmp_path: Path) -> None:
        write_config(tmp_path, "fleet", "defaults", {"compilers": "no-such-compiler-on-path"})

        result = invoke(tmp_path, "discover")

        assert result.exit_code == 1
        assert "Compilers (0)" in result.output
        assert "Dropped:" in result.output

    def test_soft_allows_empty_registry(self, tmp_path: Path) -> None:
        write_config(tmp_path, "fleet", "defaults", {"compilers": "no-such-compiler-on-path"})

        result = invoke(tmp_path, "discover", "--soft")

        assert result.exit_code == 0, result.output

    def test_malformed_remote_is_config_error(self, tmp_path: Path) -> None:
        write_config(tmp_path, "fleet", "defaults", {"compilers": "host1@port"})

        result = invoke(tmp_path, "discover", "--json")

        assert result.exit_code == int(ExitCode.CONFIG_ERROR)
        assert '"code": "E1002"' in result.output

    def test_malformed_yaml_is_config_error(self, tmp_path: Path) -> None:
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "fleet.defaults.yaml").write_text("compilers: [unclosed\n")

        result = invoke(tmp_path, "discover")

        assert result.exit_code == int(ExitCode.CONFIG_ERROR)
        assert "Startup failed" in result.output

    def test_missing_ndk_is_scan_error(self, tmp_path: Path) -> None:
        write_config(tmp_path, "fleet", "defaults", {"compilers": "", "androidNdk": str(tmp_path / "no-ndk")})

        result = invoke(tmp_path, "discover")

        assert result.exit_code == int(ExitCode.SCAN_ERROR)


class TestCli:

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "compiler-fleet" in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "discover" in result.output
        assert "serve" in result.output


class TestUnexpectedErrors:

    def test_internal_error_exit_code(self, root_dir: Path, monkeypatch) -> None:
        from compiler_fleet.cli.commands import discover as discover_module

        def broken(props):
            raise RuntimeError("boom")

        monkeypatch.setattr(discover_module, "find_compilers", broken)

        result = invoke(root_dir, "discover", "--json")

        assert result.exit_code == int(ExitCode.INTERNAL_ERROR)
        assert '"code": "E9001"' in result.output


class TestServeCommand:

    def test_publishes_discovered_registry(self, root_dir: Path, monkeypatch) -> None:
        from compiler_fleet.cli.commands import serve as serve_module
        from compiler_fleet.server.app import REGISTRY_KEY

        started = {}

        def fake_run_app(app, host, port, print):
            started.update(app=app, host=host, port=port)

        monkeypatch.setattr(serve_module.web, "run_app", fake_run_app)

        result = invoke(root_dir, "serve", "--host", "127.0.0.1", "--port", "18080")

        assert result.exit_code == 0, result.output
        assert "Listening on http://127.0.0.1:18080/" in result.output
        assert started["port"] == 18080
        assert started["app"][REGISTRY_KEY].ids() == ("py",)

    def test_startup_failure_never_serves(self, tmp_path: Path, monkeypatch) -> None:
        from compiler_fleet.cli.commands import serve as serve_module

        calls = []
        monkeypatch.setattr(serve_module.web, "run_app", lambda *a, **kw: calls.append(a))
        write_config(tmp_path, "fleet", "defaults", {"compilers": "host1@"})

        result = invoke(tmp_path, "serve")

        assert result.exit_code == int(ExitCode.CONFIG_ERROR)
        assert calls == []

    def test_invalid_retry_policy_never_serves(self, tmp_path: Path, monkeypatch) -> None:
        from compiler_fleet.cli.commands import serve as serve_module

        calls = []
        monkeypatch.setattr(serve_module.web, "run_app", lambda *a, **kw: calls.append(a))
        write_config(tmp_path, "fleet", "defaults", {"compilers": "host1@9000", "proxyRetries": 0})

        result = invoke(tmp_path, "serve")

        assert result.exit_code == int(ExitCode.CONFIG_ERROR)
        assert calls == []
