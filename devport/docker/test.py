"""Tests for Docker module."""

from pathlib import Path

import pytest

from devport.errors import PortExhaustedError
from devport.ports import PortAssignment, Tier
from devport.ports import lib as ports_lib

from . import cli
from .lib import (
    PORT_ENV_VAR,
    build_compose_command,
    get_compose_files,
    list_modes,
)


@pytest.fixture
def project(tmp_path, monkeypatch) -> Path:
    """Project directory with a base compose file and a dev overlay."""
    for var in ("DEV_COMPOSE_PROJECT", "DEV_PORT", "DEV_PORT_FILE"):
        monkeypatch.delenv(var, raising=False)
    root = tmp_path / "shop"
    root.mkdir()
    (root / "docker-compose.yml").write_text("services: {}\n")
    (root / "docker-compose.dev.yml").write_text("services: {}\n")
    return root


@pytest.fixture
def calls(monkeypatch) -> list[dict]:
    """Capture subprocess.call invocations from the CLI."""
    recorded: list[dict] = []

    def fake_call(cmd, cwd=None, env=None):
        recorded.append({"cmd": cmd, "cwd": cwd, "env": env})
        return 0

    monkeypatch.setattr(cli.subprocess, "call", fake_call)
    return recorded


# =============================================================================
# Library
# =============================================================================


@pytest.mark.unit
class TestGetComposeFiles:
    """Test compose file discovery."""

    def test_base_and_dev_overlay(self, project) -> None:
        """Dev mode returns the base file then the dev overlay."""
        files = get_compose_files(project)
        assert files == [project / "docker-compose.yml", project / "docker-compose.dev.yml"]

    def test_base_mode_skips_overlay(self, project) -> None:
        """Base mode returns only the base file."""
        assert get_compose_files(project, mode="base") == [project / "docker-compose.yml"]

    def test_missing_overlay_is_optional(self, project) -> None:
        """Production mode without an overlay still works."""
        files = get_compose_files(project, mode="production")
        assert files == [project / "docker-compose.yml"]

    def test_prefers_compose_yaml(self, project) -> None:
        """compose.yaml wins over docker-compose.yml."""
        (project / "compose.yaml").write_text("services: {}\n")
        assert get_compose_files(project, mode="base") == [project / "compose.yaml"]

    def test_no_base_file_raises(self, tmp_path) -> None:
        """A directory without compose files is rejected."""
        with pytest.raises(ValueError, match="No compose file"):
            get_compose_files(tmp_path)

    def test_invalid_mode_raises(self, project) -> None:
        """Unknown modes are rejected."""
        with pytest.raises(ValueError, match="Invalid mode"):
            get_compose_files(project, mode="staging")

    def test_list_modes(self) -> None:
        assert list_modes() == ["base", "dev", "production"]


@pytest.mark.unit
class TestBuildComposeCommand:
    """Test compose command construction."""

    def test_pins_project_and_files(self) -> None:
        cmd = build_compose_command(
            "shop", [Path("a.yml"), Path("b.yml")], ["up", "-d"]
        )
        assert cmd == [
            "docker", "compose", "-p", "shop", "-f", "a.yml", "-f", "b.yml", "up", "-d",
        ]

    def test_without_files(self) -> None:
        assert build_compose_command("shop", [], ["ps"]) == [
            "docker", "compose", "-p", "shop", "ps",
        ]


# =============================================================================
# CLI
# =============================================================================


@pytest.mark.unit
class TestDockerCli:
    """Test the docker command group."""

    def test_no_args_prints_help(self, capsys) -> None:
        assert cli.handle_docker_command([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_up_passes_resolved_port(self, project, calls, monkeypatch) -> None:
        """up resolves the port and exports it as PORT."""
        monkeypatch.setattr(ports_lib.shutil, "which", lambda name: f"/usr/bin/{name}")

        def fake_resolve(context, session=None, probe=None, store=None):
            assert context.working_directory == project
            assert session.project_name == "shop"
            return PortAssignment(
                port=3004, tier=Tier.RECLAIM, record_path=context.record_path
            )

        monkeypatch.setattr(cli, "resolve_port", fake_resolve)

        code = cli.handle_docker_command(["--dir", str(project), "up", "-d"])

        assert code == 0
        assert len(calls) == 1
        assert calls[0]["cmd"][:4] == ["docker", "compose", "-p", "shop"]
        assert calls[0]["cmd"][-2:] == ["up", "-d"]
        assert calls[0]["env"][PORT_ENV_VAR] == "3004"
        assert calls[0]["cwd"] == project

    def test_up_survives_unreadable_gitignore(self, project, calls, monkeypatch) -> None:
        """A broken .gitignore is logged; compose still starts with the port."""
        (project / ".gitignore").write_bytes(b"\xff\xfe\x00bad\n")

        def fake_resolve(context, session=None, probe=None, store=None):
            return PortAssignment(
                port=3001, tier=Tier.SCAN, record_path=context.record_path
            )

        monkeypatch.setattr(cli, "resolve_port", fake_resolve)

        assert cli.handle_docker_command(["--dir", str(project), "up"]) == 0
        assert calls[0]["env"][PORT_ENV_VAR] == "3001"

    def test_up_exhaustion_fails_without_compose(self, project, calls, monkeypatch) -> None:
        """A resolution failure stops before docker compose runs."""

        def fake_resolve(context, session=None, probe=None, store=None):
            raise PortExhaustedError(3000, 20)

        monkeypatch.setattr(cli, "resolve_port", fake_resolve)

        assert cli.handle_docker_command(["--dir", str(project), "up"]) == 1
        assert calls == []

    def test_up_dry_run_uses_sticky_record(self, project, calls) -> None:
        """Dry runs preview the recorded port and run nothing."""
        (project / ".dev-port").write_text("4010\n")
        code = cli.handle_docker_command(["--dir", str(project), "--dry-run", "up"])
        assert code == 0
        assert calls == []
        assert cli._preview_port(
            cli.argparse.Namespace(dir=project, base_port=None)
        ) == 4010

    def test_preview_falls_back_to_base_port(self, project) -> None:
        args = cli.argparse.Namespace(dir=project, base_port=None)
        assert cli._preview_port(args) == 3000

    def test_down_flags(self, project, calls) -> None:
        code = cli.handle_docker_command(
            ["--dir", str(project), "down", "-v", "--remove-orphans"]
        )
        assert code == 0
        assert calls[0]["cmd"][-3:] == ["down", "-v", "--remove-orphans"]

    def test_proxy_command(self, project, calls) -> None:
        code = cli.handle_docker_command(
            ["--dir", str(project), "logs", "app"]
        )
        assert code == 0
        assert calls[0]["cmd"][-2:] == ["logs", "app"]

    def test_missing_compose_file(self, tmp_path, calls) -> None:
        assert cli.handle_docker_command(["--dir", str(tmp_path), "ps"]) == 1
        assert calls == []
