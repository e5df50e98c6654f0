"""Tests for the `python .` entry point."""

import socket
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]


def run_cli(*args: str, env: dict | None = None) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, ".", *args],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
        env=env,
        timeout=30,
    )


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.mark.integration
def test_help_runs_without_error():
    result = run_cli("--help")
    assert result.returncode == 0
    assert "port" in result.stdout


@pytest.mark.integration
def test_env_shows_port_settings():
    result = run_cli("env", "port")
    assert result.returncode == 0
    assert "DEV_PORT" in result.stdout
    assert "DEV_PORT_FILE" in result.stdout


@pytest.mark.integration
def test_unknown_command_fails():
    assert run_cli("frobnicate").returncode == 1


@pytest.mark.integration
def test_port_resolve_is_sticky(tmp_path):
    """Two runs in the same directory print the same port."""
    base = free_port()
    args = (
        "port", "resolve",
        "--dir", str(tmp_path),
        "--no-reclaim",
        "--base-port", str(base),
        "--max-attempts", "50",
    )

    first = run_cli(*args)
    second = run_cli(*args)

    assert first.returncode == 0, first.stderr
    port = int(first.stdout.strip())
    assert base <= port < base + 50
    assert second.stdout.strip() == str(port)
    assert (tmp_path / ".dev-port").read_text() == f"{port}\n"
