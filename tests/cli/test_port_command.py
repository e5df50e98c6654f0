"""Tests for port CLI command."""

import pytest

from devport.ports import cli
from devport.ports import lib as ports_lib


class StubProbe:
    """Probe with a fixed set of occupied ports."""

    occupied: set[int] = set()

    def __init__(self, host: str = "0.0.0.0"):
        self.host = host

    def is_in_use(self, port: int) -> bool:
        return port in self.occupied


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("DEV_PORT", "DEV_PORT_MAX_ATTEMPTS", "DEV_PORT_FILE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def probe(monkeypatch):
    StubProbe.occupied = set()
    monkeypatch.setattr(cli, "SocketPortProbe", StubProbe)
    return StubProbe


@pytest.mark.unit
def test_resolve_prints_port(tmp_path, probe, capsys):
    """resolve prints only the port on stdout and persists it."""
    probe.occupied = {3000, 3001, 3002}
    code = cli.handle_port_command(["resolve", "--dir", str(tmp_path), "--no-reclaim"])
    assert code == 0
    assert capsys.readouterr().out == "3003\n"
    assert (tmp_path / ".dev-port").read_text() == "3003\n"


@pytest.mark.unit
def test_resolve_reuses_sticky_port(tmp_path, probe, capsys):
    """A free sticky port is printed as-is."""
    (tmp_path / ".dev-port").write_text("4010\n")
    code = cli.handle_port_command(["resolve", "--dir", str(tmp_path), "--no-reclaim"])
    assert code == 0
    assert capsys.readouterr().out == "4010\n"


@pytest.mark.unit
def test_resolve_exhausted_exits_nonzero(tmp_path, probe, capsys):
    """Exhaustion returns 1 and prints nothing on stdout."""
    probe.occupied = set(range(8000, 8005))
    code = cli.handle_port_command(
        [
            "resolve",
            "--dir", str(tmp_path),
            "--no-reclaim",
            "--base-port", "8000",
            "--max-attempts", "5",
        ]
    )
    assert code == 1
    assert capsys.readouterr().out == ""
    assert not (tmp_path / ".dev-port").exists()


@pytest.mark.unit
def test_resolve_invalid_base_port(tmp_path, probe):
    """Out-of-range settings are rejected."""
    code = cli.handle_port_command(
        ["resolve", "--dir", str(tmp_path), "--no-reclaim", "--base-port", "70000"]
    )
    assert code == 1


@pytest.mark.unit
def test_resolve_adds_record_to_gitignore(tmp_path, probe):
    """The record file is added to an existing .gitignore."""
    (tmp_path / ".gitignore").write_text("node_modules/\n")
    cli.handle_port_command(["resolve", "--dir", str(tmp_path), "--no-reclaim"])
    assert ".dev-port" in (tmp_path / ".gitignore").read_text().splitlines()


@pytest.mark.unit
def test_show_and_clear(tmp_path, capsys):
    """show prints the record; clear removes it."""
    (tmp_path / ".dev-port").write_text("3005\n")

    assert cli.handle_port_command(["show", "--dir", str(tmp_path)]) == 0
    assert capsys.readouterr().out == "3005\n"

    assert cli.handle_port_command(["clear", "--dir", str(tmp_path)]) == 0
    assert not (tmp_path / ".dev-port").exists()
    assert cli.handle_port_command(["show", "--dir", str(tmp_path)]) == 1


@pytest.mark.unit
def test_show_corrupt_record(tmp_path):
    (tmp_path / ".dev-port").write_text("banana\n")
    assert cli.handle_port_command(["show", "--dir", str(tmp_path)]) == 1


@pytest.mark.unit
def test_no_args_prints_help(capsys):
    assert cli.handle_port_command([]) == 1
    assert "resolve" in capsys.readouterr().out


@pytest.mark.unit
def test_resolve_without_docker(tmp_path, probe, capsys, monkeypatch):
    """Without --no-reclaim, a docker-less host still gets a port."""
    monkeypatch.setattr(ports_lib.shutil, "which", lambda name: None)
    (tmp_path / "compose.yml").write_text("services: {}\n")

    code = cli.handle_port_command(["resolve", "--dir", str(tmp_path)])

    assert code == 0
    assert capsys.readouterr().out == "3000\n"


@pytest.mark.unit
def test_resolve_without_compose_file(tmp_path, probe, capsys, monkeypatch):
    """A directory with no compose file has nothing to reclaim."""
    monkeypatch.setattr(ports_lib.shutil, "which", lambda name: f"/usr/bin/{name}")

    code = cli.handle_port_command(["resolve", "--dir", str(tmp_path)])

    assert code == 0
    assert capsys.readouterr().out == "3000\n"


@pytest.mark.unit
def test_resolve_with_unreadable_gitignore(tmp_path, probe, capsys):
    """A .gitignore that cannot be decoded does not hide the port."""
    (tmp_path / ".gitignore").write_bytes(b"\xff\xfe\x00bad\n")

    code = cli.handle_port_command(["resolve", "--dir", str(tmp_path), "--no-reclaim"])

    assert code == 0
    assert capsys.readouterr().out == "3000\n"
    assert (tmp_path / ".dev-port").read_text() == "3000\n"
