"""Tests for the compose session controller."""

import subprocess
from pathlib import Path

import pytest

from devport.errors import SessionError

from .lib import ComposeSession, NullSession, SessionStatus, parse_published_port

# =============================================================================
# Fixtures
# =============================================================================


class FakeRunner:
    """Stand-in for subprocess.run that replays canned results.

    Responses are keyed by compose subcommand ("ps", "port", "down").
    """

    def __init__(self, responses: dict[str, tuple[int, str, str]]):
        self.responses = responses
        self.calls: list[list[str]] = []
        self.kwargs: list[dict] = []

    def __call__(self, args, **kwargs):
        self.calls.append(args)
        self.kwargs.append(kwargs)
        subcommand = self._subcommand(args)
        returncode, stdout, stderr = self.responses.get(subcommand, (0, "", ""))
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)

    @staticmethod
    def _subcommand(args: list[str]) -> str:
        # docker compose -p NAME [-f FILE]... SUBCOMMAND ...
        i = 4
        while args[i] == "-f":
            i += 2
        return args[i]


def make_session(runner, **kwargs) -> ComposeSession:
    return ComposeSession(Path("/work/shop"), project_name="shop", runner=runner, **kwargs)


# =============================================================================
# parse_published_port
# =============================================================================


class TestParsePublishedPort:
    """Tests for parse_published_port()."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "output, expected",
        [
            ("0.0.0.0:3005\n", 3005),
            ("[::]:3005\n", 3005),
            (":::3005\n", 3005),
            ("0.0.0.0:3005\n[::]:3005\n", 3005),
            ("\n127.0.0.1:4010\n", 4010),
        ],
    )
    def test_parses_host_port(self, output, expected):
        """Host port is taken from the first address line."""
        assert parse_published_port(output) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("output", ["", "\n", "no port", "0.0.0.0:0"])
    def test_no_port(self, output):
        """Output without a valid port yields None."""
        assert parse_published_port(output) is None


# =============================================================================
# ComposeSession
# =============================================================================


class TestComposeSessionStatus:
    """Tests for ComposeSession.status()."""

    @pytest.mark.unit
    def test_not_running(self):
        """Empty ps output means no running session."""
        runner = FakeRunner({"ps": (0, "", "")})
        status = make_session(runner).status()
        assert status == SessionStatus(running=False)
        assert len(runner.calls) == 1

    @pytest.mark.unit
    def test_running_with_port(self):
        """Running container reports its published port."""
        runner = FakeRunner(
            {"ps": (0, "3f2a9c\n", ""), "port": (0, "0.0.0.0:3004\n", "")}
        )
        status = make_session(runner).status()
        assert status == SessionStatus(running=True, port=3004)

    @pytest.mark.unit
    def test_running_without_published_port(self):
        """A running service with no mapping reports port None."""
        runner = FakeRunner(
            {"ps": (0, "3f2a9c\n", ""), "port": (1, "", "no port published")}
        )
        status = make_session(runner).status()
        assert status == SessionStatus(running=True, port=None)

    @pytest.mark.unit
    def test_command_lines(self):
        """Commands pin project, files, service and container port."""
        runner = FakeRunner(
            {"ps": (0, "abc\n", ""), "port": (0, "0.0.0.0:3001\n", "")}
        )
        session = make_session(
            runner,
            service="web",
            container_port=8080,
            compose_files=[Path("/work/shop/compose.yml")],
        )
        session.status()
        assert runner.calls[0] == [
            "docker", "compose", "-p", "shop", "-f", "/work/shop/compose.yml",
            "ps", "--status", "running", "-q", "web",
        ]
        assert runner.calls[1][-3:] == ["port", "web", "8080"]
        assert runner.kwargs[0]["cwd"] == Path("/work/shop")
        assert runner.kwargs[0]["capture_output"] is True

    @pytest.mark.unit
    def test_query_failure_raises(self):
        """A failing ps surfaces as SessionError."""
        runner = FakeRunner({"ps": (1, "", "Cannot connect to the Docker daemon")})
        with pytest.raises(SessionError) as exc_info:
            make_session(runner).status()
        assert exc_info.value.returncode == 1
        assert "Docker daemon" in exc_info.value.stderr

    @pytest.mark.unit
    def test_missing_docker_raises(self):
        """A missing docker binary surfaces as SessionError."""

        def runner(args, **kwargs):
            raise FileNotFoundError("docker")

        with pytest.raises(SessionError, match="not found"):
            make_session(runner).status()

    @pytest.mark.unit
    def test_timeout_raises(self):
        """A hung docker command surfaces as SessionError."""

        def runner(args, **kwargs):
            raise subprocess.TimeoutExpired(args, kwargs["timeout"])

        with pytest.raises(SessionError, match="timed out"):
            make_session(runner, timeout=5).status()


class TestComposeSessionStop:
    """Tests for ComposeSession.stop()."""

    @pytest.mark.unit
    def test_stop_runs_down(self):
        """stop() runs compose down."""
        runner = FakeRunner({"down": (0, "", "")})
        make_session(runner).stop()
        assert runner.calls[0][-2:] == ["down", "--remove-orphans"]

    @pytest.mark.unit
    def test_stop_is_idempotent(self):
        """Stopping twice succeeds when compose reports success."""
        runner = FakeRunner({"down": (0, "", "")})
        session = make_session(runner)
        session.stop()
        session.stop()
        assert len(runner.calls) == 2

    @pytest.mark.unit
    def test_stop_failure_raises(self):
        """A failing down surfaces as SessionError."""
        runner = FakeRunner({"down": (1, "", "permission denied")})
        with pytest.raises(SessionError, match="permission denied"):
            make_session(runner).stop()


class TestNullSession:
    """Tests for NullSession."""

    @pytest.mark.unit
    def test_never_running(self):
        """NullSession always reports not running."""
        session = NullSession()
        assert session.status() == SessionStatus(running=False)
        session.stop()
