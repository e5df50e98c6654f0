"""Tests for sticky port resolution.

Tests cover:
- Each tier in isolation (reclaim, reuse, scan)
- Fallthrough between tiers (timeouts, conflicts, corrupt records)
- Persistence and idempotence
- Context construction from configuration
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from devport.errors import (
    PortExhaustedError,
    RecordCorruptError,
    SessionError,
)
from devport.record import FilePortRecord
from devport.session import ComposeSession, NullSession, SessionStatus

from . import lib as ports_lib
from .lib import (
    PortResolver,
    build_context,
    build_session,
    candidate_ports,
    resolve_port,
)
from .models import PortAssignment, PortContext, ResolutionState, Tier

# =============================================================================
# Fakes
# =============================================================================


class FakeSession:
    """In-memory session controller.

    After stop(), the session keeps reporting running for `teardown_polls`
    status calls, or forever when `never_stops` is set.
    """

    def __init__(
        self,
        running: bool = False,
        port: int | None = None,
        teardown_polls: int = 0,
        never_stops: bool = False,
    ):
        self.running = running
        self.port = port
        self.teardown_polls = teardown_polls
        self.never_stops = never_stops
        self.stopped = False
        self.stop_calls = 0
        self.status_calls = 0

    def status(self) -> SessionStatus:
        self.status_calls += 1
        if self.stopped and not self.never_stops:
            if self.teardown_polls > 0:
                self.teardown_polls -= 1
            else:
                self.running = False
        if not self.running:
            return SessionStatus(running=False)
        return SessionStatus(running=True, port=self.port)

    def stop(self) -> None:
        self.stop_calls += 1
        self.stopped = True


class FakeProbe:
    """Port probe backed by a set of occupied ports."""

    def __init__(self, occupied: set[int] | None = None):
        self.occupied = set(occupied or ())
        self.probed: list[int] = []

    def is_in_use(self, port: int) -> bool:
        self.probed.append(port)
        return port in self.occupied


class MemoryStore:
    """Record store kept in memory."""

    def __init__(self, port: int | None = None, corrupt: bool = False):
        self.port = port
        self.corrupt = corrupt
        self.writes: list[int] = []

    def read(self) -> int | None:
        if self.corrupt:
            raise RecordCorruptError(Path(".dev-port"), raw="garbage")
        return self.port

    def write(self, port: int) -> None:
        self.writes.append(port)
        self.port = port
        self.corrupt = False


class FakeClock:
    """Monotonic clock advanced by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def context(tmp_path) -> PortContext:
    return PortContext(working_directory=tmp_path, base_port=3000, max_attempts=20)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_resolver(session=None, probe=None, store=None, clock=None) -> PortResolver:
    clock = clock or FakeClock()
    return PortResolver(
        session=session or FakeSession(),
        probe=probe or FakeProbe(),
        store=store or MemoryStore(),
        sleep=clock.sleep,
        clock=clock,
    )


# =============================================================================
# Tier 1: reclaim
# =============================================================================


class TestReclaim:
    """Tests for reclaiming a running session's port."""

    @pytest.mark.unit
    def test_reclaims_running_port(self, context):
        """Running session on P is stopped and P is returned and persisted."""
        session = FakeSession(running=True, port=3004)
        probe = FakeProbe()
        store = MemoryStore(port=3000)

        result = make_resolver(session, probe, store).resolve(context)

        assert result.port == 3004
        assert result.tier == Tier.RECLAIM
        assert session.stop_calls == 1
        assert store.writes == [3004]
        assert probe.probed == []

    @pytest.mark.unit
    def test_reclaim_trace(self, context):
        """Reclaim walks the documented states."""
        session = FakeSession(running=True, port=3004)
        result = make_resolver(session).resolve(context)
        assert result.trace == [
            ResolutionState.START,
            ResolutionState.CHECK_RUNNING,
            ResolutionState.FOUND_RUNNING,
            ResolutionState.STOP,
            ResolutionState.WAIT_TEARDOWN,
            ResolutionState.REUSE,
            ResolutionState.PERSIST,
            ResolutionState.DONE,
        ]

    @pytest.mark.unit
    def test_waits_for_teardown(self, context, clock):
        """Resolution blocks, polling at poll_interval, until the session is gone."""
        session = FakeSession(running=True, port=3004, teardown_polls=3)
        result = make_resolver(session, clock=clock).resolve(context)

        assert result.port == 3004
        assert clock.sleeps == [0.1, 0.1, 0.1]

    @pytest.mark.unit
    def test_teardown_timeout_falls_back_to_sticky(self, tmp_path, clock):
        """A session that never stops degrades to the sticky record."""
        context = PortContext(
            working_directory=tmp_path, shutdown_timeout=1.0, poll_interval=0.25
        )
        session = FakeSession(running=True, port=3004, never_stops=True)
        store = MemoryStore(port=4010)

        result = make_resolver(session, FakeProbe(), store, clock).resolve(context)

        assert result.port == 4010
        assert result.tier == Tier.REUSE
        assert clock.now >= 1.0
        wait = result.trace.index(ResolutionState.WAIT_TEARDOWN)
        assert result.trace[wait + 1] == ResolutionState.CHECK_STICKY

    @pytest.mark.unit
    def test_teardown_timeout_falls_back_to_scan(self, tmp_path, clock):
        """With the old port still held and no record, the scan takes over."""
        context = PortContext(
            working_directory=tmp_path, base_port=3000, shutdown_timeout=0.5
        )
        session = FakeSession(running=True, port=3000, never_stops=True)
        probe = FakeProbe(occupied={3000})

        result = make_resolver(session, probe, MemoryStore(), clock).resolve(context)

        assert result.port == 3001
        assert result.tier == Tier.SCAN

    @pytest.mark.unit
    def test_running_without_port_still_stops(self, context):
        """A session with no published port is stopped, then resolution continues."""
        session = FakeSession(running=True, port=None)
        store = MemoryStore()

        result = make_resolver(session, FakeProbe(), store).resolve(context)

        assert session.stop_calls == 1
        assert result.tier == Tier.SCAN
        assert result.port == 3000

    @pytest.mark.unit
    def test_stop_failure_propagates(self, context):
        """A failed stop aborts resolution without touching the record."""

        class BrokenSession(FakeSession):
            def stop(self):
                raise SessionError("docker compose down failed")

        store = MemoryStore(port=4010)
        with pytest.raises(SessionError):
            make_resolver(BrokenSession(running=True, port=3004), store=store).resolve(context)
        assert store.writes == []

    @pytest.mark.unit
    def test_interrupt_during_wait_keeps_record(self, context):
        """Ctrl-C while waiting leaves the sticky record untouched."""

        def interrupt(_seconds):
            raise KeyboardInterrupt

        session = FakeSession(running=True, port=3004, never_stops=True)
        store = MemoryStore(port=4010)
        resolver = PortResolver(session, FakeProbe(), store, sleep=interrupt)

        with pytest.raises(KeyboardInterrupt):
            resolver.resolve(context)
        assert store.writes == []
        assert store.port == 4010


# =============================================================================
# Tier 2: sticky record
# =============================================================================


class TestReuse:
    """Tests for reusing the sticky record."""

    @pytest.mark.unit
    def test_reuses_free_sticky_port_without_scanning(self, context):
        """Record 4010, no session, 4010 free: 4010 without scanning."""
        probe = FakeProbe()
        store = MemoryStore(port=4010)

        result = make_resolver(FakeSession(), probe, store).resolve(context)

        assert result.port == 4010
        assert result.tier == Tier.REUSE
        assert probe.probed == [4010]
        assert ResolutionState.SCAN not in result.trace
        assert store.writes == [4010]

    @pytest.mark.unit
    def test_occupied_sticky_port_scans_from_base(self, context):
        """A record pointing at a port held by someone else is ignored."""
        probe = FakeProbe(occupied={4010})
        store = MemoryStore(port=4010)

        result = make_resolver(FakeSession(), probe, store).resolve(context)

        assert result.port == 3000
        assert result.tier == Tier.SCAN
        assert probe.probed == [4010, 3000]
        assert store.port == 3000

    @pytest.mark.unit
    def test_corrupt_record_scans(self, context):
        """A corrupt record is treated as absent."""
        store = MemoryStore(corrupt=True)
        result = make_resolver(store=store).resolve(context)

        assert result.port == 3000
        assert result.tier == Tier.SCAN
        assert store.writes == [3000]

    @pytest.mark.unit
    @pytest.mark.parametrize("content", ["not-a-port\n", "--3000\n", "\u00b2\n"])
    def test_corrupt_record_file_is_overwritten(self, context, content):
        """A garbage record file is replaced by the scanned port."""
        context.record_path.write_text(content, encoding="utf-8")
        store = FilePortRecord(context.record_path)

        result = make_resolver(store=store).resolve(context)

        assert result.port == 3000
        assert context.record_path.read_text() == "3000\n"

    @pytest.mark.unit
    @pytest.mark.parametrize("bad", [0, -5, 70000])
    def test_invalid_stored_port_scans(self, context, bad):
        """Stores returning an impossible port are ignored."""
        probe = FakeProbe()
        result = make_resolver(probe=probe, store=MemoryStore(port=bad)).resolve(context)
        assert result.tier == Tier.SCAN
        assert bad not in probe.probed


# =============================================================================
# Tier 3: scan
# =============================================================================


class TestScan:
    """Tests for the free-port scan."""

    @pytest.mark.unit
    def test_first_free_port_after_occupied(self, context):
        """base 3000, 3000-3002 occupied: 3003 is returned and persisted."""
        probe = FakeProbe(occupied={3000, 3001, 3002})
        store = MemoryStore()

        result = make_resolver(probe=probe, store=store).resolve(context)

        assert result.port == 3003
        assert result.tier == Tier.SCAN
        assert probe.probed == [3000, 3001, 3002, 3003]
        assert store.writes == [3003]

    @pytest.mark.unit
    def test_exhaustion_raises_and_does_not_persist(self, tmp_path):
        """base 8000, max 5, 8000-8004 occupied: PortExhaustedError."""
        context = PortContext(working_directory=tmp_path, base_port=8000, max_attempts=5)
        probe = FakeProbe(occupied=set(range(8000, 8005)))
        store = MemoryStore()

        with pytest.raises(PortExhaustedError) as exc_info:
            make_resolver(probe=probe, store=store).resolve(context)

        assert exc_info.value.base_port == 8000
        assert exc_info.value.max_attempts == 5
        assert probe.probed == [8000, 8001, 8002, 8003, 8004]
        assert store.writes == []

    @pytest.mark.unit
    def test_exhaustion_message_stops_at_max_port(self, tmp_path):
        """The reported range ends where the scan ends."""
        context = PortContext(working_directory=tmp_path, base_port=65530, max_attempts=20)
        probe = FakeProbe(occupied=set(range(65530, 65536)))

        with pytest.raises(PortExhaustedError, match="65530-65535 "):
            make_resolver(probe=probe).resolve(context)

        assert probe.probed == list(range(65530, 65536))

    @pytest.mark.unit
    def test_port_after_range_is_not_probed(self, tmp_path):
        """The scan stops at base + max_attempts - 1."""
        context = PortContext(working_directory=tmp_path, base_port=8000, max_attempts=2)
        probe = FakeProbe(occupied={8000, 8001})
        with pytest.raises(PortExhaustedError):
            make_resolver(probe=probe).resolve(context)
        assert 8002 not in probe.probed

    @pytest.mark.unit
    def test_sticky_port_outside_range_is_honored(self, tmp_path):
        """A valid record outside the scan range is still reused."""
        context = PortContext(working_directory=tmp_path, base_port=3000, max_attempts=5)
        result = make_resolver(store=MemoryStore(port=9999)).resolve(context)
        assert result.port == 9999


class TestCandidatePorts:
    """Tests for candidate_ports()."""

    @pytest.mark.unit
    def test_half_open_range(self):
        assert list(candidate_ports(3000, 3)) == [3000, 3001, 3002]

    @pytest.mark.unit
    def test_truncated_at_max_port(self):
        assert list(candidate_ports(65534, 20)) == [65534, 65535]


# =============================================================================
# Persistence
# =============================================================================


class TestPersistence:
    """Tests for record persistence across resolutions."""

    @pytest.mark.unit
    def test_idempotent_with_file_record(self, context):
        """Two resolutions with no state change return the same port."""
        probe = FakeProbe(occupied={3000, 3001})
        store = FilePortRecord(context.record_path)
        resolver = make_resolver(FakeSession(), probe, store)

        first = resolver.resolve(context)
        second = resolver.resolve(context)

        assert first.port == second.port == 3002
        assert first.tier == Tier.SCAN
        assert second.tier == Tier.REUSE
        assert store.read() == 3002

    @pytest.mark.unit
    def test_assignment_reports_record_path(self, context):
        result = make_resolver().resolve(context)
        assert isinstance(result, PortAssignment)
        assert result.record_path == context.record_path

    @pytest.mark.unit
    def test_resolve_port_defaults_to_file_record(self, context):
        """resolve_port persists to the context's record file."""
        result = resolve_port(context, session=FakeSession(), probe=FakeProbe())
        assert result.port == 3000
        assert context.record_path.read_text() == "3000\n"

    @pytest.mark.unit
    def test_resolve_port_reclaims_with_given_session(self, context):
        session = FakeSession(running=True, port=3007)
        result = resolve_port(context, session=session, probe=FakeProbe())
        assert result.port == 3007
        assert FilePortRecord(context.record_path).read() == 3007


# =============================================================================
# Models and construction
# =============================================================================


class TestPortContext:
    """Tests for PortContext validation."""

    @pytest.mark.unit
    def test_defaults(self, tmp_path):
        context = PortContext(working_directory=tmp_path)
        assert context.base_port == 3000
        assert context.max_attempts == 20
        assert context.poll_interval == 0.1
        assert context.record_path == tmp_path / ".dev-port"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "field, value",
        [
            ("base_port", 0),
            ("base_port", 65536),
            ("max_attempts", 0),
            ("shutdown_timeout", 0),
            ("poll_interval", -1),
            ("record_name", ""),
        ],
    )
    def test_rejects_invalid_values(self, tmp_path, field, value):
        with pytest.raises(ValidationError):
            PortContext(working_directory=tmp_path, **{field: value})


class TestBuildContext:
    """Tests for build_context()."""

    @pytest.mark.unit
    def test_reads_environment(self, monkeypatch, tmp_path):
        """DEV_* variables feed the context."""
        monkeypatch.setenv("DEV_PORT", "8000")
        monkeypatch.setenv("DEV_PORT_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("DEV_SHUTDOWN_TIMEOUT", "3")
        monkeypatch.setenv("DEV_PORT_FILE", ".port")

        context = build_context(tmp_path)

        assert context.base_port == 8000
        assert context.max_attempts == 5
        assert context.shutdown_timeout == 3.0
        assert context.record_path == tmp_path / ".port"

    @pytest.mark.unit
    def test_arguments_override_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DEV_PORT", "8000")
        context = build_context(tmp_path, base_port=5173, max_attempts=3)
        assert context.base_port == 5173
        assert context.max_attempts == 3


class TestBuildSession:
    """Tests for build_session()."""

    @pytest.fixture
    def docker_installed(self, monkeypatch):
        monkeypatch.setattr(ports_lib.shutil, "which", lambda name: f"/usr/bin/{name}")

    @pytest.mark.unit
    def test_discovers_compose_files(self, monkeypatch, tmp_path, docker_installed):
        monkeypatch.delenv("DEV_COMPOSE_PROJECT", raising=False)
        monkeypatch.delenv("DEV_SERVICE", raising=False)
        project = tmp_path / "shop"
        project.mkdir()
        (project / "compose.yml").write_text("services: {}\n")
        (project / "compose.dev.yml").write_text("services: {}\n")

        session = build_session(project)

        assert isinstance(session, ComposeSession)
        assert session.project_name == "shop"
        assert session.service == "app"
        assert session.container_port == 3000
        assert session.compose_files == [
            project / "compose.yml",
            project / "compose.dev.yml",
        ]

    @pytest.mark.unit
    def test_without_compose_files_is_null(self, tmp_path, docker_installed):
        """A directory with no compose file has no session to reclaim."""
        session = build_session(tmp_path, project_name="x", service="web")
        assert isinstance(session, NullSession)

    @pytest.mark.unit
    def test_without_docker_is_null(self, monkeypatch, tmp_path):
        """Hosts without a docker executable never reclaim."""
        (tmp_path / "compose.yml").write_text("services: {}\n")
        monkeypatch.setattr(ports_lib.shutil, "which", lambda name: None)
        assert isinstance(build_session(tmp_path), NullSession)

    @pytest.mark.unit
    def test_invalid_mode_raises(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid mode"):
            build_session(tmp_path, mode="staging")

    @pytest.mark.unit
    def test_resolves_without_docker(self, monkeypatch, context):
        """The default session on a docker-less host falls through to the scan."""
        monkeypatch.setattr(ports_lib.shutil, "which", lambda name: None)
        session = build_session(context.working_directory)

        result = resolve_port(context, session=session, probe=FakeProbe())

        assert result.port == 3000
        assert result.tier == Tier.SCAN
