"""Tests against a real Docker daemon.

Auto-skipped by the root conftest when Docker is unavailable.
"""

import pytest

from devport.session import ComposeSession, SessionStatus


@pytest.fixture
def idle_project(tmp_path):
    """Compose project that is defined but never started."""
    (tmp_path / "compose.yml").write_text(
        "services:\n  app:\n    image: busybox\n    command: sleep 60\n"
    )
    return tmp_path


@pytest.mark.docker
def test_idle_project_is_not_running(idle_project):
    session = ComposeSession(
        idle_project,
        project_name="devport-test-idle",
        compose_files=[idle_project / "compose.yml"],
    )
    assert session.status() == SessionStatus(running=False)


@pytest.mark.docker
def test_stop_idle_project_is_idempotent(idle_project):
    session = ComposeSession(
        idle_project,
        project_name="devport-test-idle",
        compose_files=[idle_project / "compose.yml"],
    )
    session.stop()
    session.stop()
    assert session.status().running is False
