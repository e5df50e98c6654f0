"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Docker availability detection and auto-skipping
- A clean port environment for every test
"""

from __future__ import annotations

import shutil
import subprocess

import pytest
from dotenv import load_dotenv

from devport.config import EnvVar

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Docker Detection (Private Functions)
# =============================================================================


def _is_docker_available() -> bool:
    """Check if Docker daemon is running."""
    if shutil.which("docker") is None:
        return False
    try:
        result = subprocess.run(
            ["docker", "info"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return False


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Auto-skip tests marked with docker when the daemon is unavailable."""
    if not any(item.get_closest_marker("docker") for item in items):
        return

    if _is_docker_available():
        return

    skip_docker = pytest.mark.skip(reason="Docker not available")
    for item in items:
        # Marker lookup, not keywords: the devport.docker package name is a keyword
        if item.get_closest_marker("docker"):
            item.add_marker(skip_docker)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def docker_available() -> bool:
    """Check if Docker is available for this test session.

    Returns:
        True if Docker daemon is running, False otherwise.
    """
    return _is_docker_available()


@pytest.fixture(autouse=True)
def clean_port_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset devport variables that a developer's shell or .env may carry."""
    for var in EnvVar:
        monkeypatch.delenv(var.value.name, raising=False)
