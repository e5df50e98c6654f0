"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_environment,
    get_environment_info,
    get_project_name,
    get_record_path,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("DEV_PORT", raising=False)
        result = get_environment(EnvVar.DEV_PORT)
        assert result == 3000

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("DEV_PORT", "9999")
        result = get_environment(EnvVar.DEV_PORT, override=5000)
        assert result == 5000

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("DEV_PORT", "8000")
        result = get_environment(EnvVar.DEV_PORT)
        assert result == 8000
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("DEV_PORT_MAX_ATTEMPTS", "lots")
        result = get_environment(EnvVar.DEV_PORT_MAX_ATTEMPTS)
        assert result == 20

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float type conversion from string."""
        monkeypatch.setenv("DEV_SHUTDOWN_TIMEOUT", "2.5")
        result = get_environment(EnvVar.DEV_SHUTDOWN_TIMEOUT)
        assert result == 2.5
        assert isinstance(result, float)

    @pytest.mark.unit
    def test_invalid_float_returns_default(self, monkeypatch):
        """Invalid float value returns default."""
        monkeypatch.setenv("DEV_POLL_INTERVAL", "fast")
        result = get_environment(EnvVar.DEV_POLL_INTERVAL)
        assert result == 0.1

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("DEV_SERVICE", "web")
        result = get_environment(EnvVar.DEV_SERVICE)
        assert result == "web"

    @pytest.mark.unit
    def test_none_default_for_project(self, monkeypatch):
        """Compose project defaults to None when not set."""
        monkeypatch.delenv("DEV_COMPOSE_PROJECT", raising=False)
        assert get_environment(EnvVar.DEV_COMPOSE_PROJECT) is None


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.DEV_PORT)
        assert isinstance(info, EnvConfig)
        assert info.name == "DEV_PORT"
        assert info.default == 3000
        assert info.var_type is int
        assert info.category == "port"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.DEV_SHUTDOWN_TIMEOUT)
        assert "stop" in info.description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        result = list_environment_variables()
        assert len(result) == len(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        port_vars = list_environment_variables("port")
        assert EnvVar.DEV_PORT in port_vars
        assert EnvVar.DEV_PORT_FILE in port_vars
        assert EnvVar.DEV_SERVICE not in port_vars


# =============================================================================
# Tests for convenience functions
# =============================================================================


class TestGetRecordPath:
    """Tests for sticky record path resolution."""

    @pytest.mark.unit
    def test_default_name(self, monkeypatch, tmp_path):
        """Record lives in the project directory as .dev-port."""
        monkeypatch.delenv("DEV_PORT_FILE", raising=False)
        assert get_record_path(tmp_path) == tmp_path / ".dev-port"

    @pytest.mark.unit
    def test_env_name(self, monkeypatch, tmp_path):
        """DEV_PORT_FILE renames the record."""
        monkeypatch.setenv("DEV_PORT_FILE", ".port")
        assert get_record_path(tmp_path) == tmp_path / ".port"

    @pytest.mark.unit
    def test_accepts_string_directory(self, monkeypatch, tmp_path):
        """String directories are accepted."""
        monkeypatch.delenv("DEV_PORT_FILE", raising=False)
        assert get_record_path(str(tmp_path)) == Path(tmp_path) / ".dev-port"


class TestGetProjectName:
    """Tests for compose project name derivation."""

    @pytest.mark.unit
    def test_override(self, tmp_path):
        """Explicit override wins."""
        assert get_project_name(tmp_path, override="shop") == "shop"

    @pytest.mark.unit
    def test_env(self, monkeypatch, tmp_path):
        """DEV_COMPOSE_PROJECT wins over directory name."""
        monkeypatch.setenv("DEV_COMPOSE_PROJECT", "from-env")
        assert get_project_name(tmp_path) == "from-env"

    @pytest.mark.unit
    def test_normalizes_directory_name(self, monkeypatch, tmp_path):
        """Directory names are lowercased and sanitized."""
        monkeypatch.delenv("DEV_COMPOSE_PROJECT", raising=False)
        project = tmp_path / "My.Web App"
        project.mkdir()
        assert get_project_name(project) == "my-web-app"

    @pytest.mark.unit
    def test_strips_leading_separators(self, monkeypatch, tmp_path):
        """Names cannot start with a dash or underscore."""
        monkeypatch.delenv("DEV_COMPOSE_PROJECT", raising=False)
        project = tmp_path / "_site"
        project.mkdir()
        assert get_project_name(project) == "site"
