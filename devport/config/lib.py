"""Centralized environment configuration management for devport.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from devport.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> port = get_environment(EnvVar.DEV_PORT)  # Returns int
    >>> timeout = get_environment(EnvVar.DEV_SHUTDOWN_TIMEOUT)  # Returns float
    >>>
    >>> # Override at runtime
    >>> port = get_environment(EnvVar.DEV_PORT, override=4000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "DEV_PORT").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by devport.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - port: Port resolution (base port, scan width, record file)
        - session: Session teardown and port probing
        - docker: Compose project configuration
        - logging: Log output
    """

    # -------------------------------------------------------------------------
    # Port Resolution
    # -------------------------------------------------------------------------
    DEV_PORT = EnvConfig(
        name="DEV_PORT",
        default=3000,
        var_type=int,
        description="Base port used when no running session or sticky record applies",
        category="port",
    )
    DEV_PORT_MAX_ATTEMPTS = EnvConfig(
        name="DEV_PORT_MAX_ATTEMPTS",
        default=20,
        var_type=int,
        description="Number of sequential ports probed from the base port",
        category="port",
    )
    DEV_PORT_FILE = EnvConfig(
        name="DEV_PORT_FILE",
        default=".dev-port",
        var_type=str,
        description="Sticky port record file name, relative to the project directory",
        category="port",
    )

    # -------------------------------------------------------------------------
    # Session Teardown and Probing
    # -------------------------------------------------------------------------
    DEV_SHUTDOWN_TIMEOUT = EnvConfig(
        name="DEV_SHUTDOWN_TIMEOUT",
        default=30.0,
        var_type=float,
        description="Seconds to wait for a running session to stop",
        category="session",
    )
    DEV_POLL_INTERVAL = EnvConfig(
        name="DEV_POLL_INTERVAL",
        default=0.1,
        var_type=float,
        description="Seconds between session status polls during teardown",
        category="session",
    )
    DEV_PROBE_HOST = EnvConfig(
        name="DEV_PROBE_HOST",
        default="0.0.0.0",
        var_type=str,
        description="Address the port probe binds to",
        category="session",
    )

    # -------------------------------------------------------------------------
    # Docker Compose
    # -------------------------------------------------------------------------
    DEV_COMPOSE_PROJECT = EnvConfig(
        name="DEV_COMPOSE_PROJECT",
        default=None,  # Derived from the project directory name
        var_type=str,
        description="Docker Compose project name",
        category="docker",
    )
    DEV_SERVICE = EnvConfig(
        name="DEV_SERVICE",
        default="app",
        var_type=str,
        description="Compose service that publishes the development port",
        category="docker",
    )
    DEV_CONTAINER_PORT = EnvConfig(
        name="DEV_CONTAINER_PORT",
        default=3000,
        var_type=int,
        description="Container-side port published by the development service",
        category="docker",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    LOG_LEVEL = EnvConfig(
        name="LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        category="logging",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is float:
        try:
            return float(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type.

    Example:
        >>> port = get_environment(EnvVar.DEV_PORT)
        3000
        >>> port = get_environment(EnvVar.DEV_PORT, override=4000)
        4000
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)

    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (port, session, docker, logging).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


# =============================================================================
# Convenience Functions
# =============================================================================


def get_record_path(
    working_directory: Path | str,
    override: str | None = None,
) -> Path:
    """Get the sticky port record path for a project directory.

    Resolution: override > DEV_PORT_FILE > ".dev-port"
    """
    name = get_environment(EnvVar.DEV_PORT_FILE, override=override)
    return Path(working_directory) / name


def get_project_name(
    working_directory: Path | str,
    override: str | None = None,
) -> str:
    """Get the Docker Compose project name for a project directory.

    Resolution: override > DEV_COMPOSE_PROJECT > normalized directory name.
    Compose accepts lowercase letters, digits, dashes and underscores, and
    the name must start with a letter or digit.
    """
    name = get_environment(EnvVar.DEV_COMPOSE_PROJECT, override=override)
    if name:
        return name

    raw = Path(working_directory).resolve().name.lower()
    cleaned = "".join(c if c.isalnum() or c in "-_" else "-" for c in raw)
    cleaned = cleaned.lstrip("-_")
    return cleaned or "devport"


__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_record_path",
    "get_project_name",
    # Introspection
    "list_environment_variables",
]
