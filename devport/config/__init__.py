"""Centralized configuration management for devport.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from devport.config import EnvVar, get_environment
    >>>
    >>> # Get any environment variable with automatic type conversion
    >>> base = get_environment(EnvVar.DEV_PORT)  # Returns int: 3000
    >>>
    >>> # Override at runtime
    >>> base = get_environment(EnvVar.DEV_PORT, override=8000)
    >>>
    >>> # List available variables by category
    >>> for var in list_environment_variables("port"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    port: Base port, scan width and sticky record file
    session: Teardown wait and port probing
    docker: Compose project, service and container port
    logging: Log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_environment,
    get_environment_info,
    get_project_name,
    get_record_path,
    # Introspection
    list_environment_variables,
)

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
