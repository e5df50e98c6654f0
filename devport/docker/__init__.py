"""Docker Compose helpers for devport.

Naming Convention:
    - Project name: DEV_COMPOSE_PROJECT, or the project directory name
    - Service: DEV_SERVICE (default "app") publishes the development port
    - Host port: passed to compose as PORT
"""

from .lib import (
    BASE_COMPOSE_FILES,
    PORT_ENV_VAR,
    build_compose_command,
    get_compose_files,
    list_modes,
)

__all__ = [
    "PORT_ENV_VAR",
    "BASE_COMPOSE_FILES",
    "build_compose_command",
    "get_compose_files",
    "list_modes",
]
