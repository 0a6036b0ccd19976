"""Core application utilities."""

from .config import Settings, get_settings
from .container import ServiceContainer, build_container
from .database import (
    async_session_factory,
    build_engine,
    build_session_factory,
    close_db,
    engine,
    get_session,
    init_db,
)
from .dependencies import (
    AdminEmail,
    ContainerDep,
    SessionDep,
    get_container,
    require_admin,
)
from .security import create_access_token, decode_token

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Container
    "ServiceContainer",
    "build_container",
    # Database
    "engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "get_session",
    "init_db",
    "close_db",
    # Dependencies
    "get_container",
    "require_admin",
    "AdminEmail",
    "ContainerDep",
    "SessionDep",
    # Security
    "create_access_token",
    "decode_token",
]
