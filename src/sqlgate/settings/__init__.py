"""Settings module providing configuration management for sqlgate.

Built on Pydantic Settings:

    - base.py: SQLGateBaseSettings with the shared ``.env`` behaviour
    - database.py: DatabaseConfig, the immutable record the engine is built from
    - server.py: ServerSettings for the tool server (enabled tools, log level)

Configuration Sources (precedence order):
    1. Explicit keyword arguments / connection string
    2. Environment Variables (SQLGATE_DB_*, SQLGATE_*)
    3. ``.env`` file
    4. Default Values in code
"""

from typing import Optional

from .base import SQLGateBaseSettings
from .database import DatabaseConfig, mask_connection_string, parse_connection_string
from .server import ServerSettings

_settings: Optional[ServerSettings] = None


def get_settings(force_reload: bool = False) -> ServerSettings:
    """Get the singleton server settings instance.

    Args:
        force_reload: If True, re-read the environment even if settings
            were already loaded.

    Returns:
        ServerSettings: The singleton instance
    """
    global _settings

    if _settings is None or force_reload:
        _settings = ServerSettings()

    return _settings


__all__ = [
    "SQLGateBaseSettings",
    "DatabaseConfig",
    "ServerSettings",
    "get_settings",
    "mask_connection_string",
    "parse_connection_string",
]
