from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from sqlgate.settings.base import SQLGateBaseSettings


class ServerSettings(SQLGateBaseSettings):
    model_config = SettingsConfigDict(env_prefix="SQLGATE_")

    server_name: str = Field(default="sqlgate", description="Name announced to MCP clients")
    enabled_tools: str = Field(
        default="all",
        description="Comma-separated tool names to expose, or 'all'"
    )
    log_level: str = Field(default="INFO", description="Root log level")
    connection_string: Optional[str] = Field(
        default=None,
        description="mysql:// connection string used when none is given on the command line"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level '{v}'")
        return level

    @field_validator("enabled_tools")
    @classmethod
    def validate_enabled_tools(cls, v: str) -> str:
        tools = [t.strip() for t in v.split(",") if t.strip()]
        return ",".join(tools) or "all"

    def get_enabled_tools(self) -> Optional[List[str]]:
        """Return the enabled tool names, or None when every tool is enabled."""
        if self.enabled_tools.lower() == "all":
            return None
        return self.enabled_tools.split(",")
