from pydantic_settings import BaseSettings, SettingsConfigDict


class SQLGateBaseSettings(BaseSettings):
    """Shared source configuration for sqlgate settings.

    Values come from keyword arguments, then the process environment, then
    a ``.env`` file in the working directory. Unknown variables are
    ignored so one ``.env`` can serve several tools.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
