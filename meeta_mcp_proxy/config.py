from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, Field
from functools import lru_cache
from typing import Any, Optional

# Remote MCP HTTP API used when neither the environment nor the command line names one
DEFAULT_ENDPOINT = "https://izlh8w6043.execute-api.ap-northeast-1.amazonaws.com/dev/mcp"

# Identity reported in the initialize reply and the outbound User-Agent
SERVER_NAME = "meeta-mcp-proxy"
SERVER_VERSION = "1.0.0"
MCP_PROTOCOL_VERSION = "2024-11-05"


class Settings(BaseSettings):
    """
    Centralized Configuration Management.
    Reads from environment variables with the MEETA_MCP_ prefix (e.g., MEETA_MCP_LOG_LEVEL).
    DEBUG is read unprefixed.
    """
    # Endpoint override, wins over the positional command-line argument
    endpoint_override: Optional[str] = Field(default=None, validation_alias="MEETA_MCP_ENDPOINT")

    # Diagnostics go to stderr only when DEBUG=true
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = "DEBUG"

    # Outbound HTTP
    request_timeout: float = Field(default=30.0, validation_alias="MEETA_MCP_TIMEOUT")
    user_agent: str = f"{SERVER_NAME}/{SERVER_VERSION}"

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v: Any) -> bool:
        """Only DEBUG=true (any case) enables debug output; anything else leaves it off."""
        if isinstance(v, bool):
            return v
        if v is None:
            return False
        return str(v).strip().lower() == "true"

    @field_validator("endpoint_override", mode="before")
    @classmethod
    def blank_endpoint_is_unset(cls, v: Any) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        env_prefix="MEETA_MCP_",
        env_file=".env",
        env_file_encoding='utf-8',
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Singleton pattern for settings to avoid re-reading env vars."""
    return Settings()


def resolve_endpoint(settings: Settings, cli_endpoint: Optional[str] = None) -> str:
    """
    Picks the remote endpoint once at start-up.
    Priority: MEETA_MCP_ENDPOINT, then the first positional argument, then the built-in default.
    """
    if settings.endpoint_override:
        return settings.endpoint_override
    if cli_endpoint:
        return cli_endpoint
    return DEFAULT_ENDPOINT
