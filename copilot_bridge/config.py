"""Copilot bridge configuration: loaded from environment / .env file."""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="COPILOT_BRIDGE_", extra="ignore", populate_by_name=True
    )

    env: str = "development"
    log_level: str = "INFO"

    # HTTP server
    host: str = "127.0.0.1"
    port: int = Field(8080, validation_alias=AliasChoices("COPILOT_BRIDGE_PORT", "PORT"))
    cors_origins: list[str] = ["http://localhost:5173"]  # Vite dev

    # Agent backend (custom ADK runtime speaking REST + SSE)
    agent_base_url: str = Field(
        "http://127.0.0.1:8000",
        validation_alias=AliasChoices("COPILOT_BRIDGE_AGENT_BASE_URL", "COPILOTKIT_CUSTOM_ADK_URL"),
    )
    agent_connect_timeout: float = 10.0
    agent_read_timeout: float = 300.0

    # CopilotKit runtime the client talks to for everything else
    runtime_url: str = Field(
        "http://127.0.0.1:4000/copilotkit",
        validation_alias=AliasChoices(
            "COPILOT_BRIDGE_RUNTIME_URL", "VITE_COPILOTKIT_RUNTIME_URL", "COPILOTKIT_RUNTIME_URL"
        ),
    )

    # How often a pending bridge call checks whether the client went away
    disconnect_poll_interval: float = 0.25

    @field_validator("agent_base_url", "runtime_url")
    @classmethod
    def _require_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def agent_run_url(self) -> str:
        return f"{self.agent_base_url.rstrip('/')}/agent"


settings = Settings()
