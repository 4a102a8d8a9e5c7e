"""Application configuration via Pydantic Settings."""

from dataclasses import dataclass
from typing import FrozenSet

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class BackendConfig:
    """Resolved location of the backend offer collector."""

    server_address: str
    post_endpoint: str

    @property
    def post_url(self) -> str:
        return f"{self.server_address.rstrip('/')}/{self.post_endpoint.lstrip('/')}"


class Settings(BaseSettings):
    """Global crawler settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Backend collector
    BACKEND_URL: str = "http://localhost:8000"
    BACKEND_ENDPOINT: str = "offer"

    # Telemetry
    TELEMETRY_ENDPOINT: str = "http://localhost:4317"
    TELEMETRY_SERVICE_NAME: str = "aragog"
    TELEMETRY_EXPORTER: str = "otlp"  # 'otlp', 'console' or 'none'

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # 'json' or 'console'

    # HTTP behaviour
    FETCH_TIMEOUT_SECONDS: float = 600.0
    PUBLISH_TIMEOUT_SECONDS: float = 600.0
    FETCH_MAX_ATTEMPTS: int = 3
    FETCH_BACKOFF_SECONDS: float = 5.0
    DETAIL_FETCH_DELAY_SECONDS: float = 5.0

    # Backend statuses meaning "offer received but could not be matched"
    AMBIGUOUS_MATCH_STATUSES: str = "515"

    @model_validator(mode="after")
    def normalize_choices(self) -> "Settings":
        """Lower-case enumerated options so 'JSON' and 'json' behave the same."""
        self.TELEMETRY_EXPORTER = self.TELEMETRY_EXPORTER.strip().lower()
        self.LOG_FORMAT = self.LOG_FORMAT.strip().lower()
        self.LOG_LEVEL = self.LOG_LEVEL.strip().upper()
        return self

    def backend_config(self) -> BackendConfig:
        """Build the backend location handed to publishers."""
        return BackendConfig(
            server_address=self.BACKEND_URL,
            post_endpoint=self.BACKEND_ENDPOINT,
        )

    def get_ambiguous_statuses(self) -> FrozenSet[int]:
        """Parse AMBIGUOUS_MATCH_STATUSES into a set of status codes.

        Returns:
            Set of integer status codes, empty if the setting is blank
        """
        if not self.AMBIGUOUS_MATCH_STATUSES:
            return frozenset()
        return frozenset(
            int(s.strip()) for s in self.AMBIGUOUS_MATCH_STATUSES.split(",") if s.strip()
        )


settings = Settings()
