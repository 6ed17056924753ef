"""Runtime configuration for the tail forwarder."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True, slots=True)
class ForwarderConfig:
    """Immutable parameters handed to the transformer and delivery client."""

    api_key: str | None
    service_name: str | None
    environment: str | None = None
    site: str | None = None
    emit_summary_records: bool = True

    def missing_settings(self) -> list[str]:
        """Return env var names of required settings that are absent."""
        missing: list[str] = []
        if not self.api_key:
            missing.append("DATADOG_API_KEY")
        if not self.service_name:
            missing.append("SERVICE_NAME")
        return missing


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    datadog_api_key: str | None = None
    service_name: str | None = None
    environment: str | None = Field(
        default=None,
        description="Value for the env tag; logs are tagged env:dev when unset.",
    )
    datadog_site: str | None = Field(
        default=None,
        description="Datadog site, e.g. datadoghq.eu. Selects the v2 intake with header auth.",
    )
    emit_summary_records: bool = True
    log_level: str = "INFO"

    def forwarder_config(self) -> ForwarderConfig:
        return ForwarderConfig(
            api_key=self.datadog_api_key,
            service_name=self.service_name,
            environment=self.environment,
            site=self.datadog_site,
            emit_summary_records=self.emit_summary_records,
        )


settings = Settings()
