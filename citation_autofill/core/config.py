"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_FORM_URL = "https://portal.laserfiche.com/h4073/forms/ParkingTicketAppeal"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_str(name: str, default: str = "") -> str:
    return os.getenv(name, "").strip() or default


@dataclass(frozen=True)
class DocumentAIConfig:
    """Google Cloud Document AI processor settings."""

    project_id: str
    processor_id: str
    location: str
    credentials_file: str = ""
    client_email: str = ""
    private_key: str = ""
    timeout_seconds: int = 60

    @property
    def is_configured(self) -> bool:
        return bool(self.project_id and self.processor_id)


@dataclass(frozen=True)
class AutofillConfig:
    """Timings and defaults for the form-fill browser session."""

    default_form_url: str = DEFAULT_FORM_URL
    navigation_timeout_ms: int = 30000
    settle_delay_ms: int = 2000
    fill_delay_ms: int = 500
    fill_timeout_ms: int = 5000
    preview_hold_ms: int = 10000
    preview_close_delay_ms: int = 15000
    preview_slowmo_ms: int = 1000
    viewport_width: int = 1280
    viewport_height: int = 720


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int
    upload_max_bytes: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    document_ai: DocumentAIConfig
    autofill: AutofillConfig
    logging: LoggingConfig
    security: SecurityConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment."""
        private_key = os.getenv("GOOGLE_CLOUD_PRIVATE_KEY", "").replace("\\n", "\n").strip()
        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]
        upload_max_bytes = _env_int("UPLOAD_MAX_BYTES", 10 * 1024 * 1024)

        return AppConfig(
            document_ai=DocumentAIConfig(
                project_id=_env_str("GOOGLE_CLOUD_PROJECT_ID"),
                processor_id=_env_str("GOOGLE_CLOUD_PROCESSOR_ID"),
                location=_env_str("GOOGLE_CLOUD_LOCATION", "us"),
                credentials_file=_env_str("GOOGLE_APPLICATION_CREDENTIALS"),
                client_email=_env_str("GOOGLE_CLOUD_CLIENT_EMAIL"),
                private_key=private_key,
                timeout_seconds=_env_int("DOCUMENT_AI_TIMEOUT_SECONDS", 60),
            ),
            autofill=AutofillConfig(
                default_form_url=_env_str("DEFAULT_FORM_URL", DEFAULT_FORM_URL),
                navigation_timeout_ms=_env_int("AUTOFILL_NAVIGATION_TIMEOUT_MS", 30000),
                settle_delay_ms=_env_int("AUTOFILL_SETTLE_DELAY_MS", 2000),
                fill_delay_ms=_env_int("AUTOFILL_FILL_DELAY_MS", 500),
                fill_timeout_ms=_env_int("AUTOFILL_FILL_TIMEOUT_MS", 5000),
                preview_hold_ms=_env_int("AUTOFILL_PREVIEW_HOLD_MS", 10000),
                preview_close_delay_ms=_env_int("AUTOFILL_PREVIEW_CLOSE_DELAY_MS", 15000),
                preview_slowmo_ms=_env_int("AUTOFILL_PREVIEW_SLOWMO_MS", 1000),
                viewport_width=_env_int("AUTOFILL_VIEWPORT_WIDTH", 1280),
                viewport_height=_env_int("AUTOFILL_VIEWPORT_HEIGHT", 720),
            ),
            logging=LoggingConfig(level=_env_str("LOG_LEVEL", "INFO")),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                # Multipart framing needs headroom above the file limit.
                request_max_bytes=_env_int(
                    "REQUEST_MAX_BYTES", upload_max_bytes + 2 * 1024 * 1024
                ),
                upload_max_bytes=upload_max_bytes,
            ),
        )
