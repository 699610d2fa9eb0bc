"""
Configuration management.
"""

import os
from dataclasses import dataclass, field

from utils.formatting import mask_secret


def _split_origins(value: str) -> list[str]:
    """Split a comma-separated origin list, dropping blanks."""
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    Secrets are never given defaults; a missing secret is reported by the
    intake endpoint as a configuration error.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Webhook relay
    webhook_url: str = field(default_factory=lambda: os.getenv("WEBHOOK_URL", ""))

    # Object storage (Supabase Storage REST API)
    storage_url: str = field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    storage_service_key: str = field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY", "")
    )
    storage_bucket: str = field(
        default_factory=lambda: os.getenv("SUPABASE_BUCKET", "") or "temp_files"
    )

    # CORS
    allowed_origins: list[str] = field(
        default_factory=lambda: _split_origins(os.getenv("ALLOWED_ORIGINS", ""))
    )
    preview_origin_suffix: str = field(
        default_factory=lambda: os.getenv("PREVIEW_ORIGIN_SUFFIX", "vercel.app")
    )

    # Outbound HTTP
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "30")))

    # Rate limiting
    rate_limit_window_seconds: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    )
    rate_limit_max_requests: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def webhook_configured(self) -> bool:
        """Check if the relay target is set."""
        return bool(self.webhook_url)

    @property
    def storage_configured(self) -> bool:
        """Check if storage endpoint and service credential are both set."""
        return bool(self.storage_url and self.storage_service_key)

    def to_dict(self) -> dict:
        """Convert config to dictionary. Secrets are masked."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "webhook_url": mask_secret(self.webhook_url),
            "storage_url": self.storage_url,
            "storage_service_key": mask_secret(self.storage_service_key),
            "storage_bucket": self.storage_bucket,
            "allowed_origins": list(self.allowed_origins),
            "preview_origin_suffix": self.preview_origin_suffix,
            "request_timeout": self.request_timeout,
            "rate_limit_window_seconds": self.rate_limit_window_seconds,
            "rate_limit_max_requests": self.rate_limit_max_requests,
        }
