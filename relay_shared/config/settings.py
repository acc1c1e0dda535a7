"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = "development"
    debug: bool = True
    # Root log level by name (DEBUG, INFO, ...). Empty derives it from debug.
    log_level: str = ""

    # Server
    host: str = "0.0.0.0"
    port: int = 3001

    # Comma-separated list of allowed origins (empty allows any origin)
    allowed_origins: str = ""

    # WebSocket
    ws_max_message_size: int = 64 * 1024  # 64 KB, larger frames are dropped
    ws_broadcast_batch_size: int = 50  # Connections to send to in parallel
    ws_send_timeout: float = 5.0  # Per-recipient send timeout in seconds
    # Idle timeout for the read loop. None keeps connections open until the
    # client leaves; ping/pong liveness is driven by clients.
    ws_receive_timeout: float | None = None
    ws_max_total_connections: int = 1000

    # Message ids
    server_id_prefix: str = "srv_"

    # Upload authorization (signed upload credentials)
    upload_public_key: str = ""
    upload_private_key: str = ""
    upload_url_endpoint: str = ""
    upload_folder: str = "bargain/chat/uploads"
    upload_token_ttl: int = 30 * 60  # Seconds before an authorization expires

    def validate_production_secrets(self) -> list[str]:
        """
        Validate that the production configuration is complete.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.upload_private_key:
                errors.append("UPLOAD_PRIVATE_KEY must be set in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

        return errors

    @property
    def cors_origins(self) -> list[str]:
        """Parsed CORS origins, ``["*"]`` when none are configured."""
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return origins or ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
