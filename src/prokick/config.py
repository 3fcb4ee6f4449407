"""Client configuration loaded from environment variables.

Backend endpoint, request behaviour, and the booking rules the client
enforces as UX guards.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class ProKickConfig(BaseSettings):
    """ProKick client configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Backend (PostgREST / Supabase REST endpoint)
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the Supabase project (without /rest/v1)",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Anonymous API key sent as apikey and bearer token",
    )

    # Request behaviour
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout applied to every backend request",
    )
    read_retry_attempts: int = Field(
        default=3,
        description="Attempts for read queries on transient failures (RPCs are never retried)",
    )
    retry_wait_seconds: float = Field(
        default=1.0,
        description="Fixed wait between read retries",
    )

    # Booking rules (advisory, the backend is authoritative)
    cancellation_cutoff_hours: int = Field(
        default=2,
        description="Hours before class start after which cancellation is refused",
    )
    max_extra_sessions: int = Field(
        default=2,
        description="Extra sessions purchasable per package",
    )
    currency: str = Field(
        default="THB",
        description="Currency shown in purchase prompts",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: ProKickConfig | None = None


def get_config() -> ProKickConfig:
    """Get the client configuration singleton.

    Returns:
        ProKickConfig: Client configuration instance
    """
    global _config
    if _config is None:
        _config = ProKickConfig()
    return _config
