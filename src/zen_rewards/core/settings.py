"""Application settings and configuration.

This module defines all configuration options for the Zen Rewards service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from zen_rewards.core.deck import CARD_SYMBOLS


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Game rules are fixed per deployment; they are never tunable per request.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Zen Rewards", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    game_signing_secret: SecretStr = Field(alias="GAME_SIGNING_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./zen_rewards.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    store_max_retries: int = Field(default=3, ge=1, alias="STORE_MAX_RETRIES")

    # Redis configuration for rate limiting (empty string disables Redis)
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Memory game rules
    game_pair_count: int = Field(
        default=9,
        ge=1,
        le=len(CARD_SYMBOLS),
        alias="GAME_PAIR_COUNT",
    )
    game_session_ttl_seconds: int = Field(default=300, gt=0, alias="GAME_SESSION_TTL_SECONDS")
    game_cooldown_seconds: int = Field(default=86_400, ge=0, alias="GAME_COOLDOWN_SECONDS")
    game_reward_points: int = Field(default=10, ge=0, alias="GAME_REWARD_POINTS")
    game_max_elapsed_seconds: float = Field(default=60.0, gt=0, alias="GAME_MAX_ELAPSED_SECONDS")

    # Per-client request throttling for game routes (0 disables)
    game_rate_limit_per_minute: int = Field(default=30, ge=0, alias="GAME_RATE_LIMIT_PER_MINUTE")

    # Zen Points cycle length in days, counted from the first ledger write
    zen_points_cycle_days: int = Field(default=30, ge=1, alias="ZEN_POINTS_CYCLE_DAYS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def redis_enabled(self) -> bool:
        """Return True when a Redis URL has been configured."""
        return bool(self.redis_url.strip())


settings = Settings()  # type: ignore[call-arg]
