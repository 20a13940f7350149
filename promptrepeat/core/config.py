from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # LLM backend (Google Gemini)
    gemini_api_key: str = ""
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    default_model: str = "gemini-3-flash-preview"  # execution model when the caller sends none
    auxiliary_model: str = "gemini-3-flash-preview"  # classifier / intent expansion / alignment
    llm_timeout_seconds: float = 60.0  # upper bound for every backend call
    llm_temperature: float = 0.7
    llm_max_output_tokens: int = 4096

    # Rate limiting for the optimize endpoints (per caller, fixed window)
    optimize_rate_limit: int = 20
    optimize_rate_window_seconds: int = 60
    rate_limit_sweep_interval_seconds: float = 60.0

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://promptrepeat.com,https://app.promptrepeat.com"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup."""
    errors: list[str] = []

    if settings.optimize_rate_limit < 1:
        errors.append("OPTIMIZE_RATE_LIMIT must be at least 1")

    if settings.optimize_rate_window_seconds < 1:
        errors.append("OPTIMIZE_RATE_WINDOW_SECONDS must be at least 1")

    if settings.app_env == "production":
        if not settings.gemini_api_key:
            errors.append("GEMINI_API_KEY must be set in production")
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
