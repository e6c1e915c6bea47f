"""Application configuration using Pydantic Settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent

_NINETY_DAYS = 90 * 24 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000  # PORT

    # Logging
    log_format: str = "json"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "helmsman"

    # Content
    static_dir: Path = PACKAGE_DIR / "public"
    index_file: Path = PACKAGE_DIR / "views" / "index.html"
    api_prefix: str = "/_api"

    # Security headers
    frameguard_action: str = "deny"  # 'deny' or 'sameorigin'
    # HSTS belongs on whatever terminates TLS; off unless explicitly enabled
    hsts_enabled: bool = False
    hsts_max_age: int = _NINETY_DAYS
    hsts_force: bool = True
    dns_prefetch_allow: bool = False
    no_cache: bool = True
    # A null value drops that directive from the defaults
    csp_directives: dict[str, list[str] | None] = {
        "default-src": ["'self'"],
        "script-src": ["'self'", "trusted-cdn.com"],
    }
    csp_use_defaults: bool = True
    csp_report_only: bool = False


settings = Settings()
