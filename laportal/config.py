"""
Application configuration from environment variables.
Loads .env from the project directory so SECRET_KEY and DATABASE_URL are found regardless of cwd.
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# bcrypt cost below this is too cheap to resist offline guessing
MIN_BCRYPT_ROUNDS = 10

# .env next to the package (parent of laportal/)
_PROJECT_DIR = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_DIR / ".env"

if _ENV_FILE.exists():
    from dotenv import load_dotenv
    load_dotenv(_ENV_FILE, override=False)


class Settings(BaseSettings):
    """Load and validate config from env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database: sqlite for local work and tests, postgresql (Supabase) for production
    database_url: str = "sqlite:///./laportal_dev.db"

    # Environment: set ENV=production in production.
    env: str = ""

    # JWT. SECRET_KEY has no default; startup refuses to run without it.
    secret_key: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 8

    bcrypt_rounds: int = 12
    min_password_length: int = 8

    # CORS: comma-separated origins
    cors_origins: str = "http://localhost:3000"

    # Optional directory holding the single-page front end (index.html + assets)
    static_dir: Path | None = None

    # GET /office-hours/sessions keeps sessions that ended less than this many hours ago
    office_hours_lookback_hours: int = 3

    # Rate limits per client address ("<count> per <n> <unit>")
    rate_limit_enabled: bool = True
    rate_limit_storage_uri: str = "memory://"
    login_rate_limit: str = "50 per 10 minutes"
    signup_rate_limit: str = "30 per hour"
    change_password_rate_limit: str = "30 per 10 minutes"
    reset_password_rate_limit: str = "50 per 15 minutes"

    debug: bool = False

    @field_validator("bcrypt_rounds")
    @classmethod
    def rounds_floor(cls, v: int) -> int:
        if v < MIN_BCRYPT_ROUNDS:
            raise ValueError(f"BCRYPT_ROUNDS must be at least {MIN_BCRYPT_ROUNDS}")
        return v

    @property
    def is_production(self) -> bool:
        return (self.env or "").strip().lower() == "production"


settings = Settings()
