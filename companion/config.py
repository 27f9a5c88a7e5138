"""Pydantic settings loaded from .env, with conf.json overlay."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# conf.json: runtime config (separate from .env secrets)
# ---------------------------------------------------------------------------


def get_companion_dir() -> Path:
    """Resolve the data directory. COMPANION_DIR env var or ~/.config/companion."""
    d = os.environ.get("COMPANION_DIR", "")
    return Path(d).expanduser() if d else Path.home() / ".config" / "companion"


class CompanionConfig(BaseModel):
    database_url: str = ""
    log_level: str = ""
    log_file: str = ""
    cors_allow_all_origins: bool | None = None  # None = use Settings default
    admin_allowed_hosts: list[str] = []


_logger = logging.getLogger(__name__)


def load_conf() -> CompanionConfig:
    """Load conf.json from the data directory."""
    conf_path = get_companion_dir() / "conf.json"
    if conf_path.exists():
        try:
            return CompanionConfig.model_validate_json(conf_path.read_text())
        except Exception:
            _logger.warning("Failed to parse %s, using defaults", conf_path, exc_info=True)
    return CompanionConfig()


# ---------------------------------------------------------------------------
# Secret auto-generation
# ---------------------------------------------------------------------------


def _ensure_secrets(env_file: Path) -> None:
    """Generate SECRET_KEY (session cookie signing) if missing, append to .env."""
    import secrets as _secrets

    if os.environ.get("SECRET_KEY"):
        return

    key = _secrets.token_urlsafe(32)
    os.environ["SECRET_KEY"] = key
    env_file.parent.mkdir(parents=True, exist_ok=True)
    with open(env_file, "a") as f:
        f.write(f"\nSECRET_KEY={key}\n")


# ---------------------------------------------------------------------------
# Bootstrap: load .env, generate secrets, load conf.json
# ---------------------------------------------------------------------------

_env_file = BASE_DIR.parent / ".env"
load_dotenv(_env_file)
_ensure_secrets(_env_file)
_conf = load_conf()

# ---------------------------------------------------------------------------
# Settings (pydantic-settings): .env / env vars override conf.json defaults
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    SECRET_KEY: str = "change-me-in-production"
    DEBUG: bool = False

    DATABASE_URL: str = _conf.database_url or f"sqlite:///{BASE_DIR / 'db.sqlite3'}"

    CORS_ALLOW_ALL_ORIGINS: bool = (
        _conf.cors_allow_all_origins if _conf.cors_allow_all_origins is not None else True
    )

    LOG_LEVEL: str = _conf.log_level or "INFO"
    LOG_FILE: str = _conf.log_file or ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    # Sessions and the X-Auth-Token fallback
    SESSION_MAX_AGE_SECONDS: int = 7 * 24 * 60 * 60
    SESSION_COOKIE_SECURE: bool = False
    AUTH_TOKEN_MAX_AGE_SECONDS: int = 7 * 24 * 60 * 60  # 0 disables the age check

    DEFAULT_COINS: int = 5

    # Chat completion
    LLM_PROVIDER: str = "openai"  # openai, anthropic, openai_compatible
    LLM_MODEL: str = "gpt-4o"
    LLM_API_KEY: str = ""
    LLM_BASE_URL: str = ""  # For openai_compatible
    LLM_TEMPERATURE: float = 0.8
    LLM_MAX_TOKENS: int = 150
    LLM_PRESENCE_PENALTY: float = 0.6
    LLM_FREQUENCY_PENALTY: float = 0.5
    CONTEXT_WINDOW_TURNS: int = 15

    # Speech
    OPENAI_API_KEY: str = ""
    STT_MODEL: str = "whisper-1"
    ELEVENLABS_API_KEY: str = ""
    ELEVENLABS_BASE_URL: str = "https://api.elevenlabs.io/v1"
    ELEVENLABS_MODEL_ID: str = "eleven_multilingual_v2"

    # Payments
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com/v1"
    PAYMENT_CURRENCY: str = "INR"

    # Admin
    ADMIN_USERNAME: str = ""
    ADMIN_PASSWORD: str = ""
    ADMIN_ALLOWED_HOSTS: list[str] = _conf.admin_allowed_hosts or ["localhost", ".replit.dev"]

    EXTERNAL_TIMEOUT_SECONDS: float = 60.0

    model_config = ConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def payments_enabled(self) -> bool:
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)

    @property
    def admin_enabled(self) -> bool:
        return bool(self.ADMIN_USERNAME and self.ADMIN_PASSWORD)


settings = Settings()
