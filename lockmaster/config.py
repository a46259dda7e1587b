# =======================================================================================
# lockmaster/config.py - Configuration Management
# =======================================================================================
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"

def _env_optional(name: str) -> Optional[str]:
    """Helper for optional string settings (empty means unset)."""
    v = os.getenv(name)
    return v if v else None

class Config:
    # Database
    DB_URL: str = os.getenv("DB_URL", "sqlite:///./lockmaster.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))

    # API Settings
    API_DEBUG: bool = _env_bool("API_DEBUG")
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Portal behaviour
    PORTAL_TIMEZONE: str = os.getenv("PORTAL_TIMEZONE", "UTC")
    LOW_BATTERY_THRESHOLD: int = int(os.getenv("LOW_BATTERY_THRESHOLD", "20"))
    RECENT_ACTIVITY_LIMIT: int = int(os.getenv("RECENT_ACTIVITY_LIMIT", "10"))

    # TTLock cloud API
    TTLOCK_API_BASE: str = os.getenv("TTLOCK_API_BASE", "https://euapi.ttlock.com")
    TTLOCK_CLIENT_ID: Optional[str] = _env_optional("TTLOCK_CLIENT_ID")
    TTLOCK_CLIENT_SECRET: Optional[str] = _env_optional("TTLOCK_CLIENT_SECRET")
    TTLOCK_USERNAME: Optional[str] = _env_optional("TTLOCK_USERNAME")
    TTLOCK_PASSWORD: Optional[str] = _env_optional("TTLOCK_PASSWORD")
    TTLOCK_TIMEOUT: float = float(os.getenv("TTLOCK_TIMEOUT", "10"))
    TTLOCK_PAGE_SIZE: int = int(os.getenv("TTLOCK_PAGE_SIZE", "100"))

    # Sync Settings
    TTLOCK_RETRY_ATTEMPTS: int = int(os.getenv("TTLOCK_RETRY_ATTEMPTS", "3"))
    TTLOCK_RETRY_DELAY: float = float(os.getenv("TTLOCK_RETRY_DELAY", "1"))
    TTLOCK_SYNC_TIMEOUT: float = float(os.getenv("TTLOCK_SYNC_TIMEOUT", "60"))

    @property
    def ttlock_configured(self) -> bool:
        return all([
            self.TTLOCK_CLIENT_ID, self.TTLOCK_CLIENT_SECRET,
            self.TTLOCK_USERNAME, self.TTLOCK_PASSWORD,
        ])

config = Config()
