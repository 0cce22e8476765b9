from functools import lru_cache
from pathlib import Path
from typing import List
from urllib.parse import urlparse
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def _split_csv(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _origin_of(url: str) -> str:
    parsed = urlparse(url.strip())
    if parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return url.strip().rstrip("/")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), case_sensitive=False)

    APP_NAME: str = "GuestDesk"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_PREFIX: str = "/api"
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 5000

    DATABASE_URL: str = "sqlite:///./guestdesk.db"

    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    # 7 days, matching the dashboard's remembered login.
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Guests land here after scanning the organization's QR code.
    CLIENT_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    SOCKET_PATH: str = "/socket.io"
    DASHBOARD_NAMESPACE: str = "/realtime/dashboard"

    GUEST_CODE_MAX_ATTEMPTS: int = 10
    DEFAULT_MIN_GUEST_VISIT_MINUTES: int = 15
    DEFAULT_LOCATIONS: str = "Reception,Main Office"
    DEFAULT_STAFF_MEMBERS: str = "Reception Staff"

    # Dashboard client
    API_URL: str = "http://localhost:5000"
    DASHBOARD_TICK_SECONDS: float = 1.0
    DASHBOARD_REFRESH_SECONDS: float = 10.0
    CLIENT_REQUEST_TIMEOUT_SECONDS: float = 20.0

    @property
    def cors_origins(self) -> List[str]:
        # The guest sign-in app must always be allowed.
        candidates = [*_split_csv(self.CORS_ORIGINS), self.CLIENT_URL]
        origins: list[str] = []
        for candidate in candidates:
            origin = _origin_of(candidate)
            if origin and origin not in origins:
                origins.append(origin)
        return origins

    @property
    def default_locations(self) -> List[str]:
        return _split_csv(self.DEFAULT_LOCATIONS)

    @property
    def default_staff_members(self) -> List[str]:
        return _split_csv(self.DEFAULT_STAFF_MEMBERS)


@lru_cache
def get_settings() -> Settings:
    return Settings()
