from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DB_URL: str = "postgresql+asyncpg://localhost/pairbond"

    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_COOKIE_NAME: str = "access_token"

    VAPID_PRIVATE_KEY: str | None = None
    VAPID_EMAIL: str | None = None

    MATCHES_PAGE_SIZE: int = 10
    MATCHES_MAX_PAGE_SIZE: int = 50
    MATCH_NOTIFICATIONS_ENABLED: bool = True
    NOTIFY_HUMAN_MATCHES: bool = False

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1].parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@dataclass(frozen=True)
class MatchingConfig:
    """Knobs the matching engine is allowed to see."""

    page_size: int = 10
    max_page_size: int = 50
    notifications_enabled: bool = True
    notify_human_matches: bool = False

    @classmethod
    def from_settings(cls, s: "Settings") -> "MatchingConfig":
        return cls(
            page_size=s.MATCHES_PAGE_SIZE,
            max_page_size=s.MATCHES_MAX_PAGE_SIZE,
            notifications_enabled=s.MATCH_NOTIFICATIONS_ENABLED,
            notify_human_matches=s.NOTIFY_HUMAN_MATCHES,
        )

settings = Settings()
