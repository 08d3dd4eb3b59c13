from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parents[1]


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    """Runtime configuration handed to the application factory."""

    database_url: str = "sqlite:///./taskflow.db"
    secret_key: str = "change-me"
    access_token_expire_minutes: int = 60 * 24 * 7
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    frontend_url: str = "http://localhost:3000"
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    email_from: str = "TaskFlow <no-reply@taskflow.local>"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the environment and backend/.env (if present)."""
        load_dotenv(BACKEND_DIR / ".env")

        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(cls.access_token_expire_minutes))
            ),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000")),
            frontend_url=os.getenv("FRONTEND_URL", cls.frontend_url),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=int(os.getenv("SMTP_PORT", str(cls.smtp_port))),
            smtp_user=os.getenv("SMTP_USER") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            email_from=os.getenv("EMAIL_FROM", cls.email_from),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
