import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    database_url: str
    sql_echo: bool = False
    secret_key: str = "change-me-attendance-tracker-dev-secret-key"
    access_token_expire_minutes: int = 480
    max_upload_size_mb: int = 5
    log_level: str = "INFO"
    log_file: Optional[str] = "app.log"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    @property
    def max_upload_size(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024


def build_database_url() -> str:
    """DATABASE_URL wins; otherwise assemble the MySQL URL from DB_* parts."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "3306")
    db_user = os.getenv("DB_USER", "root")
    db_password = os.getenv("DB_PASSWORD", "")
    db_name = os.getenv("DB_NAME", "attendance")
    return f"mysql+aiomysql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def get_settings() -> Settings:
    """Read settings from the environment on every call."""
    log_file = os.getenv("LOG_FILE", "app.log")
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=build_database_url(),
        sql_echo=_as_bool(os.getenv("SQL_ECHO")),
        secret_key=os.getenv("SECRET_KEY", Settings.secret_key),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480")),
        max_upload_size_mb=int(os.getenv("MAX_UPLOAD_SIZE_MB", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=log_file or None,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        admin_email=os.getenv("ADMIN_EMAIL") or None,
        admin_password=os.getenv("ADMIN_PASSWORD") or None,
    )
