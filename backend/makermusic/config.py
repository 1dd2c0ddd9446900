import os
from dataclasses import dataclass

from dotenv import load_dotenv


BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_DATABASE_URL = f"sqlite:///{os.path.join(BACKEND_DIR, 'makermusic.db')}"
DEFAULT_UPLOAD_DIR = os.path.join(BACKEND_DIR, "uploads")


class ConfigError(Exception):
    pass


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    database_url: str = DEFAULT_DATABASE_URL
    db_pool_size: int = 10
    jwt_algorithm: str = "HS256"
    jwt_exp_minutes: int = 60
    reset_code_exp_minutes: int = 60
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    upload_dir: str = DEFAULT_UPLOAD_DIR
    max_upload_mb: int = 100
    cors_origins: tuple[str, ...] = ("*",)
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    admin_email: str = ""
    admin_password: str = ""

    @property
    def mail_configured(self) -> bool:
        return bool(self.smtp_username and self.smtp_password)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Settings":
        """Read settings from the process environment, after loading ``.env``.

        ``JWT_SECRET`` is mandatory. Mail credentials may be empty, in which
        case only the mail-dependent routes degrade.
        """
        load_dotenv(dotenv_path=env_file or os.path.join(BACKEND_DIR, ".env"))

        jwt_secret = os.getenv("JWT_SECRET", "")
        if not jwt_secret:
            raise ConfigError("JWT_SECRET is not configured")

        return cls(
            jwt_secret=jwt_secret,
            database_url=os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL,
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_exp_minutes=int(os.getenv("JWT_EXP_MINUTES", "60")),
            reset_code_exp_minutes=int(os.getenv("RESET_CODE_EXP_MINUTES", "60")),
            smtp_host=os.getenv("SMTP_SERVER", "smtp.gmail.com"),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_username=os.getenv("EMAIL_USER", ""),
            smtp_password=os.getenv("EMAIL_PASS", "").replace(" ", ""),
            upload_dir=os.getenv("UPLOAD_DIR") or DEFAULT_UPLOAD_DIR,
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "100")),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ("*",),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            admin_email=os.getenv("ADMIN_EMAIL", ""),
            admin_password=os.getenv("ADMIN_PASSWORD", ""),
        )
