import hashlib
import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (if exists)
load_dotenv()

DEFAULT_ADMIN_PASSWORD = "admin123"
DEFAULT_JWT_SECRET = "your-super-secret-jwt-key-change-in-production"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings built once at startup and handed to `create_app`."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    environment: str = Field(default="development", alias="APP_ENV")

    # Single admin credential pair
    admin_email: str = Field(default="admin@gasgenius.com", alias="ADMIN_EMAIL")
    admin_password: Optional[str] = Field(
        default=DEFAULT_ADMIN_PASSWORD, alias="ADMIN_PASSWORD"
    )
    admin_password_hash: str = Field(
        default=hashlib.sha256(DEFAULT_ADMIN_PASSWORD.encode()).hexdigest(),
        alias="ADMIN_PASSWORD_HASH",
    )

    # JWT
    jwt_secret: str = Field(default=DEFAULT_JWT_SECRET, alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = Field(default=60 * 24, alias="TOKEN_TTL_MINUTES")

    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Uploaded images live under <public_dir>/uploads/projects
    public_dir: str = Field(default="public", alias="PUBLIC_DIR")
    frontend_dir: Optional[str] = Field(default=None, alias="FRONTEND_DIR")

    cors_origins: List[str] = Field(default=["*"], alias="CORS_ORIGINS")
    port: int = Field(default=5001, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    def warn_insecure_defaults(self) -> None:
        if self.is_development:
            return
        if self.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET is the built-in default; set it in production")
        if self.admin_password == DEFAULT_ADMIN_PASSWORD:
            logger.warning(
                "ADMIN_PASSWORD is the built-in default; set it in production"
            )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
