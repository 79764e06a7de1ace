from pydantic_settings import BaseSettings
from typing import List
from pydantic import model_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./pharmatrack.db"
    ENVIRONMENT: str = "development"
    AUTO_CREATE_TABLES: bool = True
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    DEBUG: bool = True
    APP_NAME: str = "PharmaTrack"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    ENABLE_REQUEST_ID: bool = True
    ENABLE_REQUEST_LOGGING: bool = True
    ENABLE_SECURITY_HEADERS: bool = True
    STRICT_TRANSPORT_SECURITY_SECONDS: int = 31536000
    READINESS_CHECK_DATABASE: bool = True
    WHATSAPP_BASE_URL: str = "https://wa.me"
    DEFAULT_ALERT_PHONE: str = ""
    # Expiry alerts on zero-stock items are not actionable; pending product sign-off.
    ALERT_GATE_EXPIRY_ON_STOCK: bool = True
    DIGEST_MAX_ITEMS_PER_SECTION: int = 0

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() in {"prod", "production"}

    @property
    def digest_item_limit(self):
        return self.DIGEST_MAX_ITEMS_PER_SECTION or None

    @model_validator(mode="after")
    def validate_production_safety(self):
        if self.DIGEST_MAX_ITEMS_PER_SECTION < 0:
            raise ValueError("DIGEST_MAX_ITEMS_PER_SECTION must be zero (unlimited) or positive.")

        if not self.is_production:
            return self

        if "sqlite" in self.DATABASE_URL.lower():
            raise ValueError("SQLite is not allowed when ENVIRONMENT is production.")

        if self.AUTO_CREATE_TABLES:
            raise ValueError("AUTO_CREATE_TABLES must be false in production; provision the schema explicitly.")

        return self


settings = Settings()
