from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    DB_URI: str = "sqlite:///./thermo.db"
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"
    # Optional admin seeded at startup when both are set
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""
    # Optional read-only operator seeded the same way
    VIEWER_EMAIL: str = ""
    VIEWER_PASSWORD: str = ""
    # Range query / export limits
    READINGS_DEFAULT_LIMIT: int = 1000
    READINGS_MAX_LIMIT: int = 10000
    EXPORT_DEFAULT_LIMIT: int = 100000

    model_config = SettingsConfigDict(
        env_file=[
            Path(__file__).resolve().parents[2] / ".env",
            Path(".env"),
        ],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS.strip() or self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
