import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):

    port: int = 8000
    environment: str = "development"

    postgres_user: str = os.getenv("POSTGRES_USER", "user")
    postgres_password: str = os.getenv("POSTGRES_PASSWORD", "password")
    postgres_db: str = os.getenv("POSTGRES_DB", "quizguard_db")
    postgres_host: str = os.getenv("POSTGRES_HOST", "db")
    postgres_port: int = 5432

    # Full URL override, e.g. "sqlite://" for local runs and tests
    sqlalchemy_database_uri: Optional[str] = None

    @property
    def database_url(self) -> str:
        if self.sqlalchemy_database_uri:
            return self.sqlalchemy_database_uri
        return f"postgresql://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    cors_origins_str: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins_str.split(",")]

    # Zero tolerance: the first tab switch ends the attempt
    max_allowed_violations: int = 0
    warning_threshold: int = 1

    default_timezone: str = "Asia/Kolkata"
    timezone_display_format: str = "%d.%m.%Y, %H:%M:%S"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
