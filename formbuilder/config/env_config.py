from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database Configuration
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "formbuilder"
    DATABASE_URL: Optional[str] = None  # Overrides the parts above when set
    DB_ECHO: bool = False

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # JWT Configuration (tokens are issued by the auth service)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    # Submissions
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # Default cap for file fields without maxFileSize (bytes)

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Logging Configuration
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"


# Global settings instance
settings = Settings()
