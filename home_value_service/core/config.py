# home_value_service/core/config.py

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Values come from the process environment (Docker Compose passes the
    # root .env file through).
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Database ---
    DATABASE_URL_PROD: str = ""
    DATABASE_URL_LOCAL: str = "sqlite:///./home_values.db"

    # --- Auth ---
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # --- Image storage ---
    # 'local' writes under LOCAL_UPLOAD_DIR and serves it from
    # PUBLIC_UPLOAD_URL_PREFIX; 's3' uploads to AWS_S3_BUCKET_NAME.
    STORAGE_BACKEND: str = "local"
    LOCAL_UPLOAD_DIR: str = "public/uploads"
    PUBLIC_UPLOAD_URL_PREFIX: str = "/uploads"

    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_S3_BUCKET_NAME: Optional[str] = None
    AWS_S3_REGION: str = "us-east-1"
    # Set for MinIO in local development.
    AWS_S3_ENDPOINT_URL: Optional[str] = None

    MAX_IMAGE_SIZE_BYTES: int = 10 * 1024 * 1024  # 10MB
    MAX_IMAGES_PER_UPLOAD: int = 10

    # --- Workflow policy ---
    # When the assigned expert replies, move the request to 'in_progress'.
    MARK_IN_PROGRESS_ON_EXPERT_REPLY: bool = True

    # --- HTTP ---
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    RATE_LIMIT: str = "60/minute"
    LOG_LEVEL: str = "INFO"

    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )


# Create a single instance of the settings
settings = Settings()
