"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database (DATABASE_URL wins over the postgres_* parts)
    database_url: Optional[str] = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "learnify"
    postgres_password: str = "password"
    postgres_db: str = "learnify"

    # MongoDB (GridFS file storage)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "learnify_files"
    files_bucket: str = "submissions"

    # JWT Auth (optional alternative to the x-student-id header)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Check-ins
    check_in_cooldown_hours: float = 4

    # Points
    check_in_points: int = 10
    review_points: int = 5
    midterm_project_points: int = 50
    final_project_points: int = 100
    project_note_points: int = 2
    project_note_points_cap: int = 20
    vote_points: int = 5
    quiz_correct_points: int = 5
    vote_winner_bonus_points: int = 20

    # Uploads
    max_upload_mb: int = 10
    public_base_url: str = "http://localhost:3000"

    # App
    cors_origins: List[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    @property
    def sqlalchemy_url(self) -> str:
        """Database URL, built from the postgres_* parts when DATABASE_URL is unset."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
