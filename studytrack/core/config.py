from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://studytrack:studytrack@db:5432/studytrack"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Header set by the upstream identity provider with the opaque user id.
    AUTH_USER_HEADER: str = "X-User-Id"

    # Force the unlocked-achievements capability on/off.
    # Leave unset to detect it from the live study_streaks columns.
    ACHIEVEMENT_TRACKING: Optional[bool] = None

    NEXT_ACHIEVEMENTS_LIMIT: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
