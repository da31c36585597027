from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Spark API"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Admin/debug endpoints (manual match creation)
    ENABLE_DEBUG_ROUTES: bool = False

    # CORS - Allowed origins (comma-separated in env)
    CORS_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.ENVIRONMENT == "development" and self.DEBUG:
            return [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # PostgreSQL
    DATABASE_URL: str

    # Identity provider (tokens are issued elsewhere, only verified here)
    AUTH_JWT_SECRET: str
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # Upstash Redis (optional - like quota disabled if not set)
    UPSTASH_REDIS_URL: str = ""
    UPSTASH_REDIS_TOKEN: str = ""

    # Firebase (optional - chat mirror disabled if not set)
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_PRIVATE_KEY: str = ""
    FIREBASE_CLIENT_EMAIL: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""  # defaults to <project>.appspot.com

    # AI coach (OpenAI-compatible endpoints, coach disabled if no key)
    AI_API_KEY: str = ""
    AI_BASE_URL: str = "https://api.groq.com/openai/v1"
    AI_MODEL: str = "llama-3.3-70b-versatile"
    AI_FALLBACK_API_KEY: str = ""
    AI_FALLBACK_BASE_URL: str = "https://api.cerebras.ai/v1"
    AI_FALLBACK_MODEL: str = "llama-3.3-70b"
    AI_TIMEOUT_SECONDS: float = 30.0

    # Matching
    LIKE_LIMIT_PER_DAY: int = 100
    ACTIVE_WITHIN_DAYS: int = 7
    DISCOVER_LIMIT: int = 50

    # Profile photos
    MAX_PHOTOS: int = 6
    MAX_PHOTO_BYTES: int = 5 * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
