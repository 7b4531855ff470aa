from pydantic import ConfigDict
from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    CORS_ORIGIN: str = "http://localhost:3000"

    ACCESS_TOKEN_SECRET: str = "dev-access"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_SECRET: str = "dev-refresh"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    JWT_ALG: str = "HS256"
    BCRYPT_ROUNDS: int = 10
    COOKIE_SECURE: bool = True

    MEDIA_BACKEND: str = "local"
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    MEDIA_DIR: str = "media"
    MEDIA_BASE_URL: str = "http://localhost:8000/media"
    TEMP_DIR: str = "public/temp"
    MAX_UPLOAD_MB: int = 200

    DEFAULT_LOCALE: str = "en"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    model_config = ConfigDict(env_file = ".env")

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
