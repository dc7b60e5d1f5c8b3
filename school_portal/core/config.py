# school_portal/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List, Optional

DEFAULT_PUBLIC_PATHS = [
    "/api/auth",
    "/login",
    "/unauthorized",
    "/static",
    "/favicon.ico",
    "/images",
    "/health",
    "/docs",
    "/openapi.json",
]

class Settings(BaseSettings):
    database_url: str
    session_secret_key: str
    redis_url: Optional[str] = None

    session_cookie_name: str = 'session_token'
    session_max_age: int = 60 * 60 * 24 * 30
    session_cookie_secure: bool = False
    public_paths: List[str] = DEFAULT_PUBLIC_PATHS

    dashboard_cache_ttl: int = 60

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith('sqlite')

settings = Settings()
