from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "KnowledgeBase AI"

    # Identity provider tokens
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./knowledgebase.db"
    DOCUMENT_PAGE_SIZE: int = 50

    # Gemini
    GOOGLE_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_TEMPERATURE: float = 0.2
    GEMINI_MAX_OUTPUT_TOKENS: int = 2048

    # Context budgets (characters)
    GENERAL_CONTEXT_MAX_CHARS: int = 5000
    DOCUMENT_CONTEXT_MAX_CHARS: int = 20000
    CHAT_CONTEXT_MAX_CHARS: int = 28000

    # URL fetching
    URL_FETCH_TIMEOUT: float = 15.0
    URL_FETCH_MAX_REDIRECTS: int = 5
    URL_CONTENT_MAX_CHARS: int = 8000

    # Web search fallback
    WEB_SEARCH_ENABLED: bool = True
    WEB_SEARCH_URL: str = "https://www.google.com/search"

    # Uploads
    MAX_UPLOAD_MB: int = 10

    # Rate limiting (empty disables it)
    REDIS_URL: str = ""

    # Comma separated list, empty or "*" allows every origin
    CORS_ORIGINS: str = ""

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def get_cors_origins(self) -> list:
        if not self.CORS_ORIGINS or self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024
