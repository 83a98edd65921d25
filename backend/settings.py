from pydantic_settings import BaseSettings
from pydantic import AnyUrl

class Settings(BaseSettings):
    DATABASE_URL: AnyUrl
    DATABASE_SSL: bool = True
    DATABASE_ECHO: bool = False

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # one JSON object per line, for log shippers

    class Config:
        env_file = ".env"

settings = Settings()
