from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./aprova.db"
    DB_ECHO: bool = False
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    CACHE_EXPIRE_SECONDS: int = 1800
    TOKEN_CACHE_SECONDS: int = 300
    GROQ_API_KEY: str = ""
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    AI_TEMPERATURE: float = 0.3
    SECRET_KEY: str = ""
    FILE_STORAGE_DIR: str = "/tmp/aprova_files"
    MAX_UPLOAD_SIZE_MB: int = 10
    URL_FETCH_TIMEOUT_SECONDS: float = 15.0
    CORS_PROXIES: List[str] = [
        "https://api.allorigins.win/get?url=",
        "https://corsproxy.io/?",
        "https://cors-anywhere.herokuapp.com/",
        "https://thingproxy.freeboard.io/fetch/",
    ]
    STUDY_DAY_START: str = "09:00"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.GROQ_API_KEY)


settings = Settings()
