from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DB_URL: str = "sqlite:///./data/clinicforms.db"
    DATA_DIR: str = "./data"
    EXPORT_DIR: str = "./exports"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None
    DEFAULT_EXPORT_DAYS: int = 30
    cors_allow_origins: List[str] = ["*"]
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
