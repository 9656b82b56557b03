from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # API Configuration
    APP_NAME: str = "SecureScan"
    VERSION: str = "2.0.0"
    API_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Scan history (session / trend log)
    DATABASE_URL: str = "sqlite:///./securescan.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Reports: "pdf" renders with ReportLab, "text" writes a plain-text report
    REPORT_FORMAT: str = "pdf"

    # Upload limits
    MAX_EMAIL_SIZE_MB: int = 25

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
