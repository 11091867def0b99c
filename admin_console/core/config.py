# admin_console/core/config.py
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import computed_field

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Catalog Admin Console Backend"
    API_V1_STR: str = "/api/v1"
    LOGGING_LEVEL: str = os.getenv("LOGGING_LEVEL", "INFO")

    # --- Catalog backend ---
    CATALOG_API_URL: str = "http://127.0.0.1:8000"
    FRONTEND_KEY: str = ""
    CATALOG_TIMEOUT: float = 10.0
    CATALOG_READ_TIMEOUT: float = 20.0

    # --- Admin console ---
    ADMIN_API_KEY: Optional[str] = None
    CONSOLE_URL: str = "http://localhost:3000"
    CONSOLE_EXTRA_ORIGINS_STR: str = ""

    # --- Локальный запуск (run_server.py) ---
    SERVER_HOST: str = "127.0.0.1"
    SERVER_PORT: int = 8080

    # Валюта, в которой показываются надбавки опций атрибутов
    PRICE_CURRENCY: str = "AED"

    @property
    def CONSOLE_EXTRA_ORIGINS(self) -> List[str]:
        """Дополнительные CORS-источники через запятую."""
        return [o.strip() for o in self.CONSOLE_EXTRA_ORIGINS_STR.split(',') if o.strip()]

    # --- Нормализованный базовый URL бэкенда каталога ---
    @computed_field(return_type=str)
    @property
    def CATALOG_BASE_URL(self) -> str:
        return self.CATALOG_API_URL.strip().rstrip('/')

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

settings = Settings()
# Проверка при старте
if not settings.FRONTEND_KEY.strip():
    print("WARNING: FRONTEND_KEY is not set. Requests to the catalog backend will be sent without X-Frontend-Key.")
if not settings.ADMIN_API_KEY:
    print("WARNING: ADMIN_API_KEY is not set. Admin endpoints will answer 503.")
