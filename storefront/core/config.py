# storefront/core/config.py
import os
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Sports Nation Storefront API"
    API_V1_STR: str = "/api/v1"
    LOGGING_LEVEL: str = os.getenv("LOGGING_LEVEL", "INFO")

    # --- Upstream catalog API (Next.js storefront) ---
    CATALOG_API_URL: str = "http://localhost:3000"
    CATALOG_API_TOKEN: Optional[str] = None
    CATALOG_TIMEOUT: float = 10.0
    CATALOG_READ_TIMEOUT: float = 20.0

    # --- Admin ---
    ADMIN_API_KEY: Optional[str] = None

    # --- Frontend / CORS ---
    STOREFRONT_URL: str = "http://localhost:3000"
    EXTRA_CORS_ORIGINS_STR: str = ""

    CURRENCY_SYMBOL: str = "৳"

    # --- Корзины в памяти процесса ---
    CART_MAX_CARTS: int = 10000

    @property
    def EXTRA_CORS_ORIGINS(self) -> List[str]:
        """Разбирает строку дополнительных CORS-источников (через запятую)."""
        return [origin.strip() for origin in self.EXTRA_CORS_ORIGINS_STR.split(',') if origin.strip()]

    # --- Вычисляемое поле: корень REST API каталога ---
    @computed_field(return_type=str)
    @property
    def CATALOG_API_BASE(self) -> str:
        return f"{self.CATALOG_API_URL.rstrip('/')}/api"

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

settings = Settings()
if not settings.ADMIN_API_KEY:
    print("WARNING: ADMIN_API_KEY is not set. Admin endpoints will be unavailable.")
