# backend/catalog_manager/core/config.py
"""
Este archivo contiene la configuración de la aplicación.
"""

from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path

# Apunta al directorio 'backend/'
BASE_DIR = Path(__file__).resolve().parent.parent.parent

class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic BaseSettings.
    Variables desde .env o el entorno, defaults seguros para el resto.
    """
    # Configuración general del proyecto
    BASE_DIR: Path = BASE_DIR
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Spare Parts Catalog Manager"
    PROJECT_VERSION: str = "0.1.0"

    # Base de datos: SQLite por defecto, PostgreSQL (asyncpg) si se define DATABASE_URL
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'manager.sqlite'}"

    # Directorios de datos y salida
    DATA_DIR: Path = BASE_DIR / "data"
    CATEGORY_IMAGES_DIR: Path = BASE_DIR / "data" / "images" / "spare-part-images"
    CATALOG_IMAGES_DIR: Path = BASE_DIR / "data" / "images" / "product-catalog-images"
    JSON_DIR: Path = BASE_DIR / "output" / "json"

    # Snapshot heredado (caché local o URL remota, ambos opcionales)
    LEGACY_CACHE_DIR: Optional[Path] = None
    LEGACY_BASE_URL: Optional[str] = None
    LEGACY_TIMEOUT_SECONDS: float = 10.0

    # Límite de subida de ficheros (CSV, ZIP, imágenes)
    UPLOAD_MAX_BYTES: int = 200 * 1024 * 1024

    # Logging - Defaults seguros
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        case_sensitive = False

# Instancia global de la configuración
settings = Settings()
