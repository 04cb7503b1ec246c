# backend/catalog_manager/api/deps.py
"""
Módulo de dependencias para FastAPI.

Centraliza las dependencias que se inyectan en los endpoints: la sesión de base
de datos, la configuración, los almacenes de imágenes y los servicios de
importación y exportación. Los tests sustituyen cualquiera de ellas con
`app.dependency_overrides`.
"""

from typing import AsyncGenerator

from fastapi import Depends, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.core.config import Settings, settings
from catalog_manager.db.database import AsyncSessionLocal
from catalog_manager.services.export_service import ExportService
from catalog_manager.services.image_store import ImageStore, LocalImageStore
from catalog_manager.services.import_service import ImportService
from catalog_manager.services.legacy import LegacySnapshotSource

# Límites de los listados de administración
DEFAULT_LIST_LIMIT = 200
MAX_LIST_LIMIT = 500


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependencia de FastAPI para obtener una sesión de base de datos asíncrona.
    Se asegura de que la sesión se cierre siempre después de la petición.
    """
    async with AsyncSessionLocal() as session:
        yield session


def get_settings() -> Settings:
    """
    Dependencia de FastAPI para obtener el objeto de configuración.
    """
    return settings


def clamp_limit(limit: int = DEFAULT_LIST_LIMIT) -> int:
    """Parámetro `limit` de los listados, acotado a [1, 500]."""
    return max(1, min(limit, MAX_LIST_LIMIT))


def get_image_store(config: Settings = Depends(get_settings)) -> ImageStore:
    return LocalImageStore(config.CATEGORY_IMAGES_DIR)


def get_catalog_store(config: Settings = Depends(get_settings)) -> ImageStore:
    return LocalImageStore(config.CATALOG_IMAGES_DIR)


def get_legacy_source(config: Settings = Depends(get_settings)) -> LegacySnapshotSource:
    return LegacySnapshotSource(
        cache_dir=config.LEGACY_CACHE_DIR,
        base_url=config.LEGACY_BASE_URL,
        timeout=config.LEGACY_TIMEOUT_SECONDS,
    )


def get_import_service(
    image_store: ImageStore = Depends(get_image_store),
    catalog_store: ImageStore = Depends(get_catalog_store),
) -> ImportService:
    return ImportService(image_store=image_store, catalog_store=catalog_store)


def get_export_service(
    config: Settings = Depends(get_settings),
    image_store: ImageStore = Depends(get_image_store),
    legacy_source: LegacySnapshotSource = Depends(get_legacy_source),
) -> ExportService:
    return ExportService(json_dir=config.JSON_DIR, image_store=image_store, legacy_source=legacy_source)


async def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Lee un fichero subido; 413 si supera `max_bytes`."""
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail=f"File '{upload.filename}' is too large.")
    return data
