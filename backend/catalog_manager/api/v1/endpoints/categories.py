"""
Endpoints REST para la administración de categorías.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.core.config import Settings
from catalog_manager.schemas import category_schema
from catalog_manager.services.category_service import category_service
from catalog_manager.services.image_store import ImageStore
from catalog_manager.services.labels import SiblingLabel

router = APIRouter()


@router.get("/", response_model=List[category_schema.CategoryResponse])
async def read_categories(
    q: str = "",
    limit: int = Depends(deps.clamp_limit),
    db: AsyncSession = Depends(deps.get_db),
) -> List[category_schema.CategoryResponse]:
    """Busca categorías por clave o nombre."""
    return await category_service.list_categories(db, query=q, limit=limit)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_category(
    *,
    db: AsyncSession = Depends(deps.get_db),
    category_in: category_schema.CategoryCreate,
) -> Dict[str, str]:
    """Crea una categoría a partir de su ruta."""
    return await category_service.create_category(db, category_in)


@router.put("/")
async def update_categories(
    *,
    db: AsyncSession = Depends(deps.get_db),
    categories_in: category_schema.CategoryBulkUpdate,
) -> Dict[str, int]:
    return await category_service.update_categories(db, categories_in)


@router.get("/main", response_model=List[category_schema.MainCategoryResponse])
async def read_main_categories(db: AsyncSession = Depends(deps.get_db)) -> List[Dict[str, str]]:
    return await category_service.get_main_categories(db)


@router.get("/catalogs", response_model=List[category_schema.CatalogImageResponse])
async def read_catalogs(db: AsyncSession = Depends(deps.get_db)) -> List[Dict[str, str]]:
    """Categorías principales con su imagen de catálogo."""
    return await category_service.get_catalogs(db)


@router.delete("/{key}")
async def delete_category(
    key: str,
    cascade: bool = False,
    db: AsyncSession = Depends(deps.get_db),
) -> Dict[str, int]:
    """Elimina una categoría; con `cascade` también su subárbol por prefijo de clave."""
    return await category_service.delete_category(db, key, cascade=cascade)


@router.get("/{key}/children", response_model=List[SiblingLabel])
async def read_children(key: str, db: AsyncSession = Depends(deps.get_db)) -> List[SiblingLabel]:
    """Hijos directos con su etiqueta de posición."""
    return await category_service.get_children_with_labels(db, key)


@router.get("/{key}/products")
async def read_category_products(key: str, db: AsyncSession = Depends(deps.get_db)) -> List[Dict[str, Any]]:
    return await category_service.get_category_products(db, key)


@router.post("/{key}/catalog-image", response_model=category_schema.CatalogImageResponse)
async def upload_catalog_image(
    key: str,
    image: UploadFile = File(...),
    db: AsyncSession = Depends(deps.get_db),
    store: ImageStore = Depends(deps.get_catalog_store),
    config: Settings = Depends(deps.get_settings),
) -> Dict[str, str]:
    data = await deps.read_upload(image, config.UPLOAD_MAX_BYTES)
    return await category_service.set_catalog_image(db, key, image.filename or "", data, store)


@router.delete("/{key}/catalog-image", response_model=category_schema.CatalogImageResponse)
async def delete_catalog_image(
    key: str,
    db: AsyncSession = Depends(deps.get_db),
    store: ImageStore = Depends(deps.get_catalog_store),
) -> Dict[str, str]:
    return await category_service.remove_catalog_image(db, key, store)


@router.post("/{key}/repair-parents", response_model=List[category_schema.ParentRepair])
async def repair_parents(
    key: str,
    repair_in: category_schema.ParentRepairRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> List[category_schema.ParentRepair]:
    """Reasigna por prefijo de clave los padres que no resuelven bajo la clave principal."""
    return await category_service.repair_parents(db, key, repair_in)
