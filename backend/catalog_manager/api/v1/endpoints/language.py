"""
Endpoint de edición de textos por idioma (sueco, inglés y polaco).
"""

from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.schemas import category_schema
from catalog_manager.services.category_service import category_service
from catalog_manager.services.product_service import product_service

router = APIRouter()


@router.put("/")
async def update_language(
    *,
    db: AsyncSession = Depends(deps.get_db),
    language_in: category_schema.LanguageUpdate,
) -> Dict[str, int]:
    """Las categorías se identifican por `id` y los productos por `sku`."""
    if language_in.type == "category":
        updated = await category_service.update_language(db, language_in.items)
    else:
        updated = await product_service.update_language(db, language_in.items)
    return {"updated": updated}
