"""
Endpoints REST para las categorías de máquina y sus vínculos con categorías
de producto.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.schemas import machine_category_schema
from catalog_manager.services.machine_category_service import machine_category_service

router = APIRouter()


@router.get("/", response_model=List[machine_category_schema.MachineCategoryResponse])
async def read_machine_categories(
    q: str = "",
    limit: int = Depends(deps.clamp_limit),
    db: AsyncSession = Depends(deps.get_db),
) -> List[Dict[str, Any]]:
    return await machine_category_service.list_machine_categories(db, query=q, limit=limit)


@router.get("/hierarchy")
async def read_hierarchy(db: AsyncSession = Depends(deps.get_db)) -> List[Dict[str, Any]]:
    """Árbol de dos niveles tal como se exporta en machine-categories.json."""
    return await machine_category_service.machine_category_hierarchy(db)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_machine_category(
    *,
    db: AsyncSession = Depends(deps.get_db),
    machine_category_in: machine_category_schema.MachineCategoryCreate,
) -> Dict[str, str]:
    return await machine_category_service.create_machine_category(db, machine_category_in)


@router.put("/")
async def update_machine_categories(
    *,
    db: AsyncSession = Depends(deps.get_db),
    machine_categories_in: machine_category_schema.MachineCategoryBulkUpdate,
) -> Dict[str, int]:
    return await machine_category_service.update_machine_categories(db, machine_categories_in)


@router.delete("/{machine_category_id}")
async def delete_machine_category(
    machine_category_id: int,
    cascade: bool = True,
    db: AsyncSession = Depends(deps.get_db),
) -> Dict[str, int]:
    return await machine_category_service.delete_machine_category(db, machine_category_id, cascade=cascade)


@router.post("/{machine_category_id}/product-categories")
async def link_product_category(
    machine_category_id: int,
    link_in: machine_category_schema.ProductCategoryLinkIn,
    db: AsyncSession = Depends(deps.get_db),
) -> Dict[str, bool]:
    return await machine_category_service.link_product_category(db, machine_category_id, link_in)


@router.delete("/{machine_category_id}/product-categories/{category_key}")
async def unlink_product_category(
    machine_category_id: int,
    category_key: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Dict[str, bool]:
    return await machine_category_service.unlink_product_category(db, machine_category_id, category_key)
