"""
Endpoints REST para la administración de productos y sus vínculos con categorías.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.schemas import product_schema
from catalog_manager.services.product_service import product_service

router = APIRouter()


@router.get("/", response_model=List[product_schema.ProductResponse])
async def read_products(
    q: str = "",
    limit: int = Depends(deps.clamp_limit),
    db: AsyncSession = Depends(deps.get_db),
) -> List[product_schema.ProductResponse]:
    """Busca productos por SKU o nombre; cada uno lleva las claves de sus categorías."""
    return await product_service.list_products(db, query=q, limit=limit)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(
    *,
    db: AsyncSession = Depends(deps.get_db),
    product_in: product_schema.ProductCreate,
) -> Dict[str, str]:
    return await product_service.create_product(db, product_in)


@router.put("/")
async def update_products(
    *,
    db: AsyncSession = Depends(deps.get_db),
    products_in: product_schema.ProductBulkUpdate,
) -> Dict[str, int]:
    return await product_service.update_products(db, products_in)


@router.delete("/{sku}")
async def delete_product(sku: str, db: AsyncSession = Depends(deps.get_db)) -> Dict[str, int]:
    """Elimina el producto y todos sus vínculos."""
    return await product_service.delete_product(db, sku)


@router.post("/{sku}/categories")
async def link_category(
    sku: str,
    link_in: product_schema.ProductCategoryLinkIn,
    db: AsyncSession = Depends(deps.get_db),
) -> Dict[str, bool]:
    return await product_service.link_category(db, sku, link_in.category_key)


@router.delete("/{sku}/categories/{category_key}")
async def unlink_category(sku: str, category_key: str, db: AsyncSession = Depends(deps.get_db)) -> Dict[str, bool]:
    return await product_service.unlink_category(db, sku, category_key)
