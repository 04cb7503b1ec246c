# backend/catalog_manager/services/product_service.py
"""
Servicio para operaciones de negocio relacionadas con productos y sus
vínculos con categorías.
"""

import logging
from typing import Dict, List

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from catalog_manager.crud import category_crud, product_crud
from catalog_manager.schemas import category_schema, product_schema
from catalog_manager.services.keys import normalize_text

logger = logging.getLogger(__name__)

# Posición y unidades de un vínculo creado a mano desde la administración
MANUAL_LINK_POSITION = 0
MANUAL_LINK_UNITS = "1"


class ProductService:

    # ========================================
    # OPERACIONES DE CONSULTA
    # ========================================

    async def list_products(self, db: AsyncSession, query: str = "", limit: int = 200) -> List[product_schema.ProductResponse]:
        """Productos que coinciden con `query`, cada uno con las claves de sus categorías."""
        products = await product_crud.search_products(db, query=normalize_text(query), limit=limit)
        keys_by_sku = await product_crud.get_category_keys_by_sku(db, [product.sku for product in products])
        return [
            product_schema.ProductResponse.model_validate(product).model_copy(
                update={"categories": list(dict.fromkeys(keys_by_sku.get(product.sku, [])))}
            )
            for product in products
        ]

    # ========================================
    # OPERACIONES DE ESCRITURA CON LÓGICA DE NEGOCIO
    # ========================================

    async def create_product(self, db: AsyncSession, data: product_schema.ProductCreate) -> Dict[str, str]:
        sku = normalize_text(data.sku)
        if not sku:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU is required.")
        if await product_crud.get_product_by_sku(db, sku):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU already exists.")
        await product_crud.create_product(
            db,
            sku=sku,
            name_sv=normalize_text(data.name_sv),
            desc_sv=normalize_text(data.desc_sv),
            name_en=normalize_text(data.name_en),
            desc_en=normalize_text(data.desc_en),
            price=normalize_text(data.price),
        )
        await db.commit()
        return {"sku": sku}

    async def update_products(self, db: AsyncSession, data: product_schema.ProductBulkUpdate) -> Dict[str, int]:
        if not data.items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No product items provided.")
        updated = 0
        for item in data.items:
            sku = normalize_text(item.sku)
            if not sku:
                continue
            changed = await product_crud.update_product(db, sku, {
                "name_sv": normalize_text(item.name_sv),
                "desc_sv": normalize_text(item.desc_sv),
                "name_en": normalize_text(item.name_en),
                "desc_en": normalize_text(item.desc_en),
                "price": normalize_text(item.price),
            })
            if changed:
                updated += 1
        await db.commit()
        return {"updated": updated}

    async def update_language(self, db: AsyncSession, items: List[category_schema.LanguageItem]) -> int:
        updated = 0
        for item in items:
            sku = normalize_text(item.sku)
            if not sku:
                continue
            changed = await product_crud.update_product(db, sku, {
                field: normalize_text(getattr(item, field))
                for field in ("name_sv", "desc_sv", "name_en", "desc_en", "name_pl", "desc_pl")
            })
            if changed:
                updated += 1
        await db.commit()
        return updated

    async def delete_product(self, db: AsyncSession, sku: str) -> Dict[str, int]:
        sku = normalize_text(sku)
        if not sku:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU is required.")
        deleted = await product_crud.delete_product(db, sku)
        await db.commit()
        return {"deleted": deleted}

    async def link_category(self, db: AsyncSession, sku: str, category_key: str) -> Dict[str, bool]:
        sku, category_key = normalize_text(sku), normalize_text(category_key)
        if not sku or not category_key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU and category key are required.")
        if not await category_crud.get_category_by_key(db, category_key):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found.")
        if not await product_crud.get_product_by_sku(db, sku):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found.")
        await product_crud.add_link(db, sku, category_key, MANUAL_LINK_POSITION, MANUAL_LINK_UNITS)
        await db.commit()
        return {"ok": True}

    async def unlink_category(self, db: AsyncSession, sku: str, category_key: str) -> Dict[str, bool]:
        sku, category_key = normalize_text(sku), normalize_text(category_key)
        if not sku or not category_key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU and category key are required.")
        await product_crud.remove_links(db, sku, category_key)
        await db.commit()
        return {"ok": True}


# Instancia global del servicio
product_service = ProductService()
