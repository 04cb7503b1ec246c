# backend/catalog_manager/services/category_service.py
"""
Servicio para operaciones de negocio relacionadas con categorías.

Este servicio se encarga de la lógica de administración de categorías:
alta a partir de la ruta, edición en bloque, borrado (con o sin cascada por
prefijo de clave), imágenes de catálogo de las categorías principales,
etiquetas de posición de los hijos y reparación de padres.
"""

import logging
from typing import Any, Dict, List

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from catalog_manager.crud import category_crud, product_crud
from catalog_manager.db.models.category_model import Category
from catalog_manager.schemas import category_schema
from catalog_manager.services import labels, legacy
from catalog_manager.services.catalog_graph import CATALOG_IMAGE_URL_PREFIX, build_category_products
from catalog_manager.services.image_store import ImageStore
from catalog_manager.services.import_service import catalog_image_name
from catalog_manager.services.keys import canonicalize_key, normalize_text, resolve_parent_key

logger = logging.getLogger(__name__)


def _catalog_url(file_name: str) -> str:
    return f"{CATALOG_IMAGE_URL_PREFIX}{file_name}" if file_name else ""


class CategoryService:
    """
    Servicio de negocio para categorías.

    Las validaciones que fallan se comunican con HTTPException, igual que en
    el resto de servicios de administración.
    """

    # ========================================
    # OPERACIONES DE CONSULTA
    # ========================================

    async def get_category_by_key(self, db: AsyncSession, key: str) -> Category:
        category = await category_crud.get_category_by_key(db, key)
        if not category:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found.")
        return category

    async def list_categories(self, db: AsyncSession, query: str = "", limit: int = 200) -> List[Category]:
        return await category_crud.search_categories(db, query=normalize_text(query), limit=limit)

    async def get_main_categories(self, db: AsyncSession) -> List[Dict[str, str]]:
        rows = await category_crud.get_main_categories(db)
        return [{"key": row.key, "name": row.display_name} for row in rows]

    async def get_catalogs(self, db: AsyncSession) -> List[Dict[str, str]]:
        """Categorías principales con su imagen de catálogo."""
        rows = await category_crud.get_main_categories(db)
        return [
            {
                "key": row.key,
                "name": row.display_name,
                "catalog_image": row.catalog_image or "",
                "catalog_url": _catalog_url(row.catalog_image or ""),
            }
            for row in rows
        ]

    async def get_children_with_labels(self, db: AsyncSession, key: str) -> List[labels.SiblingLabel]:
        return await labels.get_child_categories_with_labels(db, parent_key=key)

    async def get_category_products(self, db: AsyncSession, key: str) -> List[Dict[str, Any]]:
        """Productos de una categoría con la regla de piezas incluidas aplicada."""
        rows = await product_crud.get_link_rows_for_category(db, key)
        return build_category_products(rows)

    # ========================================
    # OPERACIONES DE ESCRITURA CON LÓGICA DE NEGOCIO
    # ========================================

    async def create_category(self, db: AsyncSession, data: category_schema.CategoryCreate) -> Dict[str, str]:
        """
        Crea una categoría a partir de su ruta.

        La clave es la ruta canonizada y el padre se deriva de los segmentos
        anteriores. Falla con 400 si la ruta está vacía o la clave ya existe.
        """
        path_value = normalize_text(data.path)
        if not path_value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category path is required.")
        key = canonicalize_key(path_value)
        if not key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category key is required.")
        if await category_crud.get_category_by_key(db, key):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category key already exists.")

        await category_crud.create_category(
            db,
            key=key,
            path=path_value,
            name_sv=normalize_text(data.name_sv),
            desc_sv=normalize_text(data.desc_sv),
            name_en=normalize_text(data.name_en),
            desc_en=normalize_text(data.desc_en),
            position=data.position,
            parent_key=resolve_parent_key(path_value),
            is_main=data.is_main,
        )
        await db.commit()
        logger.info(f"Categoría creada: {key}")
        return {"key": key}

    async def update_categories(self, db: AsyncSession, data: category_schema.CategoryBulkUpdate) -> Dict[str, int]:
        if not data.items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No category items provided.")
        updated = 0
        for item in data.items:
            key = normalize_text(item.key)
            if not key:
                continue
            changed = await category_crud.update_category(db, key, {
                "name_sv": normalize_text(item.name_sv),
                "desc_sv": normalize_text(item.desc_sv),
                "name_en": normalize_text(item.name_en),
                "desc_en": normalize_text(item.desc_en),
                "position": item.position,
                "is_main": item.is_main,
            })
            if changed:
                updated += 1
        await db.commit()
        return {"updated": updated}

    async def update_language(self, db: AsyncSession, items: List[category_schema.LanguageItem]) -> int:
        updated = 0
        for item in items:
            if not item.id:
                continue
            category = await category_crud.get_category(db, item.id)
            if not category:
                continue
            for field in ("name_sv", "desc_sv", "name_en", "desc_en", "name_pl", "desc_pl"):
                setattr(category, field, normalize_text(getattr(item, field)))
            updated += 1
        await db.commit()
        return updated

    async def delete_category(self, db: AsyncSession, key: str, cascade: bool = False) -> Dict[str, int]:
        """
        Elimina una categoría.

        Sin cascada se rechaza si tiene hijos o productos vinculados. Con cascada
        se borran la clave, todas las que empiezan por 'clave-' y sus vínculos.
        """
        key = normalize_text(key)
        if not key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category key is required.")

        if not cascade:
            if await category_crud.has_children(db, key) or await product_crud.category_has_links(db, key):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Category has children or products. Use cascade delete.",
                )
            keys = [key]
        else:
            keys = await category_crud.get_subtree_keys(db, key)

        deleted = await category_crud.delete_categories(db, keys)
        await db.commit()
        logger.info(f"Categorías eliminadas bajo '{key}': {deleted}")
        return {"deleted": deleted}

    async def _get_main_category(self, db: AsyncSession, key: str) -> Category:
        category = await self.get_category_by_key(db, normalize_text(key))
        if not category.is_main:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category is not marked as main.")
        return category

    async def set_catalog_image(
        self, db: AsyncSession, key: str, original_name: str, data: bytes, store: ImageStore
    ) -> Dict[str, str]:
        """Sustituye la imagen de catálogo de una categoría principal."""
        category = await self._get_main_category(db, key)
        if category.catalog_image:
            store.remove(category.catalog_image)
        file_name = catalog_image_name(category.key, original_name)
        store.write(file_name, data)
        category.catalog_image = file_name
        await db.commit()
        return {"key": category.key, "catalog_image": file_name, "catalog_url": _catalog_url(file_name)}

    async def remove_catalog_image(self, db: AsyncSession, key: str, store: ImageStore) -> Dict[str, str]:
        category = await self._get_main_category(db, key)
        if category.catalog_image:
            store.remove(category.catalog_image)
        category.catalog_image = None
        await db.commit()
        return {"key": category.key, "catalog_image": "", "catalog_url": ""}

    async def repair_parents(
        self, db: AsyncSession, main_key: str, data: category_schema.ParentRepairRequest
    ) -> List[category_schema.ParentRepair]:
        await self._get_main_category(db, main_key)
        deny_list = [(rule.match, rule.reason) for rule in data.deny_list]
        updates = await legacy.repair_parent_keys(db, normalize_text(main_key), deny_list)
        return [category_schema.ParentRepair(key=key, parent_key=parent_key) for key, parent_key in updates]


# Instancia global del servicio
category_service = CategoryService()
