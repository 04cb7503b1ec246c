# backend/catalog_manager/services/machine_category_service.py
"""
Servicio para las categorías de máquina.

Además del CRUD de administración construye el árbol de dos niveles que se
publica como `machine-categories.json`:
- Raíces sin hijos: `isParentCategory` falso, sin `children`, con sus categorías de producto.
- Raíces con hijos: sin `product_categories`; cada hijo lleva las suyas y no tiene `children`.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from catalog_manager.crud import category_crud, machine_category_crud
from catalog_manager.schemas import machine_category_schema
from catalog_manager.services.catalog_graph import CATALOG_IMAGE_URL_PREFIX, display_name, lang_map
from catalog_manager.services.keys import normalize_text, slugify

logger = logging.getLogger(__name__)

MACHINE_CATEGORY_TAXONOMY = "machine_category"


def parse_lang_list(value: Any) -> List[str]:
    """
    Idiomas en los que se muestra un vínculo.

    Acepta una lista, un texto JSON con una lista o una lista separada por comas.
    Ejemplo: '["SE", "en"]' -> ['se', 'en']; 'se, pl' -> ['se', 'pl']
    """
    if not value:
        return []
    if isinstance(value, list):
        return [entry for entry in (normalize_text(item).lower() for item in value) if entry]
    raw = normalize_text(value)
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        return [entry for entry in (normalize_text(item).lower() for item in parsed) if entry]
    return [entry for entry in (part.strip().lower() for part in raw.split(",")) if entry]


class MachineCategoryService:

    # ========================================
    # OPERACIONES DE CONSULTA
    # ========================================

    async def _links_by_machine_category(self, db: AsyncSession) -> Dict[int, List[Dict[str, Any]]]:
        links = await machine_category_crud.get_product_category_links(db)
        categories = await category_crud.get_categories_by_keys(db, list({link.category_key for link in links}))
        category_by_key = {category.key: category for category in categories}

        links_by_id: Dict[int, List[Dict[str, Any]]] = {}
        for link in links:
            category = category_by_key.get(link.category_key)
            if link.position is not None:
                position = str(link.position)
            else:
                position = str(category.position) if category is not None and category.position else "0"
            catalog_url = ""
            if category is not None and category.catalog_image:
                catalog_url = f"{CATALOG_IMAGE_URL_PREFIX}{category.catalog_image}"
            links_by_id.setdefault(link.machine_category_id, []).append({
                "id": category.id if category is not None else 0,
                "key": link.category_key,
                "slug": link.category_key,
                "name": display_name(category, category.key) if category is not None else link.category_key,
                "position": position,
                "lang_name": lang_map(category, "name") if category is not None else {"se": "", "en": "", "pl": ""},
                "lang_desc": lang_map(category, "desc") if category is not None else {"se": "", "en": "", "pl": ""},
                "product_catalog_image_url": catalog_url,
                "showForLang": parse_lang_list(link.show_for_lang),
            })
        return links_by_id

    async def list_machine_categories(self, db: AsyncSession, query: str = "", limit: int = 200) -> List[Dict[str, Any]]:
        rows = await machine_category_crud.get_machine_categories(db)
        if query:
            needle = query.lower()
            rows = [
                row for row in rows
                if needle in (row.key or "").lower()
                or needle in (row.name_sv or "").lower()
                or needle in (row.name_en or "").lower()
            ]
        rows = rows[:limit]
        links_by_id = await self._links_by_machine_category(db)
        return [
            {
                **machine_category_schema.MachineCategoryResponse.model_validate(row).model_dump(),
                "product_categories": links_by_id.get(row.id, []),
            }
            for row in rows
        ]

    async def machine_category_hierarchy(self, db: AsyncSession) -> List[Dict[str, Any]]:
        """Árbol de dos niveles ordenado por (position, id) en cada nivel."""
        rows = await machine_category_crud.get_machine_categories(db)
        if not rows:
            return []
        links_by_id = await self._links_by_machine_category(db)

        items = [
            {
                "id": row.id,
                "name": display_name(row, row.key),
                "lang_name": lang_map(row, "name"),
                "lang_desc": lang_map(row, "desc"),
                "key": row.key,
                "slug": row.key,
                "count": 0,
                "parent": row.parent_id or 0,
                "taxonomy": MACHINE_CATEGORY_TAXONOMY,
                "menu_order": str(row.position) if row.position else "0",
                "isParentCategory": True,
                "children": [],
                "product_categories": links_by_id.get(row.id, []),
            }
            for row in rows
        ]
        by_id = {item["id"]: item for item in items}
        roots = []
        for item in items:
            parent = by_id.get(item["parent"]) if item["parent"] else None
            if parent is not None and parent is not item:
                parent["children"].append(item)
            else:
                roots.append(item)

        for root in roots:
            if not root["children"]:
                root["isParentCategory"] = False
                del root["children"]
                continue
            for child in root["children"]:
                child["isParentCategory"] = False
                child.pop("children", None)
            del root["product_categories"]
        return roots

    # ========================================
    # OPERACIONES DE ESCRITURA CON LÓGICA DE NEGOCIO
    # ========================================

    async def create_machine_category(self, db: AsyncSession, data: machine_category_schema.MachineCategoryCreate) -> Dict[str, str]:
        key = slugify(normalize_text(data.key or data.name_sv or data.name_en))
        if not key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Key is required.")
        if await machine_category_crud.get_machine_category_by_key(db, key):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Key already exists.")
        await machine_category_crud.create_machine_category(
            db,
            key=key,
            name_sv=normalize_text(data.name_sv),
            name_en=normalize_text(data.name_en),
            position=data.position,
            parent_id=data.parent_id,
        )
        await db.commit()
        return {"key": key}

    async def update_machine_categories(self, db: AsyncSession, data: machine_category_schema.MachineCategoryBulkUpdate) -> Dict[str, int]:
        if not data.items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No machine categories provided.")
        updated = 0
        for item in data.items:
            if item.id <= 0:
                continue
            changed = await machine_category_crud.update_machine_category(db, item.id, {
                "name_sv": normalize_text(item.name_sv),
                "name_en": normalize_text(item.name_en),
                "position": item.position,
                "parent_id": item.parent_id,
            })
            if changed:
                updated += 1
        await db.commit()
        return {"updated": updated}

    async def delete_machine_category(self, db: AsyncSession, machine_category_id: int, cascade: bool = True) -> Dict[str, int]:
        """Con `cascade` se borran también los hijos directos y todos los vínculos."""
        if machine_category_id <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid machine category id.")
        child_ids = await machine_category_crud.get_child_ids(db, machine_category_id)
        if not cascade:
            links_by_id = await self._links_by_machine_category(db)
            if child_ids or links_by_id.get(machine_category_id):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Machine category has children or linked product categories. Use cascade delete.",
                )
            child_ids = []
        deleted = await machine_category_crud.delete_machine_categories(db, [machine_category_id, *child_ids])
        await db.commit()
        return {"deleted": deleted}

    async def link_product_category(
        self, db: AsyncSession, machine_category_id: int, data: machine_category_schema.ProductCategoryLinkIn
    ) -> Dict[str, bool]:
        category_key = normalize_text(data.category_key)
        if machine_category_id <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid machine category id.")
        if not category_key:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category key is required.")
        if not await machine_category_crud.get_machine_category(db, machine_category_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Machine category not found.")
        if not await category_crud.get_category_by_key(db, category_key):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category not found.")
        languages = parse_lang_list(data.show_for_lang)
        await machine_category_crud.upsert_product_category_link(
            db, machine_category_id, category_key, data.position, json.dumps(languages) if languages else None
        )
        await db.commit()
        return {"ok": True}

    async def unlink_product_category(self, db: AsyncSession, machine_category_id: int, category_key: str) -> Dict[str, bool]:
        if machine_category_id <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid machine category id.")
        await machine_category_crud.delete_product_category_link(db, machine_category_id, normalize_text(category_key))
        await db.commit()
        return {"ok": True}


# Instancia global del servicio
machine_category_service = MachineCategoryService()
