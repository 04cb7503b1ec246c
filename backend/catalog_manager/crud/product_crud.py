# backend/catalog_manager/crud/product_crud.py

"""
Operaciones CRUD para Product y para su vínculo con categorías (ProductCategory).

El vínculo es único por el triple (sku, categoría, pos_num); insertar un vínculo
existente no hace nada (semántica INSERT OR IGNORE), lo que mantiene idempotentes
las reimportaciones.

Como en category_crud, las escrituras hacen flush y el commit queda en manos
del servicio.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.db.models.category_model import Category
from catalog_manager.db.models.product_model import Product, ProductCategory

import logging

logger = logging.getLogger(__name__)

# ========================================
# OPERACIONES DE LECTURA (READ)
# ========================================

async def get_product_by_sku(db: AsyncSession, sku: str) -> Optional[Product]:
    result = await db.execute(select(Product).filter(Product.sku == sku))
    return result.scalars().first()


async def search_products(db: AsyncSession, query: str = "", limit: int = 200) -> List[Product]:
    """Búsqueda libre en SKU, nombres y descripciones, ordenada por SKU."""
    statement = select(Product)
    if query:
        term = f"%{query}%"
        statement = statement.filter(
            or_(
                Product.sku.like(term),
                Product.name_sv.like(term),
                Product.name_en.like(term),
                Product.desc_sv.like(term),
                Product.desc_en.like(term),
            )
        )
    result = await db.execute(statement.order_by(Product.sku).limit(limit))
    return result.scalars().all()


async def get_category_keys_by_sku(db: AsyncSession, skus: List[str]) -> Dict[str, List[str]]:
    """Mapa sku -> claves de categoría vinculadas."""
    if not skus:
        return {}
    result = await db.execute(
        select(ProductCategory.product_sku, ProductCategory.category_key)
        .filter(ProductCategory.product_sku.in_(skus))
        .order_by(ProductCategory.product_sku, ProductCategory.category_key, ProductCategory.pos_num)
    )
    keys_by_sku: Dict[str, List[str]] = {}
    for sku, category_key in result.all():
        keys_by_sku.setdefault(sku, []).append(category_key)
    return keys_by_sku


async def get_link_rows_for_main_key(db: AsyncSession, main_key: str) -> List[Tuple[Product, ProductCategory]]:
    """
    Filas (producto, vínculo) de la categoría principal y su descendencia.

    El orden (pos_num, sku, category_key) es total, así que la exportación
    resultante es estable entre ejecuciones.
    """
    result = await db.execute(
        select(Product, ProductCategory)
        .join(ProductCategory, ProductCategory.product_sku == Product.sku)
        .filter(
            or_(
                ProductCategory.category_key == main_key,
                ProductCategory.category_key.startswith(f"{main_key}-", autoescape=True),
            )
        )
        .order_by(ProductCategory.pos_num, Product.sku, ProductCategory.category_key)
    )
    return [(product, link) for product, link in result.all()]


async def get_link_rows_for_category(db: AsyncSession, category_key: str) -> List[Tuple[Product, ProductCategory]]:
    result = await db.execute(
        select(Product, ProductCategory)
        .join(ProductCategory, ProductCategory.product_sku == Product.sku)
        .filter(ProductCategory.category_key == category_key)
        .order_by(ProductCategory.pos_num, Product.sku)
    )
    return [(product, link) for product, link in result.all()]


async def get_links(db: AsyncSession, sku: str, category_key: str) -> List[ProductCategory]:
    result = await db.execute(
        select(ProductCategory).filter(
            ProductCategory.product_sku == sku, ProductCategory.category_key == category_key
        )
    )
    return result.scalars().all()


async def category_has_links(db: AsyncSession, category_key: str) -> bool:
    result = await db.execute(
        select(ProductCategory.category_key).filter(ProductCategory.category_key == category_key).limit(1)
    )
    return result.first() is not None


async def get_total_products(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Product.id)))
    return result.scalar_one()


# ========================================
# OPERACIONES DE ESCRITURA (CREATE, UPDATE, DELETE)
# ========================================

async def create_product(db: AsyncSession, **fields: Any) -> Product:
    db_product = Product(**fields)
    db.add(db_product)
    await db.flush()
    return db_product


async def upsert_product(
    db: AsyncSession,
    sku: str,
    fields: Dict[str, Any],
    keep_existing: Tuple[str, ...] = ("name_pl", "desc_pl", "price"),
) -> Tuple[Product, bool]:
    """
    Inserta o actualiza un producto por SKU.

    Un valor None en los campos de `keep_existing` conserva el valor guardado:
    la importación de CSV no trae precios y no debe borrar los de la lista de precios.
    """
    db_product = await get_product_by_sku(db, sku)
    created = db_product is None
    if created:
        db_product = Product(sku=sku)
        db.add(db_product)

    for name, value in fields.items():
        if name in keep_existing and value is None:
            continue
        setattr(db_product, name, value)

    await db.flush()
    return db_product, created


async def update_product(db: AsyncSession, sku: str, update_data: Dict[str, Any]) -> Optional[Product]:
    db_product = await get_product_by_sku(db, sku)
    if not db_product:
        return None
    for name, value in update_data.items():
        setattr(db_product, name, value)
    await db.flush()
    return db_product


async def delete_product(db: AsyncSession, sku: str) -> int:
    """Elimina un producto y todos sus vínculos."""
    await db.execute(delete(ProductCategory).where(ProductCategory.product_sku == sku))
    result = await db.execute(delete(Product).where(Product.sku == sku))
    await db.flush()
    return result.rowcount or 0


async def add_link(db: AsyncSession, sku: str, category_key: str, pos_num: int, no_units: Any) -> bool:
    """
    Inserta el vínculo si el triple no existe todavía.

    Returns:
        True si se insertó, False si ya existía.
    """
    existing = await db.get(ProductCategory, (sku, category_key, pos_num))
    if existing is not None:
        return False
    db.add(ProductCategory(product_sku=sku, category_key=category_key, pos_num=pos_num, no_units=str(no_units)))
    await db.flush()
    return True


async def remove_links(db: AsyncSession, sku: str, category_key: str) -> int:
    result = await db.execute(
        delete(ProductCategory).where(
            ProductCategory.product_sku == sku, ProductCategory.category_key == category_key
        )
    )
    await db.flush()
    return result.rowcount or 0


async def delete_links_for_skus(db: AsyncSession, skus: List[str]) -> int:
    if not skus:
        return 0
    result = await db.execute(delete(ProductCategory).where(ProductCategory.product_sku.in_(skus)))
    await db.flush()
    return result.rowcount or 0


async def delete_links_for_categories(db: AsyncSession, keys: List[str]) -> int:
    if not keys:
        return 0
    result = await db.execute(delete(ProductCategory).where(ProductCategory.category_key.in_(keys)))
    await db.flush()
    return result.rowcount or 0


async def category_exists(db: AsyncSession, key: str) -> bool:
    result = await db.execute(select(Category.key).filter(Category.key == key).limit(1))
    return result.first() is not None
