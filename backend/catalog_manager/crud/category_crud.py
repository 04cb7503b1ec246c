# backend/catalog_manager/crud/category_crud.py

"""
Operaciones CRUD para el modelo Category.

Este módulo implementa las operaciones de lectura y escritura de categorías,
proporcionando una capa de abstracción entre los servicios y la base de datos.

Funcionalidades principales:
- Consultas por id, por clave y por prefijo de clave principal
- Hijos directos ordenados por (position, id)
- Upsert idempotente por clave para las importaciones
- Borrado en cascada por prefijo de clave, incluyendo vínculos de productos

Las funciones de escritura hacen flush pero no commit: la transacción la
abre y la cierra el servicio que orquesta el lote completo.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.db.models.category_model import Category
from catalog_manager.db.models.product_model import ProductCategory

# ========================================
# OPERACIONES DE LECTURA (READ)
# ========================================

async def get_category(db: AsyncSession, category_id: int) -> Optional[Category]:
    """Obtiene una categoría por su id numérico."""
    result = await db.execute(select(Category).filter(Category.id == category_id))
    return result.scalars().first()


async def get_category_by_key(db: AsyncSession, key: str) -> Optional[Category]:
    """Obtiene una categoría por su clave canónica."""
    result = await db.execute(select(Category).filter(Category.key == key))
    return result.scalars().first()


def _main_key_filter(main_key: str):
    # startswith con autoescape: '_' y '%' son caracteres válidos en una clave
    return or_(Category.key == main_key, Category.key.startswith(f"{main_key}-", autoescape=True))


async def get_categories_for_main_key(db: AsyncSession, main_key: str) -> List[Category]:
    """
    Obtiene la categoría principal y toda su descendencia por prefijo de clave.

    Ejemplo: para 'f50' devuelve 'f50', 'f50-engine', 'f50-engine-parts'...
    pero no 'f500'.
    """
    result = await db.execute(
        select(Category).filter(_main_key_filter(main_key)).order_by(Category.position, Category.id)
    )
    return result.scalars().all()


async def get_children(db: AsyncSession, parent_key: str) -> List[Category]:
    """Hijos directos de una categoría, en orden de posición y luego de id."""
    result = await db.execute(
        select(Category).filter(Category.parent_key == parent_key).order_by(Category.position, Category.id)
    )
    return result.scalars().all()


async def has_children(db: AsyncSession, key: str) -> bool:
    result = await db.execute(select(Category.key).filter(Category.parent_key == key).limit(1))
    return result.first() is not None


async def get_main_categories(db: AsyncSession) -> List[Category]:
    """Categorías marcadas como principales (familias de máquina)."""
    result = await db.execute(
        select(Category).filter(Category.is_main.is_(True)).order_by(Category.position, Category.id)
    )
    return result.scalars().all()


async def get_categories_by_keys(db: AsyncSession, keys: List[str]) -> List[Category]:
    if not keys:
        return []
    result = await db.execute(select(Category).filter(Category.key.in_(keys)))
    return result.scalars().all()


async def search_categories(db: AsyncSession, query: str = "", limit: int = 200) -> List[Category]:
    """
    Búsqueda libre en clave, ruta, nombres y descripciones.

    Con `query` vacío devuelve las primeras `limit` categorías por id.
    """
    statement = select(Category)
    if query:
        term = f"%{query}%"
        statement = statement.filter(
            or_(
                Category.key.like(term),
                Category.path.like(term),
                Category.name_sv.like(term),
                Category.name_en.like(term),
                Category.desc_sv.like(term),
                Category.desc_en.like(term),
            )
        )
    result = await db.execute(statement.order_by(Category.id).limit(limit))
    return result.scalars().all()


async def get_total_categories(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Category.id)))
    return result.scalar_one()


# ========================================
# OPERACIONES DE ESCRITURA (CREATE, UPDATE, DELETE)
# ========================================

async def create_category(db: AsyncSession, **fields: Any) -> Category:
    db_category = Category(**fields)
    db.add(db_category)
    await db.flush()
    return db_category


async def upsert_category(
    db: AsyncSession,
    key: str,
    fields: Dict[str, Any],
    keep_existing: Tuple[str, ...] = ("name_pl", "desc_pl", "catalog_image"),
) -> Tuple[Category, bool]:
    """
    Inserta o actualiza una categoría por clave.

    Los campos listados en `keep_existing` solo se sobrescriben cuando el valor
    nuevo no es None, de modo que una reimportación sin traducción polaca o sin
    imagen de catálogo conserva la existente.

    Returns:
        (categoría, creada)
    """
    db_category = await get_category_by_key(db, key)
    created = db_category is None
    if created:
        db_category = Category(key=key)
        db.add(db_category)

    for name, value in fields.items():
        if name in keep_existing and value is None:
            continue
        setattr(db_category, name, value)

    await db.flush()
    return db_category, created


async def update_category(db: AsyncSession, key: str, update_data: Dict[str, Any]) -> Optional[Category]:
    """Actualización parcial: solo se tocan los campos presentes en `update_data`."""
    db_category = await get_category_by_key(db, key)
    if not db_category:
        return None
    for name, value in update_data.items():
        setattr(db_category, name, value)
    await db.flush()
    return db_category


async def get_subtree_keys(db: AsyncSession, key: str) -> List[str]:
    """Clave dada más todas las que comparten su prefijo 'key-'."""
    result = await db.execute(select(Category.key).filter(_main_key_filter(key)))
    return [row[0] for row in result.all()]


async def delete_categories(db: AsyncSession, keys: List[str]) -> int:
    """Elimina categorías y sus vínculos con productos. Devuelve cuántas claves se borraron."""
    if not keys:
        return 0
    await db.execute(delete(ProductCategory).where(ProductCategory.category_key.in_(keys)))
    result = await db.execute(delete(Category).where(Category.key.in_(keys)))
    await db.flush()
    return result.rowcount or 0
