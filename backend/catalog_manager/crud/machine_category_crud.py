# backend/catalog_manager/crud/machine_category_crud.py

"""
Operaciones CRUD para las categorías de máquina y sus vínculos con
categorías de producto.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.db.models.machine_category_model import MachineCategory, MachineCategoryProductCategory

# ========================================
# OPERACIONES DE LECTURA (READ)
# ========================================

async def get_machine_category(db: AsyncSession, machine_category_id: int) -> Optional[MachineCategory]:
    result = await db.execute(select(MachineCategory).filter(MachineCategory.id == machine_category_id))
    return result.scalars().first()


async def get_machine_category_by_key(db: AsyncSession, key: str) -> Optional[MachineCategory]:
    result = await db.execute(select(MachineCategory).filter(MachineCategory.key == key))
    return result.scalars().first()


async def get_machine_categories(db: AsyncSession) -> List[MachineCategory]:
    """Todas las categorías de máquina en orden de posición y luego de id."""
    result = await db.execute(select(MachineCategory).order_by(MachineCategory.position, MachineCategory.id))
    return result.scalars().all()


async def get_product_category_links(db: AsyncSession) -> List[MachineCategoryProductCategory]:
    result = await db.execute(
        select(MachineCategoryProductCategory).order_by(
            MachineCategoryProductCategory.machine_category_id,
            MachineCategoryProductCategory.position,
            MachineCategoryProductCategory.category_key,
        )
    )
    return result.scalars().all()


# ========================================
# OPERACIONES DE ESCRITURA (CREATE, UPDATE, DELETE)
# ========================================

async def create_machine_category(db: AsyncSession, **fields: Any) -> MachineCategory:
    db_machine_category = MachineCategory(**fields)
    db.add(db_machine_category)
    await db.flush()
    return db_machine_category


async def update_machine_category(
    db: AsyncSession, machine_category_id: int, update_data: Dict[str, Any]
) -> Optional[MachineCategory]:
    db_machine_category = await get_machine_category(db, machine_category_id)
    if not db_machine_category:
        return None
    for name, value in update_data.items():
        setattr(db_machine_category, name, value)
    await db.flush()
    return db_machine_category


async def delete_machine_categories(db: AsyncSession, ids: List[int]) -> int:
    """Elimina categorías de máquina y sus vínculos (la FK en cascada no está activa en SQLite)."""
    if not ids:
        return 0
    await db.execute(
        delete(MachineCategoryProductCategory).where(MachineCategoryProductCategory.machine_category_id.in_(ids))
    )
    result = await db.execute(delete(MachineCategory).where(MachineCategory.id.in_(ids)))
    await db.flush()
    return result.rowcount or 0


async def get_child_ids(db: AsyncSession, parent_id: int) -> List[int]:
    result = await db.execute(select(MachineCategory.id).filter(MachineCategory.parent_id == parent_id))
    return [row[0] for row in result.all()]


async def upsert_product_category_link(
    db: AsyncSession,
    machine_category_id: int,
    category_key: str,
    position: Optional[int],
    show_for_lang: Optional[str],
) -> MachineCategoryProductCategory:
    link = await db.get(MachineCategoryProductCategory, (machine_category_id, category_key))
    if link is None:
        link = MachineCategoryProductCategory(machine_category_id=machine_category_id, category_key=category_key)
        db.add(link)
    link.position = position
    link.show_for_lang = show_for_lang
    await db.flush()
    return link


async def delete_product_category_link(db: AsyncSession, machine_category_id: int, category_key: str) -> int:
    result = await db.execute(
        delete(MachineCategoryProductCategory).where(
            MachineCategoryProductCategory.machine_category_id == machine_category_id,
            MachineCategoryProductCategory.category_key == category_key,
        )
    )
    await db.flush()
    return result.rowcount or 0
