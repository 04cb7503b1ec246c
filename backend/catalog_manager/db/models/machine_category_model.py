# backend/catalog_manager/db/models/machine_category_model.py
"""
Categorías de máquina: árbol de navegación de la tienda que agrupa las
categorías principales del catálogo.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from catalog_manager.db.database import Base

class MachineCategory(Base):
    __tablename__ = "machine_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(255), unique=True, nullable=False, index=True)
    name_sv = Column(Text, nullable=True)
    name_en = Column(Text, nullable=True)
    name_pl = Column(Text, nullable=True)
    desc_sv = Column(Text, nullable=True)
    desc_en = Column(Text, nullable=True)
    desc_pl = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    # 0 = raíz
    parent_id = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class MachineCategoryProductCategory(Base):
    __tablename__ = "machine_category_product_categories"

    machine_category_id = Column(
        Integer, ForeignKey("machine_categories.id", ondelete="CASCADE"), primary_key=True
    )
    category_key = Column(String(512), primary_key=True)
    position = Column(Integer, nullable=True)
    # Lista de idiomas en JSON ("[\"se\",\"en\"]") o separada por comas
    show_for_lang = Column(Text, nullable=True)
