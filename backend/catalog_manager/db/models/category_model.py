# backend/catalog_manager/db/models/category_model.py
"""
Se encarga de definir el modelo de categoría del catálogo de recambios.

La jerarquía se expresa por clave (`parent_key`) y no por id: las claves vienen
de las rutas de importación y sobreviven a reimportaciones, los ids no.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from catalog_manager.db.database import Base

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(512), unique=True, nullable=False, index=True)
    path = Column(Text, nullable=False, default="")
    name_sv = Column(Text, nullable=True)
    desc_sv = Column(Text, nullable=True)
    name_en = Column(Text, nullable=True)
    desc_en = Column(Text, nullable=True)
    name_pl = Column(Text, nullable=True)
    desc_pl = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    # Vacío = raíz. Sin clave foránea: las importaciones parciales dejan referencias colgantes
    parent_key = Column(String(512), nullable=False, default="", index=True)
    is_main = Column(Boolean, nullable=False, default=False)
    catalog_image = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.name_sv or self.name_en or self.key

    def __repr__(self):
        return f"<Category(id={self.id}, key='{self.key}', parent_key='{self.parent_key}')>"
