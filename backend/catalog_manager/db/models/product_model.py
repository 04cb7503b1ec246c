# backend/catalog_manager/db/models/product_model.py
"""
Modelos de producto (artículo de recambio) y de su vínculo con categorías.
"""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from catalog_manager.db.database import Base

# SKUs centinela que abren y cierran la lista de "piezas incluidas"
INCLUDED_BEGIN_SKU = ">"
INCLUDED_END_SKU = "<"


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(255), unique=True, nullable=False, index=True)
    name_sv = Column(Text, nullable=True)
    desc_sv = Column(Text, nullable=True)
    name_en = Column(Text, nullable=True)
    desc_en = Column(Text, nullable=True)
    name_pl = Column(Text, nullable=True)
    desc_pl = Column(Text, nullable=True)
    # Texto decimal tal como llega de la lista de precios
    price = Column(String(64), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.name_sv or self.name_en or self.sku

    def __repr__(self):
        return f"<Product(id={self.id}, sku='{self.sku}')>"


class ProductCategory(Base):
    """
    Vínculo producto-categoría.

    La unicidad es sobre el triple (sku, categoría, posición): un mismo SKU puede
    aparecer varias veces en un despiece en posiciones distintas.
    """
    __tablename__ = "product_categories"

    product_sku = Column(String(255), primary_key=True)
    category_key = Column(String(512), primary_key=True, index=True)
    pos_num = Column(Integer, primary_key=True, autoincrement=False, default=0)
    no_units = Column(String(32), nullable=True)

    def __repr__(self):
        return f"<ProductCategory(sku='{self.product_sku}', category='{self.category_key}', pos={self.pos_num})>"
