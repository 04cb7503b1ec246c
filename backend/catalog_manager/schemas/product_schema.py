# backend/catalog_manager/schemas/product_schema.py

"""
Esquemas Pydantic para el modelo Product.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# ========================================
# ESQUEMAS PARA OPERACIONES
# ========================================

class ProductCreate(BaseModel):
    sku: str
    name_sv: str = ""
    desc_sv: str = ""
    name_en: str = ""
    desc_en: str = ""
    price: str = ""


class ProductUpdateItem(ProductCreate):
    """Mismos campos que el alta; el SKU identifica el producto a actualizar."""


class ProductBulkUpdate(BaseModel):
    items: List[ProductUpdateItem] = Field(default_factory=list)


class ProductCategoryLinkIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category_key: str = Field(..., alias="categoryKey")


# ========================================
# ESQUEMAS DE RESPUESTA
# ========================================

class ProductResponse(BaseModel):
    id: int
    sku: str
    name_sv: Optional[str] = None
    desc_sv: Optional[str] = None
    name_en: Optional[str] = None
    desc_en: Optional[str] = None
    name_pl: Optional[str] = None
    desc_pl: Optional[str] = None
    price: Optional[str] = None
    categories: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
