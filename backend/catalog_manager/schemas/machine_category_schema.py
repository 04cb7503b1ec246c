# backend/catalog_manager/schemas/machine_category_schema.py

"""
Esquemas Pydantic para las categorías de máquina.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ========================================
# ESQUEMAS PARA OPERACIONES
# ========================================

class MachineCategoryCreate(BaseModel):
    """Si no se indica `key` se deriva del nombre (slug)."""
    key: Optional[str] = None
    name_sv: str = ""
    name_en: str = ""
    position: int = 0
    parent_id: int = 0


class MachineCategoryUpdateItem(BaseModel):
    id: int
    name_sv: str = ""
    name_en: str = ""
    position: int = 0
    parent_id: int = 0


class MachineCategoryBulkUpdate(BaseModel):
    items: List[MachineCategoryUpdateItem] = Field(default_factory=list)


class ProductCategoryLinkIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category_key: str = Field(..., alias="categoryKey")
    position: int = 0
    show_for_lang: Optional[Union[List[str], str]] = Field(None, alias="showForLang")


# ========================================
# ESQUEMAS DE RESPUESTA
# ========================================

class MachineCategoryResponse(BaseModel):
    id: int
    key: str
    parent_id: int = 0
    position: int = 0
    name_sv: Optional[str] = None
    name_en: Optional[str] = None
    product_categories: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
