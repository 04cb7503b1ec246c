# backend/catalog_manager/schemas/category_schema.py

"""
Esquemas Pydantic para el modelo Category.

Patrón de esquemas utilizado:
- CategoryCreate: alta a partir de la ruta (la clave y el padre se derivan)
- CategoryUpdateItem / CategoryBulkUpdate: edición en bloque desde la tabla de administración
- CategoryResponse: para respuestas de la API (GET)
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ========================================
# ESQUEMAS PARA OPERACIONES
# ========================================

class CategoryCreate(BaseModel):
    """Alta de categoría. `path` usa la barra invertida como separador ('F50\\Engine')."""
    path: str
    name_sv: str = ""
    desc_sv: str = ""
    name_en: str = ""
    desc_en: str = ""
    position: int = 0
    is_main: bool = False


class CategoryUpdateItem(BaseModel):
    key: str
    name_sv: str = ""
    desc_sv: str = ""
    name_en: str = ""
    desc_en: str = ""
    position: int = 0
    is_main: bool = False


class CategoryBulkUpdate(BaseModel):
    items: List[CategoryUpdateItem] = Field(default_factory=list)


class DenyRule(BaseModel):
    """Clave o nombre cuya reasignación a la raíz se suprime, con el motivo."""
    match: str
    reason: str = ""


class ParentRepairRequest(BaseModel):
    deny_list: List[DenyRule] = Field(default_factory=list)


class ParentRepair(BaseModel):
    key: str
    parent_key: str


# ========================================
# IDIOMAS
# ========================================

class LanguageItem(BaseModel):
    """Textos por idioma de una categoría (por `id`) o de un producto (por `sku`)."""
    id: Optional[int] = None
    sku: Optional[str] = None
    name_sv: str = ""
    desc_sv: str = ""
    name_en: str = ""
    desc_en: str = ""
    name_pl: str = ""
    desc_pl: str = ""


class LanguageUpdate(BaseModel):
    type: Literal["category", "product"]
    items: List[LanguageItem] = Field(default_factory=list)


# ========================================
# ESQUEMAS DE RESPUESTA
# ========================================

class CategoryResponse(BaseModel):
    id: int
    key: str
    path: str = ""
    name_sv: Optional[str] = None
    desc_sv: Optional[str] = None
    name_en: Optional[str] = None
    desc_en: Optional[str] = None
    name_pl: Optional[str] = None
    desc_pl: Optional[str] = None
    position: int = 0
    parent_key: str = ""
    is_main: bool = False
    catalog_image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MainCategoryResponse(BaseModel):
    key: str
    name: str


class CatalogImageResponse(BaseModel):
    key: str
    name: str = ""
    catalog_image: str = ""
    catalog_url: str = ""
