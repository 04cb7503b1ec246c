# backend/catalog_manager/schemas/import_schema.py

"""
Esquemas Pydantic de las importaciones (CSV de productos, ZIP de imágenes,
lista de precios, posiciones y volcado heredado).

Las filas del CSV se convierten en un conjunto cerrado de variantes etiquetadas
por `type`: ProduktRow (categoría principal), KategoriRow (subcategoría) y
ArtikelRow (artículo vinculado a una categoría).
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ========================================
# LISTAS RECORTADAS
# ========================================

class CappedList(BaseModel):
    """Lista de informe: total real y como mucho 50 elementos."""
    total: int = 0
    items: List[str] = Field(default_factory=list)


# ========================================
# FILAS DEL CSV
# ========================================

class ImportRowBase(BaseModel):
    category_path: str
    key: str
    name_sv: str = ""
    desc_sv: str = ""
    name_en: str = ""
    desc_en: str = ""
    position: int = 0


class ProduktRow(ImportRowBase):
    """Fila de categoría principal (familia de máquina)."""
    type: Literal["produkt"] = "produkt"


class KategoriRow(ImportRowBase):
    type: Literal["kategori"] = "kategori"
    parent_key: str = ""


class ArtikelRow(ImportRowBase):
    """Fila de artículo: `key` es la categoría a la que se vincula, `position` su pos_num."""
    type: Literal["artikel"] = "artikel"
    sku: str
    no_units: str = ""


ImportRow = Annotated[Union[ProduktRow, KategoriRow, ArtikelRow], Field(discriminator="type")]


# ========================================
# INFORMES DE VALIDACIÓN
# ========================================

class ImportCounts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    rows: int = 0
    produkt: int = 0
    kategori: int = 0
    artikel: int = 0
    missing_type: int = Field(0, alias="missingType")
    invalid_type: int = Field(0, alias="invalidType")
    missing_category_path: int = Field(0, alias="missingCategoryPath")
    missing_sku: int = Field(0, alias="missingSku")


class ImportDuplicates(BaseModel):
    skus: CappedList = Field(default_factory=CappedList)
    categories: CappedList = Field(default_factory=CappedList)


class ImportReport(BaseModel):
    ok: bool
    counts: ImportCounts = Field(default_factory=ImportCounts)
    errors: CappedList = Field(default_factory=CappedList)
    warnings: CappedList = Field(default_factory=CappedList)
    duplicates: ImportDuplicates = Field(default_factory=ImportDuplicates)


class ZipReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_entries: int = Field(0, alias="totalEntries")
    file_entries: int = Field(0, alias="fileEntries")
    invalid_ext: int = Field(0, alias="invalidExt")
    duplicate_bases: CappedList = Field(default_factory=CappedList, alias="duplicateBases")
    invalid_samples: CappedList = Field(default_factory=CappedList, alias="invalidSamples")


# ========================================
# RESULTADOS
# ========================================

class CreatedUpdated(BaseModel):
    categories: int = 0
    products: int = 0


class ProductImportResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    dry_run: bool = Field(False, alias="dryRun")
    validation: ImportReport
    zip_validation: Optional[ZipReport] = Field(None, alias="zipValidation")
    main_keys: List[str] = Field(default_factory=list, alias="mainKeys")
    reset_links_for_products: int = Field(0, alias="resetLinksForProducts")
    categories: int = 0
    products: int = 0
    images: int = 0
    created: CreatedUpdated = Field(default_factory=CreatedUpdated)
    updated: CreatedUpdated = Field(default_factory=CreatedUpdated)
    catalog_image: Optional[str] = None


class PricelistImportResult(BaseModel):
    updated: int = 0
    missing: int = 0


class PositionsImportResult(BaseModel):
    updated: int = 0
    inserted: int = 0
    skipped: int = 0


class LegacyCounts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    categories: int = 0
    products: int = 0
    missing_product_refs: int = Field(0, alias="missingProductRefs")
    missing_category_refs: int = Field(0, alias="missingCategoryRefs")


class LegacyDuplicates(BaseModel):
    slugs: CappedList = Field(default_factory=CappedList)
    skus: CappedList = Field(default_factory=CappedList)


class LegacyValidationReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    main_key: str = Field(..., alias="mainKey")
    counts: LegacyCounts = Field(default_factory=LegacyCounts)
    errors: CappedList = Field(default_factory=CappedList)
    warnings: CappedList = Field(default_factory=CappedList)
    duplicates: LegacyDuplicates = Field(default_factory=LegacyDuplicates)


class LegacyImportResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    main_key: str = Field(..., alias="mainKey")
    category_created: int = Field(0, alias="categoryCreated")
    category_updated: int = Field(0, alias="categoryUpdated")
    product_created: int = Field(0, alias="productCreated")
    product_updated: int = Field(0, alias="productUpdated")
    links_inserted: int = Field(0, alias="linksInserted")
