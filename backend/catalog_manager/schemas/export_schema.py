# backend/catalog_manager/schemas/export_schema.py

"""
Esquemas Pydantic de la generación de snapshots JSON.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExportRequest(BaseModel):
    """
    Parámetros de la generación.

    - Sin `mainKey` se exportan todas las categorías principales.
    - `skipGlobal` omite machine-categories.json y price-settings.json.
    - `onlyGlobal` genera solo los artefactos globales.
    """
    model_config = ConfigDict(populate_by_name=True)

    main_key: Optional[str] = Field(None, alias="mainKey")
    skip_global: bool = Field(False, alias="skipGlobal")
    only_global: bool = Field(False, alias="onlyGlobal")


class ManifestEntry(BaseModel):
    file: str
    scope: str


class ExportResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    output_dir: str = Field(..., alias="outputDir")
    files: List[str] = Field(default_factory=list)
    contract_version: str = Field(..., alias="contractVersion")
    contract_path: str = Field(..., alias="contractPath")
