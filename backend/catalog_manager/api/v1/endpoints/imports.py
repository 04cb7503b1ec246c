"""
Endpoints de importación: CSV de productos (con ZIP de imágenes e imagen de
catálogo opcionales), lista de precios, posiciones y volcado heredado.

Los lotes rechazados por validación se devuelven como 400 con el informe
completo (ver el manejador de ImportValidationError en main.py).
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.core.config import Settings
from catalog_manager.schemas import import_schema
from catalog_manager.services.import_service import ImportService
from catalog_manager.services.import_validation import parse_position_overrides
from catalog_manager.services.keys import normalize_text
from catalog_manager.services.legacy_import import import_legacy_main_key

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_json_upload(upload: UploadFile, max_bytes: int) -> Any:
    data = await deps.read_upload(upload, max_bytes)
    try:
        return json.loads(data.decode("utf-8-sig"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File '{upload.filename}' is not valid JSON.",
        )


@router.post("/products", response_model=import_schema.ProductImportResult)
async def import_products(
    csv_file: UploadFile = File(...),
    images_zip: Optional[UploadFile] = File(None),
    catalog_image: Optional[UploadFile] = File(None),
    dry_run: bool = Form(False),
    db: AsyncSession = Depends(deps.get_db),
    import_service: ImportService = Depends(deps.get_import_service),
    config: Settings = Depends(deps.get_settings),
) -> import_schema.ProductImportResult:
    """
    Importa el CSV de productos.

    - **csv_file**: CSV separado por ';' con columnas type, category_path, sku, number, ...
    - **images_zip**: ZIP opcional con las imágenes de categoría.
    - **catalog_image**: imagen de catálogo para la primera clave principal del lote.
    - **dry_run**: solo valida y describe lo que se haría.
    """
    csv_bytes = await deps.read_upload(csv_file, config.UPLOAD_MAX_BYTES)
    zip_bytes = await deps.read_upload(images_zip, config.UPLOAD_MAX_BYTES) if images_zip else None
    catalog = None
    if catalog_image is not None:
        catalog = (catalog_image.filename or "", await deps.read_upload(catalog_image, config.UPLOAD_MAX_BYTES))
    return await import_service.import_products(
        db, csv_bytes, zip_bytes=zip_bytes, catalog=catalog, dry_run=dry_run
    )


@router.post("/pricelist", response_model=import_schema.PricelistImportResult)
async def import_pricelist(
    csv_file: UploadFile = File(...),
    db: AsyncSession = Depends(deps.get_db),
    import_service: ImportService = Depends(deps.get_import_service),
    config: Settings = Depends(deps.get_settings),
) -> import_schema.PricelistImportResult:
    csv_bytes = await deps.read_upload(csv_file, config.UPLOAD_MAX_BYTES)
    return await import_service.import_pricelist(db, csv_bytes)


@router.post("/positions", response_model=import_schema.PositionsImportResult)
async def import_positions(
    csv_file: UploadFile = File(...),
    db: AsyncSession = Depends(deps.get_db),
    import_service: ImportService = Depends(deps.get_import_service),
    config: Settings = Depends(deps.get_settings),
) -> import_schema.PositionsImportResult:
    """CSV `sku;category_key;pos_num;no_units` con las posiciones de cada despiece."""
    csv_bytes = await deps.read_upload(csv_file, config.UPLOAD_MAX_BYTES)
    return await import_service.import_positions(db, csv_bytes)


@router.post("/legacy", response_model=import_schema.LegacyImportResult)
async def import_legacy(
    main_key: str = Form(...),
    categories_file: UploadFile = File(...),
    products_file: UploadFile = File(...),
    positions_file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(deps.get_db),
    config: Settings = Depends(deps.get_settings),
) -> import_schema.LegacyImportResult:
    """Importa el volcado heredado categories-<clave>.json + products-<clave>.json."""
    main_key = normalize_text(main_key).lower()
    if not main_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Main key is required.")

    categories = await _read_json_upload(categories_file, config.UPLOAD_MAX_BYTES)
    products = await _read_json_upload(products_file, config.UPLOAD_MAX_BYTES)
    positions = None
    if positions_file is not None:
        positions, skipped = parse_position_overrides(await deps.read_upload(positions_file, config.UPLOAD_MAX_BYTES))
        logger.info(f"Posiciones del volcado '{main_key}': {len(positions)} válidas, {skipped} saltadas")

    return await import_legacy_main_key(db, main_key, categories, products, positions=positions)
