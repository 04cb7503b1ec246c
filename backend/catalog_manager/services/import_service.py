# backend/catalog_manager/services/import_service.py
"""
Servicio de importación del catálogo.

Orquesta las tres importaciones por CSV:
- Productos (con ZIP de imágenes e imagen de catálogo opcionales).
- Lista de precios.
- Posiciones de artículos en sus despieces.

Cada importación corre en una sola transacción: se hace flush fila a fila para
que las claves repetidas del mismo lote se encuentren, y commit al final. Ante
cualquier error se hace rollback y la excepción se propaga sin envolver.
"""

import logging
import os
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.core.exceptions import ImportValidationError
from catalog_manager.crud import category_crud, product_crud
from catalog_manager.schemas.import_schema import (
    ArtikelRow,
    CreatedUpdated,
    KategoriRow,
    PositionsImportResult,
    PricelistImportResult,
    ProductImportResult,
    ProduktRow,
)
from catalog_manager.services.image_store import ImageStore
from catalog_manager.services.import_validation import (
    extract_zip_images,
    parse_csv,
    parse_position_overrides,
    to_import_row,
    validate_product_import,
    validate_zip_images,
)
from catalog_manager.services.keys import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_NO_UNITS = "1"


def catalog_image_name(main_key: str, original_name: str) -> str:
    """Nombre estable de la imagen de catálogo: product_catalog_image-<clave><ext>."""
    ext = os.path.splitext(original_name or "")[1].lower() or ".jpg"
    return f"product_catalog_image-{main_key}{ext}"


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(value for value in values if value))


class ImportService:
    """
    Servicio de importación.

    Recibe los almacenes de imágenes por inyección para que los tests puedan
    usar directorios temporales.
    """

    def __init__(self, image_store: ImageStore, catalog_store: ImageStore):
        self.image_store = image_store
        self.catalog_store = catalog_store

    # ========================================
    # IMPORTACIÓN DE PRODUCTOS
    # ========================================

    async def import_products(
        self,
        db: AsyncSession,
        csv_bytes: bytes,
        zip_bytes: Optional[bytes] = None,
        catalog: Optional[Tuple[str, bytes]] = None,
        dry_run: bool = False,
    ) -> ProductImportResult:
        """
        Importa el CSV de productos.

        Args:
            catalog: (nombre original, contenido) de la imagen de catálogo, que se
                asigna a la primera categoría principal del lote.
            dry_run: solo valida e informa de lo que se haría.

        Raises:
            ImportValidationError: si alguna fila no supera la validación. No se escribe nada.
        """
        records = parse_csv(csv_bytes)
        validation = validate_product_import(records)
        zip_validation = validate_zip_images(zip_bytes) if zip_bytes else None

        if not validation.ok:
            logger.warning(f"Importación rechazada: {validation.errors.total} errores en {len(records)} filas")
            raise ImportValidationError(
                validation.model_dump(by_alias=True),
                extra={
                    "dryRun": dry_run,
                    "zipValidation": zip_validation.model_dump(by_alias=True) if zip_validation else None,
                },
            )

        rows = [to_import_row(record) for record in records]
        main_keys = _unique([row.key for row in rows if isinstance(row, ProduktRow)])
        skus_to_reset = _unique([row.sku for row in rows if isinstance(row, ArtikelRow)])

        result = ProductImportResult(
            dry_run=dry_run,
            validation=validation,
            zip_validation=zip_validation,
            main_keys=main_keys,
            reset_links_for_products=len(skus_to_reset),
        )
        if dry_run:
            return result

        created, updated = CreatedUpdated(), CreatedUpdated()
        try:
            await product_crud.delete_links_for_skus(db, skus_to_reset)

            for row in rows:
                if isinstance(row, (ProduktRow, KategoriRow)):
                    _, was_created = await category_crud.upsert_category(db, row.key, {
                        "path": row.category_path,
                        "name_sv": row.name_sv,
                        "desc_sv": row.desc_sv,
                        "name_en": row.name_en,
                        "desc_en": row.desc_en,
                        "name_pl": None,
                        "desc_pl": None,
                        "position": row.position,
                        "parent_key": row.parent_key if isinstance(row, KategoriRow) else "",
                        "is_main": isinstance(row, ProduktRow),
                        "catalog_image": None,
                    })
                    counter = created if was_created else updated
                    counter.categories += 1
                elif isinstance(row, ArtikelRow):
                    _, was_created = await product_crud.upsert_product(db, row.sku, {
                        "name_sv": row.name_sv,
                        "desc_sv": row.desc_sv,
                        "name_en": row.name_en,
                        "desc_en": row.desc_en,
                        "name_pl": None,
                        "desc_pl": None,
                        "price": None,
                    })
                    await product_crud.add_link(db, row.sku, row.key, row.position, row.no_units or DEFAULT_NO_UNITS)
                    counter = created if was_created else updated
                    counter.products += 1

            catalog_file_name = None
            if catalog and main_keys:
                catalog_file_name = catalog_image_name(main_keys[0], catalog[0])
                await category_crud.update_category(db, main_keys[0], {"catalog_image": catalog_file_name})

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        # Las imágenes solo se escriben una vez confirmadas las filas
        if zip_bytes:
            result.images = extract_zip_images(zip_bytes, self.image_store)
        if catalog_file_name:
            self.catalog_store.write(catalog_file_name, catalog[1])
            result.catalog_image = catalog_file_name

        result.created, result.updated = created, updated
        result.categories = await category_crud.get_total_categories(db)
        result.products = await product_crud.get_total_products(db)
        logger.info(
            f"Importación completada: {created.categories}+{updated.categories} categorías, "
            f"{created.products}+{updated.products} productos, {result.images} imágenes"
        )
        return result

    # ========================================
    # LISTA DE PRECIOS
    # ========================================

    async def import_pricelist(self, db: AsyncSession, csv_bytes: bytes) -> PricelistImportResult:
        """
        Actualiza precios a partir de las columnas `artikelkod` y `grundpris`.

        La coma decimal se convierte en punto ('12,50' -> '12.50'). Los SKUs que
        no existen se cuentan como `missing` y no se crean.
        """
        result = PricelistImportResult()
        try:
            for row in parse_csv(csv_bytes):
                sku = normalize_text(row.get("artikelkod"))
                if not sku:
                    continue
                price = normalize_text(row.get("grundpris")).replace(",", ".", 1)
                product = await product_crud.update_product(db, sku, {"price": price})
                if product is None:
                    result.missing += 1
                else:
                    result.updated += 1
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(f"Lista de precios: {result.updated} actualizados, {result.missing} sin producto")
        return result

    # ========================================
    # POSICIONES
    # ========================================

    async def import_positions(self, db: AsyncSession, csv_bytes: bytes) -> PositionsImportResult:
        """
        Aplica el CSV `sku;category_key;pos_num;no_units`.

        Si el par (sku, categoría) ya tiene vínculos se sustituyen por uno en la
        nueva posición; si no, se inserta. Los productos inexistentes se saltan.
        """
        overrides, skipped = parse_position_overrides(csv_bytes)
        result = PositionsImportResult(skipped=skipped)
        try:
            for (sku, category_key), (pos_num, no_units) in overrides.items():
                if await product_crud.get_product_by_sku(db, sku) is None:
                    result.skipped += 1
                    continue
                removed = await product_crud.remove_links(db, sku, category_key)
                await product_crud.add_link(db, sku, category_key, pos_num, no_units)
                if removed:
                    result.updated += 1
                else:
                    result.inserted += 1
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(f"Posiciones: {result.updated} actualizadas, {result.inserted} insertadas, {result.skipped} saltadas")
        return result
