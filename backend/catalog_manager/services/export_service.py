# backend/catalog_manager/services/export_service.py
"""
Servicio de generación de los snapshots JSON para la tienda.

Por cada clave principal:
    categories-<clave>.json, products-<clave>.json
Globales:
    machine-categories.json, price-settings.json
Y el manifiesto `_contract.json` con la versión del contrato.

Cada artefacto se valida y escribe por separado: si uno falla la petición
falla, pero los ya escritos en la misma ejecución se quedan en disco.
La exportación no modifica la base de datos.
"""

import logging
from pathlib import Path
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.core.exceptions import InvalidOperationError, NotFoundError
from catalog_manager.crud import category_crud, product_crud
from catalog_manager.schemas.export_schema import ExportResult, ManifestEntry
from catalog_manager.services.catalog_graph import ImageLookup, MainKeyExport, assemble_export
from catalog_manager.services.image_store import ImageStore
from catalog_manager.services.json_contract import (
    JSON_CONTRACT_VERSION,
    validate_categories_json,
    validate_machine_categories_json,
    validate_price_settings_json,
    validate_products_json,
    write_contract_manifest,
    write_json_validated,
)
from catalog_manager.services.keys import normalize_text
from catalog_manager.services.legacy import LegacySnapshotSource, build_legacy_maps
from catalog_manager.services.machine_category_service import machine_category_service
from catalog_manager.services.settings_store import SettingsStore, get_price_currency_settings

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"
MACHINE_CATEGORIES_FILE = "machine-categories.json"
PRICE_SETTINGS_FILE = "price-settings.json"


class ExportService:
    def __init__(self, json_dir: Path, image_store: ImageStore, legacy_source: LegacySnapshotSource):
        self.json_dir = Path(json_dir)
        self.image_lookup = ImageLookup(image_store)
        self.legacy_source = legacy_source

    async def assemble_main_key_export(self, db: AsyncSession, main_key: str) -> MainKeyExport:
        """Carga filas y snapshot heredado de una clave principal y ensambla sus listas."""
        categories = await category_crud.get_categories_for_main_key(db, main_key)
        link_rows = await product_crud.get_link_rows_for_main_key(db, main_key)
        nodes = await self.legacy_source.load(main_key)
        if nodes is None:
            logger.info(f"Sin snapshot heredado para '{main_key}'; se exportan los datos locales")
        maps = build_legacy_maps(nodes)
        return assemble_export(main_key, categories, link_rows, maps, self.image_lookup)

    async def generate_main_key_json(self, db: AsyncSession, main_key: str) -> List[Path]:
        export = await self.assemble_main_key_export(db, main_key)
        categories_path = self.json_dir / f"categories-{main_key}.json"
        products_path = self.json_dir / f"products-{main_key}.json"
        write_json_validated(categories_path, export.categories, validate_categories_json, "categories export")
        write_json_validated(products_path, export.products, validate_products_json, "products export")
        logger.info(f"'{main_key}': {len(export.categories)} categorías, {len(export.products)} productos")
        return [categories_path, products_path]

    async def generate_machine_categories_json(self, db: AsyncSession) -> Path:
        items = await machine_category_service.machine_category_hierarchy(db)
        path = self.json_dir / MACHINE_CATEGORIES_FILE
        write_json_validated(path, items, validate_machine_categories_json, "machine categories export")
        return path

    async def generate_price_settings_json(self, db: AsyncSession) -> Path:
        settings_value = await get_price_currency_settings(SettingsStore(db))
        path = self.json_dir / PRICE_SETTINGS_FILE
        write_json_validated(path, settings_value, validate_price_settings_json, "price settings export")
        return path

    async def generate_json(
        self,
        db: AsyncSession,
        main_key: Optional[str] = None,
        skip_global: bool = False,
        only_global: bool = False,
    ) -> ExportResult:
        """
        Genera los snapshots y el manifiesto.

        Raises:
            InvalidOperationError: si hay que exportar claves principales y no existe ninguna.
            NotFoundError: si `main_key` no es una categoría existente.
            ContractValidationError: si un artefacto no cumple su contrato.
        """
        files: List[Path] = []
        entries: List[ManifestEntry] = []

        if not only_global:
            main_key = normalize_text(main_key)
            if main_key:
                if await category_crud.get_category_by_key(db, main_key) is None:
                    raise NotFoundError(f"Main category '{main_key}' not found.")
                main_keys = [main_key]
            else:
                main_keys = [category.key for category in await category_crud.get_main_categories(db)]
            if not main_keys:
                raise InvalidOperationError("No main products found.")
            for key in main_keys:
                generated = await self.generate_main_key_json(db, key)
                files.extend(generated)
                entries.extend(ManifestEntry(file=path.name, scope=key) for path in generated)

        if not skip_global or only_global:
            for path in (
                await self.generate_machine_categories_json(db),
                await self.generate_price_settings_json(db),
            ):
                files.append(path)
                entries.append(ManifestEntry(file=path.name, scope=GLOBAL_SCOPE))

        contract_path = write_contract_manifest(self.json_dir, [entry.model_dump() for entry in entries])
        return ExportResult(
            output_dir=str(self.json_dir),
            files=[str(path) for path in files],
            contract_version=JSON_CONTRACT_VERSION,
            contract_path=str(contract_path),
        )
