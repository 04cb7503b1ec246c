# backend/catalog_manager/services/legacy_import.py
"""
Importación del volcado heredado (categories-<clave>.json + products-<clave>.json).

El volcado identifica las categorías por id numérico y las relaciona por `parent`;
aquí se traduce a claves: la clave es el slug, la ruta se reconstruye subiendo por
la cadena de padres y el `parent_key` sale del slug del padre. Cuando el padre no
viene en el volcado se prueba un único nivel de prefijo de la clave.

Los vínculos producto-categoría de las categorías importadas se sustituyen por los
del volcado; la posición y las unidades salen del CSV de posiciones si se aporta
(por defecto 0 y 1).
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.core.exceptions import ImportValidationError
from catalog_manager.crud import category_crud, product_crud
from catalog_manager.schemas.import_schema import (
    LegacyCounts,
    LegacyDuplicates,
    LegacyImportResult,
    LegacyValidationReport,
)
from catalog_manager.services.import_validation import PositionOverrides, cap, to_int
from catalog_manager.services.keys import KEY_SEPARATOR, PATH_SEPARATOR, normalize_text
from catalog_manager.services.legacy import LegacyNode, parse_legacy_nodes

logger = logging.getLogger(__name__)

DEFAULT_POSITION = (0, 1)
MAX_LISTED_DUPLICATES = 10


def _product_sku(item: Any) -> str:
    return normalize_text(item.get("sku")) if isinstance(item, dict) else ""


def _ref_id(item: Any) -> Any:
    if not isinstance(item, dict):
        return None
    return item.get("product_id") or item.get("id")


def _product_category_slugs(product: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = product.get("categories")
    return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []


# ========================================
# VALIDACIÓN
# ========================================

def validate_legacy_payload(main_key: str, categories: Any, products: Any) -> LegacyValidationReport:
    """
    Comprueba el volcado antes de importarlo.

    Errores: categorías sin slug/key y productos sin SKU.
    Avisos: ids ausentes y slugs o SKUs repetidos. También se cuentan las
    referencias a productos y categorías que no están en el volcado.
    """
    category_list = categories if isinstance(categories, list) else []
    product_list = products if isinstance(products, list) else []
    errors: List[str] = []
    warnings: List[str] = []
    product_ids = set()
    slugs, duplicate_slugs = set(), []
    skus, duplicate_skus = set(), []
    counts = LegacyCounts(categories=len(category_list), products=len(product_list))

    for index, category in enumerate(category_list, start=1):
        category = category if isinstance(category, dict) else {}
        if not category.get("id"):
            warnings.append(f"Category row {index}: missing id.")
        slug = normalize_text(category.get("slug") or category.get("key"))
        if not slug:
            errors.append(f"Category row {index}: missing slug/key.")
            continue
        if slug in slugs:
            if slug not in duplicate_slugs:
                duplicate_slugs.append(slug)
        else:
            slugs.add(slug)

    for index, product in enumerate(product_list, start=1):
        product = product if isinstance(product, dict) else {}
        if not product.get("id"):
            warnings.append(f"Product row {index}: missing id.")
        else:
            product_ids.add(product["id"])
        sku = _product_sku(product)
        if not sku:
            errors.append(f"Product row {index}: missing sku.")
            continue
        if sku in skus:
            if sku not in duplicate_skus:
                duplicate_skus.append(sku)
        else:
            skus.add(sku)

    for category in category_list:
        items = category.get("products") if isinstance(category, dict) else None
        for item in items if isinstance(items, list) else []:
            product_id = _ref_id(item)
            if not product_id or product_id not in product_ids:
                counts.missing_product_refs += 1

    for product in product_list:
        for item in _product_category_slugs(product) if isinstance(product, dict) else []:
            slug = normalize_text(item.get("slug"))
            if not slug or slug not in slugs:
                counts.missing_category_refs += 1

    if duplicate_slugs:
        warnings.append(f"Duplicate category slugs detected: {', '.join(duplicate_slugs[:MAX_LISTED_DUPLICATES])}")
    if duplicate_skus:
        warnings.append(f"Duplicate product SKUs detected: {', '.join(duplicate_skus[:MAX_LISTED_DUPLICATES])}")

    return LegacyValidationReport(
        ok=not errors,
        main_key=main_key,
        counts=counts,
        errors=cap(errors),
        warnings=cap(warnings),
        duplicates=LegacyDuplicates(slugs=cap(duplicate_slugs), skus=cap(duplicate_skus)),
    )


# ========================================
# IMPORTACIÓN
# ========================================

def build_legacy_path(node: LegacyNode, by_id: Dict[Any, LegacyNode], cache: Dict[Any, str]) -> str:
    """
    Ruta 'padre\\hijo\\nieto' subiendo por la cadena de padres.

    Un ciclo en el volcado corta la subida en el primer nodo repetido.
    """
    chain: List[LegacyNode] = []
    visited = set()
    current: Optional[LegacyNode] = node
    while current is not None and id(current) not in visited:
        if current.id in cache:
            break
        visited.add(id(current))
        chain.append(current)
        current = by_id.get(current.parent) if current.parent else None

    prefix = cache.get(current.id, "") if current is not None else ""
    for item in reversed(chain):
        slug = item.node_slug
        path = f"{prefix}{PATH_SEPARATOR}{slug}" if prefix and slug else slug
        if item.id:
            cache[item.id] = path
        prefix = path
    return prefix


def _catalog_image_from_url(url: Optional[str]) -> Optional[str]:
    url = normalize_text(url)
    if not url:
        return None
    return url.rstrip("/").split("/")[-1] or None


async def _one_level_parent(db: AsyncSession, key: str, main_key: str, batch_slugs: set) -> str:
    if key == main_key or KEY_SEPARATOR not in key:
        return ""
    candidate = key.rsplit(KEY_SEPARATOR, 1)[0]
    if candidate in batch_slugs or await category_crud.get_category_by_key(db, candidate) is not None:
        return candidate
    return ""


async def import_legacy_main_key(
    db: AsyncSession,
    main_key: str,
    categories: Any,
    products: Any,
    positions: Optional[PositionOverrides] = None,
) -> LegacyImportResult:
    """
    Importa el volcado de una clave principal en una sola transacción.

    Raises:
        ImportValidationError: si el volcado no supera `validate_legacy_payload`.
    """
    validation = validate_legacy_payload(main_key, categories, products)
    if not validation.ok:
        raise ImportValidationError(validation.model_dump(by_alias=True))

    positions = positions or {}
    nodes = parse_legacy_nodes(categories)
    product_list = [item for item in products if isinstance(item, dict)] if isinstance(products, list) else []
    by_id = {node.id: node for node in nodes if node.id}
    batch_slugs = {node.node_slug for node in nodes if node.node_slug}
    product_by_id = {item["id"]: item for item in product_list if item.get("id")}
    path_cache: Dict[Any, str] = {}
    result = LegacyImportResult(main_key=main_key)

    try:
        for node in nodes:
            key = node.node_slug
            if not key:
                continue
            parent = by_id.get(node.parent) if node.parent else None
            parent_key = parent.node_slug if parent is not None else ""
            if not parent_key:
                parent_key = await _one_level_parent(db, key, main_key, batch_slugs)

            lang_name = node.lang_name or {}
            lang_desc = node.lang_desc or {}
            _, created = await category_crud.upsert_category(db, key, {
                "path": build_legacy_path(node, by_id, path_cache) or key,
                "name_sv": normalize_text(lang_name.get("se") or node.name),
                "desc_sv": normalize_text(lang_desc.get("se")),
                "name_en": normalize_text(lang_name.get("en") or node.name),
                "desc_en": normalize_text(lang_desc.get("en")),
                "position": to_int(node.pos_num or node.menu_order or node.position),
                "parent_key": parent_key,
                "is_main": to_int(node.parent, -1) == 0 and key == main_key,
                "catalog_image": _catalog_image_from_url(node.product_catalog_image_url),
            })
            if created:
                result.category_created += 1
            else:
                result.category_updated += 1

        for item in product_list:
            sku = _product_sku(item)
            if not sku:
                continue
            lang_name = item.get("lang_name") if isinstance(item.get("lang_name"), dict) else {}
            lang_desc = item.get("lang_desc") if isinstance(item.get("lang_desc"), dict) else {}
            _, created = await product_crud.upsert_product(db, sku, {
                "name_sv": normalize_text(lang_name.get("se") or item.get("name")),
                "desc_sv": normalize_text(lang_desc.get("se")),
                "name_en": normalize_text(lang_name.get("en") or item.get("name")),
                "desc_en": normalize_text(lang_desc.get("en")),
                "price": normalize_text(item.get("price") or item.get("regular_price")) or None,
            })
            if created:
                result.product_created += 1
            else:
                result.product_updated += 1

        await product_crud.delete_links_for_categories(db, sorted(batch_slugs))

        async def link(sku: str, category_key: str) -> None:
            pos_num, no_units = positions.get((sku, category_key), DEFAULT_POSITION)
            if await product_crud.add_link(db, sku, category_key, pos_num, no_units):
                result.links_inserted += 1

        for node in nodes:
            category_key = node.node_slug
            if not category_key:
                continue
            for ref in node.products:
                sku = _product_sku(product_by_id.get(_ref_id(ref)))
                if sku:
                    await link(sku, category_key)

        known_slugs = set(batch_slugs)
        for item in product_list:
            sku = _product_sku(item)
            if not sku:
                continue
            for category_ref in _product_category_slugs(item):
                slug = normalize_text(category_ref.get("slug"))
                if not slug:
                    continue
                if slug not in known_slugs:
                    if await category_crud.get_category_by_key(db, slug) is None:
                        name = normalize_text(category_ref.get("name") or slug)
                        await category_crud.create_category(
                            db,
                            key=slug,
                            path=slug,
                            name_sv=name,
                            name_en=name,
                            desc_sv="",
                            desc_en="",
                            position=0,
                            parent_key=main_key if slug.startswith(f"{main_key}{KEY_SEPARATOR}") else "",
                            is_main=False,
                        )
                        result.category_created += 1
                        logger.info(f"Categoría '{slug}' creada desde los datos de producto")
                    known_slugs.add(slug)
                await link(sku, slug)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        f"Volcado '{main_key}' importado: +{result.category_created} categorías, "
        f"+{result.product_created} productos, {result.links_inserted} vínculos"
    )
    return result
