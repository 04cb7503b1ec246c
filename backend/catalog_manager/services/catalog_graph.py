# backend/catalog_manager/services/catalog_graph.py
"""
Ensamblado del grafo producto/categoría de una clave principal.

Todo lo de este módulo es puro: recibe las filas ya cargadas (categorías,
vínculos producto-categoría, tablas del snapshot heredado) y devuelve las
estructuras que se publican como `categories-<clave>.json` y `products-<clave>.json`.
La única E/S es la comprobación de existencia de imágenes a través de `ImageStore`.

Orden determinista:
- Categorías por (position, id).
- Vínculos por (pos_num, sku, category_key).
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from catalog_manager.db.models.product_model import INCLUDED_BEGIN_SKU, INCLUDED_END_SKU
from catalog_manager.services.image_store import ImageStore
from catalog_manager.services.keys import leaf_segment, sanitize_file_name
from catalog_manager.services.legacy import LegacyMaps, apply_legacy_overrides

CATEGORY_IMAGE_URL_PREFIX = "/images/spare-part-images/"
CATALOG_IMAGE_URL_PREFIX = "/images/product-catalog-images/"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".svg")

LANGUAGES = (("se", "sv"), ("en", "en"), ("pl", "pl"))


class MainKeyExport(BaseModel):
    main_key: str
    categories: List[Dict[str, Any]] = Field(default_factory=list)
    products: List[Dict[str, Any]] = Field(default_factory=list)


# ========================================
# UTILIDADES
# ========================================

def lang_map(row: Any, field: str) -> Dict[str, str]:
    """{'se': row.<field>_sv, 'en': ..., 'pl': ...} con '' para los vacíos."""
    return {lang: getattr(row, f"{field}_{suffix}", None) or "" for lang, suffix in LANGUAGES}


def display_name(row: Any, fallback: str) -> str:
    return row.name_sv or row.name_en or fallback


class ImageLookup:
    """
    Busca la imagen de una categoría probando, en orden, la clave, la clave
    saneada, el último segmento de la ruta en minúsculas y ese segmento saneado,
    cada uno con las extensiones admitidas. Gana el primer fichero existente.
    """

    def __init__(self, store: ImageStore, extensions: Sequence[str] = IMAGE_EXTENSIONS):
        self.store = store
        self.extensions = tuple(extensions)

    @staticmethod
    def candidates(key: str, path: str = "") -> List[str]:
        bases: List[str] = []
        if key:
            bases.extend([key, sanitize_file_name(key)])
        leaf = leaf_segment(path).lower()
        if leaf:
            bases.extend([leaf, sanitize_file_name(leaf)])
        unique: List[str] = []
        for base in bases:
            if base and base not in unique:
                unique.append(base)
        return unique

    def find(self, key: str, path: str = "") -> str:
        for base in self.candidates(key, path):
            for ext in self.extensions:
                file_name = f"{base}{ext}"
                if self.store.exists(file_name):
                    return file_name
        return ""

    def image_ref(self, key: str, path: str = "") -> Dict[str, str]:
        file_name = self.find(key, path)
        return {"src": f"{CATEGORY_IMAGE_URL_PREFIX}{file_name}"} if file_name else {}


# ========================================
# LISTA DE PRODUCTOS POR CATEGORÍA
# ========================================

def order_category_products(entries: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Aplica la regla de "piezas incluidas" a la lista de una categoría.

    Las entradas con pos_num > 0 forman la lista principal, en el orden recibido.
    Solo si hay piezas incluidas (pos_num 0 y SKU distinto de los centinelas) se
    añaden detrás, precedidas por el centinela '>' y seguidas por '<' si existen.

    Ejemplo: [A(5), >(0), B(0), <(0)] -> [A, >, B, <]
    """
    main_products = [entry for entry in entries if entry["pos_num"] > 0]
    included = [
        entry for entry in entries
        if entry["pos_num"] == 0 and entry["sku"] not in (INCLUDED_BEGIN_SKU, INCLUDED_END_SKU)
    ]
    begin = next((e for e in entries if e["sku"] == INCLUDED_BEGIN_SKU and e["pos_num"] == 0), None)
    end = next((e for e in entries if e["sku"] == INCLUDED_END_SKU and e["pos_num"] == 0), None)

    result = list(main_products)
    if included:
        if begin is not None:
            result.append(begin)
        result.extend(included)
        if end is not None:
            result.append(end)
    return result


def category_product_entry(product: Any, link: Any) -> Dict[str, Any]:
    return {
        "sku": product.sku,
        "name": display_name(product, product.sku),
        "lang_name": lang_map(product, "name"),
        "lang_desc": lang_map(product, "desc"),
        "pos_num": link.pos_num or 0,
        "price": product.price or "",
        "no_units": link.no_units or "",
    }


def build_category_products(link_rows: Iterable[Tuple[Any, Any]]) -> List[Dict[str, Any]]:
    """Lista publicable de una categoría: una entrada por vínculo, regla de incluidas, pos_num como texto."""
    entries = [category_product_entry(product, link) for product, link in link_rows]
    ordered = order_category_products(entries)
    return [{**entry, "pos_num": str(entry["pos_num"])} for entry in ordered]


# ========================================
# ENSAMBLADO DE LA EXPORTACIÓN
# ========================================

def _category_item(reconciled: Any, parent_id: int, image_lookup: Optional[ImageLookup]) -> Dict[str, Any]:
    category = reconciled.category
    catalog_url = ""
    if category.is_main and category.catalog_image:
        catalog_url = f"{CATALOG_IMAGE_URL_PREFIX}{category.catalog_image}"
    return {
        "id": category.id,
        "name": display_name(category, category.key),
        "key": category.key,
        "parent": parent_id,
        "description": "",
        "display": "products",
        "menu_order": reconciled.position,
        "count": 0,
        "lang_name": lang_map(category, "name"),
        "lang_desc": lang_map(category, "desc"),
        "products": [],
        "product_catalog_image_url": catalog_url,
        "pos_num": reconciled.pos_num,
        "position": reconciled.position,
        "image": image_lookup.image_ref(category.key, category.path or "") if image_lookup else {},
    }


def _product_item(product: Any, link: Any) -> Dict[str, Any]:
    return {
        "id": product.id,
        "sku": product.sku,
        "name": display_name(product, product.sku),
        "price": product.price or "",
        "regular_price": "",
        "sale_price": "",
        "low_stock_amount": None,
        "categories": [],
        "menu_order": 0,
        "has_options": False,
        "lang_name": lang_map(product, "name"),
        "lang_desc": lang_map(product, "desc"),
        "pos_num": str(link.pos_num) if link.pos_num else "",
        "no_units": link.no_units or "",
    }


def assemble_export(
    main_key: str,
    categories: Sequence[Any],
    link_rows: Sequence[Tuple[Any, Any]],
    maps: Optional[LegacyMaps] = None,
    image_lookup: Optional[ImageLookup] = None,
) -> MainKeyExport:
    """
    Construye las listas de categorías y productos de una clave principal.

    Args:
        categories: filas de categoría ya ordenadas por (position, id).
        link_rows: pares (producto, vínculo) ordenados por (pos_num, sku, category_key).
        maps: tablas del snapshot heredado; None o vacías equivalen a no tener snapshot.
        image_lookup: resolución de imágenes; None deja `image` vacío.

    Un mismo SKU en varias posiciones produce varias entradas en la lista de su
    categoría y un único producto con una pertenencia por posición.
    """
    reconciled = apply_legacy_overrides(categories, maps or LegacyMaps())
    category_by_key = {item.category.key: item.category for item in reconciled}
    category_id_by_key = {key: category.id for key, category in category_by_key.items()}

    category_items: List[Dict[str, Any]] = []
    item_by_key: Dict[str, Dict[str, Any]] = {}
    for item in reconciled:
        category = item.category
        parent_id = category_id_by_key.get(item.legacy_parent_key, 0) if item.legacy_parent_key else 0
        if not parent_id and category.parent_key:
            parent_id = category_id_by_key.get(category.parent_key, 0)
        category_item = _category_item(item, parent_id, image_lookup)
        category_items.append(category_item)
        item_by_key[category.key] = category_item

    products_by_sku: Dict[str, Dict[str, Any]] = {}
    rows_by_category: Dict[str, List[Tuple[Any, Any]]] = {}
    seen_triples = set()
    for product, link in link_rows:
        triple = (product.sku, link.category_key, link.pos_num or 0)
        if triple in seen_triples:
            continue
        seen_triples.add(triple)

        product_item = products_by_sku.get(product.sku)
        if product_item is None:
            product_item = _product_item(product, link)
            products_by_sku[product.sku] = product_item

        category = category_by_key.get(link.category_key)
        if category is None:
            continue
        product_item["categories"].append({
            "id": category.id,
            "name": display_name(category, category.key),
            "key": category.key,
            "pos_num": str(link.pos_num) if link.pos_num else "0",
            "no_units": link.no_units or "",
        })
        rows_by_category.setdefault(category.key, []).append((product, link))

    for key, rows in rows_by_category.items():
        item_by_key[key]["products"] = build_category_products(rows)

    return MainKeyExport(
        main_key=main_key,
        categories=category_items,
        products=list(products_by_sku.values()),
    )
