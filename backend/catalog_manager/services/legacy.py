# backend/catalog_manager/services/legacy.py
"""
Reconciliación con el snapshot heredado de categorías.

El sistema anterior publicaba, por cada clave principal, un fichero
`categories-<clave>.json` con el árbol de categorías identificado por id numérico.
Durante la exportación ese árbol se usa para:

- Sobrescribir el padre y la posición de las categorías locales.
- Actuar como lista blanca: si el snapshot existe y no está vacío, las
  categorías locales cuyo slug no aparece en él no se exportan.

La ausencia del snapshot no es un error: se exportan los datos locales sin tocar.

Este módulo también contiene el respaldo por prefijo de clave que reconstruye
la jerarquía cuando falta el padre explícito (usado en importaciones y en la
reparación de padres).
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.crud import category_crud
from catalog_manager.services.keys import KEY_SEPARATOR, normalize_text

logger = logging.getLogger(__name__)

# (clave o nombre, motivo)
DenyRule = Tuple[str, str]


# ========================================
# MODELOS DEL SNAPSHOT
# ========================================

class LegacyNode(BaseModel):
    """Un nodo del árbol heredado. Los campos desconocidos se ignoran."""
    model_config = ConfigDict(extra="ignore")

    id: Any = None
    slug: Optional[str] = None
    key: Optional[str] = None
    name: Optional[str] = None
    parent: Any = None
    pos_num: Any = None
    menu_order: Any = None
    position: Any = None
    lang_name: Optional[Dict[str, Any]] = None
    lang_desc: Optional[Dict[str, Any]] = None
    product_catalog_image_url: Optional[str] = None
    products: List[Any] = Field(default_factory=list)

    # Validadores previos: el volcado viene de PHP y mezcla formas
    # ([] por {}, false por null, slugs numéricos). Un campo con forma
    # inesperada se vacía en lugar de descartar el nodo entero.
    @field_validator("slug", "key", "name", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        return normalize_text(value) or None

    @field_validator("lang_name", "lang_desc", mode="before")
    @classmethod
    def coerce_lang_map(cls, value: Any) -> Optional[Dict[str, Any]]:
        return value if isinstance(value, dict) else None

    @field_validator("product_catalog_image_url", mode="before")
    @classmethod
    def coerce_url(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) and value.strip() else None

    @field_validator("products", mode="before")
    @classmethod
    def coerce_products(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []

    @property
    def node_slug(self) -> str:
        return normalize_text(self.slug or self.key)


class LegacyMaps(BaseModel):
    """Tablas de consulta precalculadas a partir del snapshot."""
    parent_by_slug: Dict[str, str] = Field(default_factory=dict)
    position_by_slug: Dict[str, str] = Field(default_factory=dict)
    allowed_slugs: Set[str] = Field(default_factory=set)


class ReconciledCategory(BaseModel):
    """Categoría local con el padre y la posición efectivos tras aplicar el snapshot."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    category: Any
    legacy_parent_key: str = ""
    position: int = 0
    pos_num: str = ""


def parse_legacy_nodes(raw: Any) -> List[LegacyNode]:
    """Convierte el JSON crudo en nodos; las entradas que no son objetos se descartan."""
    if not isinstance(raw, list):
        return []
    nodes: List[LegacyNode] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            continue
        try:
            nodes.append(LegacyNode.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Nodo heredado {index} descartado: {e.error_count()} errores de formato")
    return nodes


# ========================================
# FUENTE DEL SNAPSHOT
# ========================================

class LegacySnapshotSource:
    """
    Carga `categories-<clave>.json` desde un directorio de caché local o,
    si no hay caché, desde una URL base por HTTP.

    Cualquier fallo (fichero inexistente, 404, JSON ilegible) devuelve None.
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def file_name(main_key: str) -> str:
        return f"categories-{main_key}.json"

    def _read_cache(self, main_key: str) -> Optional[Any]:
        if not self.cache_dir or not self.cache_dir.is_dir():
            return None
        path = self.cache_dir / self.file_name(main_key)
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"No se pudo leer el snapshot heredado {path}: {e}")
            return None

    async def _fetch_remote(self, main_key: str) -> Optional[Any]:
        url = f"{self.base_url}/{self.file_name(main_key)}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
                if response.status_code == 404:
                    logger.info(f"Sin snapshot heredado remoto para '{main_key}'")
                    return None
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"No se pudo descargar el snapshot heredado {url}: {e}")
            return None

    async def load(self, main_key: str) -> Optional[List[LegacyNode]]:
        if not main_key:
            return None
        raw = self._read_cache(main_key)
        if raw is None and self.base_url:
            raw = await self._fetch_remote(main_key)
        if raw is None:
            return None
        if not isinstance(raw, list):
            logger.warning(f"Snapshot heredado de '{main_key}' no es una lista; se ignora")
            return None
        return parse_legacy_nodes(raw)


# ========================================
# RECONCILIACIÓN (FUNCIONES PURAS)
# ========================================

def build_legacy_maps(nodes: Optional[Iterable[LegacyNode]]) -> LegacyMaps:
    """
    Construye las tablas slug -> slug padre, slug -> pos_num y el conjunto de slugs.

    Una pasada indexa id -> nodo y otra resuelve cada padre con una sola consulta
    al índice; no hay recorrido recursivo del árbol.
    """
    maps = LegacyMaps()
    if not nodes:
        return maps
    nodes = list(nodes)

    by_id: Dict[Any, LegacyNode] = {}
    for node in nodes:
        if node.node_slug:
            maps.allowed_slugs.add(node.node_slug)
        if node.id:
            by_id[node.id] = node

    for node in nodes:
        slug = node.node_slug
        if not slug:
            continue
        parent = by_id.get(node.parent) if node.parent else None
        if parent is not None and parent.node_slug:
            maps.parent_by_slug[slug] = parent.node_slug
        pos_num = normalize_text(node.pos_num)
        if pos_num:
            maps.position_by_slug[slug] = pos_num

    return maps


def _as_position(value: str) -> Optional[int]:
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


def apply_legacy_overrides(categories: Sequence[Any], maps: LegacyMaps) -> List[ReconciledCategory]:
    """
    Filtra por la lista blanca (solo si no está vacía) y calcula padre y posición efectivos.

    El padre heredado solo se anota aquí; su resolución a id numérico la hace el
    ensamblador, que cae al `parent_key` local cuando el heredado no está entre
    las categorías exportadas.
    """
    if maps.allowed_slugs:
        categories = [category for category in categories if category.key in maps.allowed_slugs]

    reconciled: List[ReconciledCategory] = []
    for category in categories:
        local_position = category.position or 0
        legacy_pos = maps.position_by_slug.get(category.key, "")
        legacy_position = _as_position(legacy_pos) if legacy_pos else None
        if legacy_position is not None:
            position, pos_num = legacy_position, legacy_pos
        else:
            position, pos_num = local_position, str(local_position) if local_position else ""
        reconciled.append(
            ReconciledCategory(
                category=category,
                legacy_parent_key=maps.parent_by_slug.get(category.key, ""),
                position=position,
                pos_num=pos_num,
            )
        )
    return reconciled


def _is_denied(key: str, name: str, deny_list: Iterable[DenyRule]) -> Optional[str]:
    key_lower = key.lower()
    name_lower = normalize_text(name).lower()
    for match, reason in deny_list:
        match_lower = normalize_text(match).lower()
        if match_lower and match_lower in (key_lower, name_lower):
            return reason or "denied"
    return None


def resolve_parent_by_prefix(
    key: str,
    known_keys: Set[str],
    main_key: str,
    name: str = "",
    deny_list: Iterable[DenyRule] = (),
) -> str:
    """
    Busca un padre quitando segmentos finales de la clave hasta dar con una conocida.

    Ejemplo: 'f50-engine-honda-gx100' prueba 'f50-engine-honda', 'f50-engine', 'f50'.

    Si el padre encontrado es la clave principal y la clave o el nombre de la
    categoría figuran en `deny_list`, la reasignación se suprime y se devuelve ''.
    """
    parts = normalize_text(key).split(KEY_SEPARATOR)
    found = ""
    while len(parts) > 1:
        parts.pop()
        candidate = KEY_SEPARATOR.join(parts)
        if candidate in known_keys:
            found = candidate
            break

    if found and found == main_key:
        reason = _is_denied(key, name, deny_list)
        if reason:
            logger.info(f"Reasignación de '{key}' a la raíz '{main_key}' suprimida: {reason}")
            return ""
    return found


async def repair_parent_keys(
    db: AsyncSession, main_key: str, deny_list: Iterable[DenyRule] = ()
) -> List[Tuple[str, str]]:
    """
    Repara los `parent_key` que no resuelven dentro de una clave principal.

    Las categorías principales y las que ya tienen un padre válido no se tocan.
    Todo se aplica en una única transacción.

    Returns:
        Lista de (clave, nuevo padre) aplicados.
    """
    deny_list = list(deny_list)
    updates: List[Tuple[str, str]] = []
    try:
        categories = await category_crud.get_categories_for_main_key(db, main_key)
        known_keys = {category.key for category in categories}
        for category in categories:
            if category.is_main or (category.parent_key and category.parent_key in known_keys):
                continue
            new_parent = resolve_parent_by_prefix(
                category.key, known_keys, main_key, name=category.name_sv or "", deny_list=deny_list
            )
            if new_parent:
                category.parent_key = new_parent
                updates.append((category.key, new_parent))
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Padres reparados en '{main_key}': {len(updates)}")
    return updates
