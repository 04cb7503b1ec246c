# backend/catalog_manager/services/json_contract.py
"""
Contrato mínimo de los artefactos JSON publicados para la tienda.

Cada artefacto (categorías, productos, ajustes de precio, árbol de categorías de
máquina) tiene un validador estructural que comprueba la presencia y el tipo de
los campos obligatorios. `write_json_validated` valida antes de escribir y
nunca deja un fichero a medias: serializa a un temporal en el mismo directorio
y lo renombra sobre el destino.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from catalog_manager.core.exceptions import ContractValidationError

logger = logging.getLogger(__name__)

JSON_CONTRACT_VERSION = "1.0.0"
CONTRACT_MANIFEST_NAME = "_contract.json"
MAX_REPORTED_ERRORS = 10

ValidationResult = Dict[str, Any]
Validator = Callable[[Any], ValidationResult]


def cap_list(items: Any, max_items: int = 50) -> Dict[str, Any]:
    """Recorta una lista para informes: {'total': n, 'items': primeros max_items}."""
    items = list(items) if isinstance(items, (list, tuple)) else []
    return {"total": len(items), "items": items[:max_items]}


def _result(errors: List[str]) -> ValidationResult:
    return {"ok": not errors, "errors": cap_list(errors)}


def _is_number(value: Any) -> bool:
    # bool es subclase de int, pero en JSON no es un número
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _check_lang_maps(item: Any, prefix: str, errors: List[str]) -> None:
    for field in ("lang_name", "lang_desc"):
        if not isinstance(item.get(field), dict):
            errors.append(f"{prefix}.{field} must be an object.")


# ========================================
# VALIDADORES
# ========================================

def validate_categories_json(items: Any) -> ValidationResult:
    if not isinstance(items, list):
        return _result(["Categories payload must be an array."])
    errors: List[str] = []
    for index, item in enumerate(items):
        prefix = f"categories[{index}]"
        if not isinstance(item, dict):
            errors.append(f"{prefix} must be an object.")
            continue
        if not _is_number(item.get("id")):
            errors.append(f"{prefix}.id must be a number.")
        if not _is_non_empty_string(item.get("key")):
            errors.append(f"{prefix}.key must be a non-empty string.")
        if not isinstance(item.get("name"), str):
            errors.append(f"{prefix}.name must be a string.")
        if not _is_number(item.get("parent")):
            errors.append(f"{prefix}.parent must be a number.")
        _check_lang_maps(item, prefix, errors)
    return _result(errors)


def validate_products_json(items: Any) -> ValidationResult:
    if not isinstance(items, list):
        return _result(["Products payload must be an array."])
    errors: List[str] = []
    for index, item in enumerate(items):
        prefix = f"products[{index}]"
        if not isinstance(item, dict):
            errors.append(f"{prefix} must be an object.")
            continue
        if not _is_number(item.get("id")):
            errors.append(f"{prefix}.id must be a number.")
        if not _is_non_empty_string(item.get("sku")):
            errors.append(f"{prefix}.sku must be a non-empty string.")
        if not isinstance(item.get("name"), str):
            errors.append(f"{prefix}.name must be a string.")
        _check_lang_maps(item, prefix, errors)
        if not isinstance(item.get("categories"), list):
            errors.append(f"{prefix}.categories must be an array.")
    return _result(errors)


def validate_price_settings_json(payload: Any) -> ValidationResult:
    if not isinstance(payload, dict):
        return _result(["Price settings payload must be an object."])
    errors: List[str] = []
    if not _is_non_empty_string(payload.get("baseCurrency")):
        errors.append("price_settings.baseCurrency must be a non-empty string.")
    currencies = payload.get("currencies")
    if not isinstance(currencies, list):
        errors.append("price_settings.currencies must be an array.")
    else:
        for index, entry in enumerate(currencies):
            prefix = f"price_settings.currencies[{index}]"
            if not isinstance(entry, dict):
                errors.append(f"{prefix} must be an object.")
                continue
            if not _is_non_empty_string(entry.get("code")):
                errors.append(f"{prefix}.code must be a string.")
            if "rate" not in entry:
                errors.append(f"{prefix}.rate is required.")
    return _result(errors)


def validate_machine_categories_json(items: Any) -> ValidationResult:
    """Valida el árbol de categorías de máquina, recorriendo `children` en profundidad."""
    if not isinstance(items, list):
        return _result(["Machine categories payload must be an array."])
    errors: List[str] = []

    def validate_node(node: Any, path: str) -> None:
        if not isinstance(node, dict):
            errors.append(f"{path} must be an object.")
            return
        if not _is_number(node.get("id")):
            errors.append(f"{path}.id must be a number.")
        if not _is_non_empty_string(node.get("key")):
            errors.append(f"{path}.key must be a non-empty string.")
        if not isinstance(node.get("name"), str):
            errors.append(f"{path}.name must be a string.")
        if not _is_number(node.get("parent")):
            errors.append(f"{path}.parent must be a number.")
        _check_lang_maps(node, path, errors)
        if "product_categories" in node and not isinstance(node["product_categories"], list):
            errors.append(f"{path}.product_categories must be an array.")
        if "children" not in node:
            return
        children = node["children"]
        if not isinstance(children, list):
            errors.append(f"{path}.children must be an array.")
            return
        for child_index, child in enumerate(children):
            validate_node(child, f"{path}.children[{child_index}]")

    for index, node in enumerate(items):
        validate_node(node, f"machine_categories[{index}]")
    return _result(errors)


# ========================================
# ESCRITURA
# ========================================

def _dump(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _atomic_write(destination: Path, content: str) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, destination)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def write_json_validated(destination: Path, payload: Any, validator: Validator, label: str) -> ValidationResult:
    """
    Valida `payload` y, solo si es correcto, lo escribe en `destination`.

    Raises:
        ContractValidationError: con la etiqueta del artefacto y hasta 10 infracciones.
            En ese caso no se toca el fichero de destino.
    """
    destination = Path(destination)
    validation = validator(payload)
    if not validation["ok"]:
        violations = validation["errors"]["items"][:MAX_REPORTED_ERRORS]
        logger.error(f"{label}: {validation['errors']['total']} infracciones de contrato, no se escribe {destination.name}")
        raise ContractValidationError(label, violations)

    _atomic_write(destination, _dump(payload))
    logger.info(f"{label} escrito en {destination}")
    return validation


def write_contract_manifest(
    json_dir: Path, entries: List[Dict[str, str]], generated_at: Optional[datetime] = None
) -> Path:
    """
    Escribe `_contract.json` con la versión del contrato, la fecha de generación
    (ISO-8601 en UTC) y la lista de ficheros con su ámbito (clave principal o 'global').
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    manifest = {
        "version": JSON_CONTRACT_VERSION,
        "generated_at": generated_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z"),
        "files": entries,
    }
    manifest_path = Path(json_dir) / CONTRACT_MANIFEST_NAME
    _atomic_write(manifest_path, _dump(manifest))
    return manifest_path
