# backend/catalog_manager/services/import_validation.py
"""
Lectura y validación de los ficheros de importación.

- CSV de productos: separado por ';', con BOM opcional y cabeceras normalizadas.
- ZIP de imágenes: solo se aceptan las extensiones de imagen conocidas.

La validación nunca lanza por una fila mala: acumula errores y avisos en un
informe, y es el servicio de importación quien rechaza el lote completo.
"""

import csv
import io
import logging
import os
import zipfile
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import TypeAdapter

from catalog_manager.core.exceptions import InvalidOperationError
from catalog_manager.db.models.product_model import INCLUDED_BEGIN_SKU, INCLUDED_END_SKU
from catalog_manager.schemas.import_schema import (
    CappedList,
    ImportCounts,
    ImportDuplicates,
    ImportReport,
    ImportRow,
    ZipReport,
)
from catalog_manager.services.image_store import ImageStore
from catalog_manager.services.keys import (
    canonicalize_key,
    normalize_header,
    normalize_text,
    resolve_parent_key,
    sanitize_file_name,
)

logger = logging.getLogger(__name__)

ALLOWED_IMPORT_TYPES = ("produkt", "kategori", "artikel")
ZIP_ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp"}
CSV_DELIMITER = ";"
MAX_LISTED_DUPLICATES = 10

_import_row_adapter = TypeAdapter(ImportRow)


def cap(items: Iterable[str], max_items: int = 50) -> CappedList:
    items = list(items)
    return CappedList(total=len(items), items=items[:max_items])


def to_int(value: Any, default: int = 0) -> int:
    """'3' -> 3, '3.0' -> 3; vacío o no numérico -> `default`."""
    text = normalize_text(value)
    if not text:
        return default
    try:
        return int(float(text.replace(",", ".")))
    except (ValueError, OverflowError):
        return default


# ========================================
# CSV
# ========================================

def parse_csv(data: bytes, delimiter: str = CSV_DELIMITER) -> List[Dict[str, str]]:
    """
    Convierte el CSV en una lista de diccionarios con cabeceras normalizadas.

    Las líneas vacías se saltan, las filas cortas se completan con '' y las
    columnas sobrantes se descartan.
    """
    text = data.decode("utf-8-sig", errors="replace")
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    header: Optional[List[str]] = None
    records: List[Dict[str, str]] = []
    for row in reader:
        if not row:
            continue
        if header is None:
            header = [normalize_header(cell) for cell in row]
            continue
        padded = row + [""] * (len(header) - len(row))
        records.append(dict(zip(header, padded)))
    return records


def validate_product_import(records: List[Dict[str, Any]]) -> ImportReport:
    """
    Valida las filas del CSV de productos.

    Son errores (rechazan el lote): tipo ausente o desconocido, `category_path`
    ausente y `artikel_id` ausente en artículos. Los SKUs y claves de categoría
    repetidos son solo avisos.
    """
    errors: List[str] = []
    warnings: List[str] = []
    counts = ImportCounts(rows=len(records or []))
    seen_skus, duplicate_skus = set(), []
    seen_keys, duplicate_keys = set(), []

    for index, row in enumerate(records or [], start=1):
        row_type = normalize_text(row.get("type")).lower()
        if not row_type:
            counts.missing_type += 1
            errors.append(f"Row {index}: missing type.")
            continue
        if row_type not in ALLOWED_IMPORT_TYPES:
            counts.invalid_type += 1
            errors.append(f'Row {index}: invalid type "{row_type}".')
            continue
        setattr(counts, row_type, getattr(counts, row_type) + 1)

        path_value = normalize_text(row.get("category_path"))
        if not path_value:
            counts.missing_category_path += 1
            errors.append(f"Row {index}: missing category_path for {row_type}.")
            continue
        key = canonicalize_key(path_value)
        if not key:
            errors.append(f'Row {index}: invalid category_path "{path_value}".')
            continue

        if row_type == "artikel":
            sku = normalize_text(row.get("artikel_id"))
            if not sku:
                counts.missing_sku += 1
                errors.append(f"Row {index}: missing artikel_id for artikel.")
                continue
            if sku in seen_skus:
                if sku not in duplicate_skus:
                    duplicate_skus.append(sku)
            else:
                seen_skus.add(sku)
            continue

        if key in seen_keys:
            if key not in duplicate_keys:
                duplicate_keys.append(key)
        else:
            seen_keys.add(key)

    if duplicate_skus:
        warnings.append(f"Duplicate SKUs found: {', '.join(duplicate_skus[:MAX_LISTED_DUPLICATES])}")
    if duplicate_keys:
        warnings.append(f"Duplicate category keys found: {', '.join(duplicate_keys[:MAX_LISTED_DUPLICATES])}")

    return ImportReport(
        ok=not errors,
        counts=counts,
        errors=cap(errors),
        warnings=cap(warnings),
        duplicates=ImportDuplicates(skus=cap(duplicate_skus), categories=cap(duplicate_keys)),
    )


def to_import_row(record: Dict[str, Any]) -> ImportRow:
    """
    Convierte una fila ya validada en su variante etiquetada.

    Raises:
        pydantic.ValidationError: si el tipo no es uno de los admitidos.
    """
    row_type = normalize_text(record.get("type")).lower()
    path_value = normalize_text(record.get("category_path"))
    fields: Dict[str, Any] = {
        "type": row_type,
        "category_path": path_value,
        "key": canonicalize_key(path_value),
        "name_sv": normalize_text(record.get("name_sv")),
        "desc_sv": normalize_text(record.get("desc_sv")),
        "name_en": normalize_text(record.get("name_en")),
        "desc_en": normalize_text(record.get("desc_en")),
        "position": to_int(record.get("number")),
    }
    if row_type == "kategori":
        fields["parent_key"] = resolve_parent_key(path_value)
    elif row_type == "artikel":
        fields["sku"] = normalize_text(record.get("artikel_id"))
        fields["no_units"] = normalize_text(record.get("no_units"))
    return _import_row_adapter.validate_python(fields)


# ========================================
# ZIP DE IMÁGENES
# ========================================

def _open_zip(data: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise InvalidOperationError(f"Invalid ZIP archive: {e}") from e


def _split_entry_name(entry_name: str) -> Tuple[str, str]:
    stem, ext = os.path.splitext(os.path.basename(entry_name))
    return sanitize_file_name(stem), ext.lower()


def validate_zip_images(data: bytes) -> ZipReport:
    duplicate_bases: List[str] = []
    invalid_samples: List[str] = []
    seen_bases = set()
    report = ZipReport()

    with _open_zip(data) as archive:
        for entry in archive.infolist():
            if entry.is_dir():
                continue
            report.total_entries += 1
            base, ext = _split_entry_name(entry.filename)
            if not ext or not base or ext not in ZIP_ALLOWED_EXTENSIONS:
                report.invalid_ext += 1
                if len(invalid_samples) < 50:
                    invalid_samples.append(entry.filename)
                continue
            report.file_entries += 1
            if base in seen_bases:
                if base not in duplicate_bases:
                    duplicate_bases.append(base)
                continue
            seen_bases.add(base)

    report.duplicate_bases = cap(duplicate_bases)
    report.invalid_samples = cap(invalid_samples)
    return report


def extract_zip_images(data: bytes, store: ImageStore) -> int:
    """Guarda en `store` cada imagen válida del ZIP con su nombre saneado. Devuelve cuántas."""
    count = 0
    with _open_zip(data) as archive:
        for entry in archive.infolist():
            if entry.is_dir():
                continue
            base, ext = _split_entry_name(entry.filename)
            if not base or ext not in ZIP_ALLOWED_EXTENSIONS:
                continue
            store.write(f"{base}{ext}", archive.read(entry))
            count += 1
    logger.info(f"{count} imágenes extraídas del ZIP")
    return count


# ========================================
# CSV DE POSICIONES
# ========================================

PositionOverrides = Dict[Tuple[str, str], Tuple[int, int]]


def parse_position_overrides(data: bytes) -> Tuple[PositionOverrides, int]:
    """
    Lee `sku;category_key;pos_num;no_units`.

    Las filas con SKU centinela, sin SKU o sin categoría se saltan. Si un par
    aparece varias veces gana la última fila.

    Returns:
        (mapa (sku, categoría) -> (pos_num, no_units), filas saltadas)
    """
    overrides: PositionOverrides = {}
    skipped = 0
    for row in parse_csv(data):
        sku = normalize_text(row.get("sku"))
        category_key = normalize_text(row.get("category_key"))
        if not sku or not category_key or sku in (INCLUDED_BEGIN_SKU, INCLUDED_END_SKU):
            skipped += 1
            continue
        overrides[(sku, category_key)] = (to_int(row.get("pos_num")), to_int(row.get("no_units")) or 1)
    return overrides, skipped
