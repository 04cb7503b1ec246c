# backend/catalog_manager/services/keys.py
"""
Normalización de claves y rutas de categoría.

Las rutas llegan de exportaciones heredadas de Windows con la barra invertida
como separador de jerarquía ("F50\\Engine\\Honda GX100"). La clave canónica es
la ruta en minúsculas con los separadores convertidos en guiones. Ninguna función
de este módulo lanza excepciones: la entrada mal formada degrada a cadena vacía.
"""

import re
from typing import Any, List

PATH_SEPARATOR = "\\"
KEY_SEPARATOR = "-"

# å/ä/ö y sus variantes con doble codificación UTF-8 (mojibake) habituales en los CSV
_A_VARIANTS = re.compile("\u00c3\u00a5|\u00c3\u00a4|[\u00e5\u00e4\u00c5\u00c4]")
_O_VARIANTS = re.compile("\u00c3\u00b6|[\u00f6\u00d6]")
_WHITESPACE = re.compile(r"\s+")
_NOT_FILENAME_SAFE = re.compile(r"[^a-z0-9_-]")


def normalize_text(value: Any) -> str:
    """Convierte cualquier valor a texto recortado; None pasa a ser ''."""
    if value is None:
        return ""
    return str(value).strip()


def canonicalize_key(raw_path: Any) -> str:
    """
    Convierte una ruta de categoría en su clave canónica.

    Solo se traduce el separador y se pasa a minúsculas; los espacios y el
    contenido de cada segmento se conservan. La función es idempotente.

    Ejemplo:
        canonicalize_key("F50\\Engine\\Honda GX100") -> "f50-engine-honda gx100"
    """
    return normalize_text(raw_path).replace(PATH_SEPARATOR, KEY_SEPARATOR).lower()


def split_path(path: Any) -> List[str]:
    return [part for part in normalize_text(path).split(PATH_SEPARATOR) if part]


def resolve_parent_key(path: Any) -> str:
    """Clave del padre según la ruta; '' para rutas de un solo segmento (raíz)."""
    parts = split_path(path)
    if len(parts) <= 1:
        return ""
    return canonicalize_key(PATH_SEPARATOR.join(parts[:-1]))


def leaf_segment(path: Any) -> str:
    parts = split_path(path)
    return parts[-1] if parts else ""


def _fold_swedish(value: str) -> str:
    value = _A_VARIANTS.sub("a", value)
    return _O_VARIANTS.sub("o", value)


def normalize_header(value: Any) -> str:
    """Normaliza una cabecera de CSV: 'Name SV' -> 'name_sv', 'Färg' -> 'farg'."""
    result = _fold_swedish(normalize_text(value)).lower()
    return _WHITESPACE.sub("_", result)


def sanitize_file_name(file_name: Any) -> str:
    """
    Reduce un nombre de fichero (sin extensión) a [a-z0-9_-].

    Es la misma transformación que se aplica a las imágenes al extraerlas del ZIP,
    de modo que las búsquedas por clave encuentren el fichero renombrado.
    """
    result = _fold_swedish(normalize_text(file_name)).lower()
    result = _WHITESPACE.sub("_", result)
    result = result.replace("--", "-")
    result = result.replace("%20", "_")
    result = re.sub(r"\[comma\]", ",", result, flags=re.IGNORECASE)
    return _NOT_FILENAME_SAFE.sub("", result)


def slugify(value: Any) -> str:
    base = sanitize_file_name(value).replace("_", "-")
    return re.sub(r"-+", "-", base)
