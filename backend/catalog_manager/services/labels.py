# backend/catalog_manager/services/labels.py
"""
Etiquetas de posición para categorías hermanas.

En los despieces técnicos varias piezas comparten número de posición y se
distinguen por una letra de dibujo ("3B"). La letra se toma del nombre cuando
éste empieza por una letra mayúscula seguida de un espacio ("B Bracket").
"""

from typing import Any, Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.crud import category_crud
from catalog_manager.services.keys import normalize_text


class SiblingLabel(BaseModel):
    key: str
    name: str
    position: str
    pos_label: str
    display_label: str


def build_pos_label(position: Optional[Any], name: Any) -> str:
    """
    Construye la etiqueta de posición.

    Ejemplos:
        build_pos_label(3, "B Bracket") -> "3B"
        build_pos_label(3, "Bracket")   -> "3"
        build_pos_label(None, "A Bolt") -> "0A"
    """
    pos_value = str(position) if position else "0"
    trimmed = normalize_text(name)
    if len(trimmed) >= 2 and trimmed[1] == " ":
        letter = trimmed[0].upper()
        if "A" <= letter <= "Z":
            return f"{pos_value}{letter}"
    return pos_value


def label_siblings(rows: Iterable[Any]) -> List[SiblingLabel]:
    """
    Calcula etiquetas para un conjunto de hermanos ya ordenado por (position, id).

    Si dos hermanos producen la misma etiqueta, la etiqueta visible de todos
    pasa a ser su ordinal (1, 2, 3...) y la calculada se conserva en `pos_label`.
    """
    rows = list(rows)
    names = [row.name_sv or row.name_en or row.key for row in rows]
    labels = [build_pos_label(row.position, name) for row, name in zip(rows, names)]
    has_duplicates = len(set(labels)) != len(labels)

    return [
        SiblingLabel(
            key=row.key,
            name=name,
            position=str(row.position) if row.position else "0",
            pos_label=label,
            display_label=str(index + 1) if has_duplicates else label,
        )
        for index, (row, name, label) in enumerate(zip(rows, names, labels))
    ]


async def get_child_categories_with_labels(db: AsyncSession, parent_key: str) -> List[SiblingLabel]:
    """Hijos directos de `parent_key` con su etiqueta de posición."""
    rows = await category_crud.get_children(db, parent_key=parent_key)
    return label_siblings(rows)
