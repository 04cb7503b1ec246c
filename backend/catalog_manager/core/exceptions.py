# backend/catalog_manager/core/exceptions.py
"""
Excepciones de dominio del gestor de catálogo.

Los servicios del núcleo (importación, exportación, contrato JSON) lanzan estas
excepciones; los endpoints las traducen a respuestas HTTP.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Error base de la aplicación."""


class NotFoundError(CatalogError):
    """El recurso solicitado no existe."""


class InvalidOperationError(CatalogError):
    """La operación no puede aplicarse al estado actual del catálogo."""


class ImportValidationError(CatalogError):
    """
    El lote de importación no supera la validación y se rechaza completo.

    `report` contiene el informe estructurado (contadores, errores, avisos).
    """

    def __init__(self, report: Dict[str, Any], extra: Optional[Dict[str, Any]] = None):
        self.report = report
        self.extra = extra or {}
        errors = report.get("errors", {}).get("items", [])
        super().__init__(f"Import validation failed: {' | '.join(errors[:10])}")


class ContractValidationError(CatalogError):
    """Un artefacto JSON no cumple su contrato y no se ha escrito."""

    def __init__(self, label: str, errors: List[str]):
        self.label = label
        self.errors = errors[:10]
        super().__init__(f"{label} validation failed: {' | '.join(self.errors)}")
