"""
Endpoint de generación de los snapshots JSON para la tienda.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.schemas.export_schema import ExportRequest, ExportResult
from catalog_manager.services.export_service import ExportService

router = APIRouter()


@router.post("/generate-json", response_model=ExportResult)
async def generate_json(
    *,
    db: AsyncSession = Depends(deps.get_db),
    export_service: ExportService = Depends(deps.get_export_service),
    export_in: ExportRequest,
) -> ExportResult:
    """
    Genera categories-/products-<clave>.json por clave principal, los
    artefactos globales y el manifiesto `_contract.json`.

    Un artefacto que no cumple su contrato hace fallar la petición con 400;
    los ficheros ya escritos en la misma ejecución se conservan.
    """
    return await export_service.generate_json(
        db,
        main_key=export_in.main_key,
        skip_global=export_in.skip_global,
        only_global=export_in.only_global,
    )
