# backend/catalog_manager/main.py
"""
Punto de entrada principal de la aplicación FastAPI.

Este módulo configura y inicializa la aplicación:
- Logging a partir de la configuración
- Registro de routers de la API con prefijos
- Traducción de las excepciones de dominio a respuestas HTTP
- Creación de tablas al arrancar
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from catalog_manager.api.v1.api_router import api_router_v1
from catalog_manager.core.config import settings
from catalog_manager.core.exceptions import (
    ContractValidationError,
    ImportValidationError,
    InvalidOperationError,
    NotFoundError,
)
from catalog_manager.db.database import init_models

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

# ========================================
# CONFIGURACIÓN DE LA APLICACIÓN FASTAPI
# ========================================

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    version=settings.PROJECT_VERSION,
    description="API de administración del catálogo de recambios"
)

# ========================================
# REGISTRO DE ROUTERS DE LA API
# ========================================

app.include_router(api_router_v1, prefix=settings.API_V1_STR)

# ========================================
# EXCEPCIONES DE DOMINIO
# ========================================

@app.exception_handler(ImportValidationError)
async def import_validation_error_handler(request: Request, exc: ImportValidationError):
    """Lote rechazado: se devuelve el informe de validación completo."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "validation": exc.report, **exc.extra},
    )


@app.exception_handler(ContractValidationError)
async def contract_validation_error_handler(request: Request, exc: ContractValidationError):
    logger.error(f"Exportación fallida: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "errors": exc.errors},
    )


@app.exception_handler(InvalidOperationError)
async def invalid_operation_error_handler(request: Request, exc: InvalidOperationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


# ========================================
# ENDPOINTS RAÍZ Y VERIFICACIÓN DE ESTADO
# ========================================

@app.get("/", tags=["Root"])
async def read_root():
    """Health check básico con el nombre y la versión del proyecto."""
    return {"message": f"Bienvenido a {settings.PROJECT_NAME} v{settings.PROJECT_VERSION}"}

# ========================================
# EVENTOS DEL CICLO DE VIDA DE LA APLICACIÓN
# ========================================

@app.on_event("startup")
async def startup_event():
    """Crea las tablas que falten antes de atender peticiones."""
    await init_models()
    logger.info(f"{settings.PROJECT_NAME} v{settings.PROJECT_VERSION} iniciado")
