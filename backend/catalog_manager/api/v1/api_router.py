# backend/catalog_manager/api/v1/api_router.py
"""
Este archivo contiene el router principal para la API versión 1.

Se encarga de registrar y configurar todos los routers de la versión 1 de la API.
"""

from fastapi import APIRouter

# Importación de routers especializados por dominio
from catalog_manager.api.v1.endpoints import (
    categories,
    products,
    machine_categories,
    language,
    imports,
    exports,
    settings,
)

# ========================================
# CONFIGURACIÓN DEL ROUTER PRINCIPAL V1
# ========================================

api_router_v1 = APIRouter()

# ========================================
# REGISTRO DE ROUTERS POR DOMINIO
# ========================================

# ROUTER DE CATEGORÍAS
# Alta por ruta, edición en bloque, borrado por prefijo, imágenes de catálogo
api_router_v1.include_router(
    categories.router,
    prefix="/categories",           # Prefijo: /api/v1/categories
    tags=["Categories"]
)

# ROUTER DE PRODUCTOS
api_router_v1.include_router(
    products.router,
    prefix="/products",
    tags=["Products"]
)

# ROUTER DE CATEGORÍAS DE MÁQUINA
api_router_v1.include_router(
    machine_categories.router,
    prefix="/machine-categories",
    tags=["Machine Categories"]
)

# ROUTER DE IDIOMAS
api_router_v1.include_router(
    language.router,
    prefix="/language",
    tags=["Language"]
)

# ROUTER DE IMPORTACIONES
# CSV de productos, lista de precios, posiciones y volcado heredado
api_router_v1.include_router(
    imports.router,
    prefix="/import",
    tags=["Import"]
)

# ROUTER DE EXPORTACIÓN
api_router_v1.include_router(
    exports.router,
    prefix="/export",
    tags=["Export"]
)

# ROUTER DE AJUSTES
api_router_v1.include_router(
    settings.router,
    prefix="/settings",
    tags=["Settings"]
)
