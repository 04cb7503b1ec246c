"""
Endpoints de los ajustes editables (monedas de precio).
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.api import deps
from catalog_manager.schemas.settings_schema import PriceCurrencySettings
from catalog_manager.services.settings_store import (
    SettingsStore,
    get_price_currency_settings,
    save_price_currency_settings,
)

router = APIRouter()


@router.get("/price-currency", response_model=PriceCurrencySettings)
async def read_price_currency(db: AsyncSession = Depends(deps.get_db)) -> Dict[str, Any]:
    return await get_price_currency_settings(SettingsStore(db))


@router.post("/price-currency", response_model=PriceCurrencySettings)
async def save_price_currency(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(deps.get_db),
) -> Dict[str, Any]:
    """
    Normaliza y guarda la moneda base y la lista de monedas.

    La entrada no se tipa: los códigos se limpian, los duplicados se descartan
    y los tipos de cambio no numéricos se guardan como ''.
    """
    return await save_price_currency_settings(SettingsStore(db), payload)
