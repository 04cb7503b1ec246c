# backend/catalog_manager/services/settings_store.py
"""
Almacén de configuración editable (tabla `settings`).

Los valores se guardan como texto JSON. Los componentes que necesitan
configuración reciben el almacén explícitamente; no hay estado global.
"""

import copy
import json
import logging
import math
import re
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_manager.core.exceptions import InvalidOperationError
from catalog_manager.db.models.setting_model import Setting
from catalog_manager.services.keys import normalize_text

logger = logging.getLogger(__name__)

PRICE_CURRENCY_KEY = "price_currency"
DEFAULT_PRICE_SETTINGS: Dict[str, Any] = {
    "baseCurrency": "SEK",
    "currencies": [{"code": "SEK", "name": "Swedish krona", "rate": 1}],
}

_NOT_CURRENCY_LETTER = re.compile(r"[^A-Z]")


class SettingsStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str, default: Any = None) -> Any:
        """Valor deserializado, o `default` si no existe, está vacío o no es JSON válido."""
        result = await self.db.execute(select(Setting.value).filter(Setting.key == key))
        raw = result.scalar_one_or_none()
        if not raw:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Ajuste '{key}' con JSON ilegible; se usa el valor por defecto")
            return default

    async def set(self, key: str, value: Any) -> None:
        """Guarda el valor y confirma la transacción."""
        payload = json.dumps(value, ensure_ascii=False)
        try:
            setting = await self.db.get(Setting, key)
            if setting is None:
                self.db.add(Setting(key=key, value=payload))
            else:
                setting.value = payload
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise


# ========================================
# AJUSTES DE MONEDA
# ========================================

def normalize_currency_code(value: Any) -> str:
    """'sek ' -> 'SEK'; solo se conservan letras A-Z."""
    return _NOT_CURRENCY_LETTER.sub("", normalize_text(value).upper())


def _normalize_rate(value: Any) -> Any:
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return ""
    if math.isnan(rate) or math.isinf(rate):
        return ""
    rate = round(rate, 6)
    return int(rate) if rate.is_integer() else rate


def build_price_currency_settings(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normaliza la configuración de monedas enviada desde la administración.

    - `baseCurrency` obligatorio (solo letras, en mayúsculas).
    - Códigos duplicados o vacíos se descartan; gana la primera aparición.
    - El tipo de cambio se redondea a 6 decimales, o '' si no es numérico.
    - Si la moneda base no está en la lista se inserta la primera, y su tipo es siempre 1.

    Raises:
        InvalidOperationError: si falta la moneda base.
    """
    payload = payload or {}
    base_currency = normalize_currency_code(payload.get("baseCurrency"))
    if not base_currency:
        raise InvalidOperationError("Base currency is required.")

    raw_list = payload.get("currencies")
    currencies: List[Dict[str, Any]] = []
    seen = set()
    for item in raw_list if isinstance(raw_list, list) else []:
        if not isinstance(item, dict):
            continue
        code = normalize_currency_code(item.get("code"))
        if not code or code in seen:
            continue
        currencies.append({"code": code, "name": normalize_text(item.get("name")), "rate": _normalize_rate(item.get("rate"))})
        seen.add(code)

    if base_currency not in seen:
        currencies.insert(0, {"code": base_currency, "name": "", "rate": 1})

    for entry in currencies:
        if entry["code"] == base_currency:
            entry["rate"] = 1

    return {"baseCurrency": base_currency, "currencies": currencies}


async def get_price_currency_settings(store: SettingsStore) -> Dict[str, Any]:
    return await store.get(PRICE_CURRENCY_KEY, copy.deepcopy(DEFAULT_PRICE_SETTINGS))


async def save_price_currency_settings(store: SettingsStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    settings_value = build_price_currency_settings(payload)
    await store.set(PRICE_CURRENCY_KEY, settings_value)
    return settings_value
