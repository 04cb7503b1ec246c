# backend/catalog_manager/schemas/settings_schema.py

"""
Esquemas Pydantic de los ajustes de moneda.

La entrada se acepta sin tipar (la normalización la hace el servicio); la
respuesta siempre tiene esta forma.
"""

from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field


class PriceCurrency(BaseModel):
    code: str
    name: str = ""
    # '' cuando el tipo enviado no era numérico
    rate: Union[int, float, str] = 1


class PriceCurrencySettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_currency: str = Field(..., alias="baseCurrency")
    currencies: List[PriceCurrency] = Field(default_factory=list)
