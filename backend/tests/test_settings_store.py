"""
Tests for the key-value settings store and price currency normalization.
"""

import pytest

from catalog_manager.core.exceptions import InvalidOperationError
from catalog_manager.db.models.setting_model import Setting
from catalog_manager.services.settings_store import (
    DEFAULT_PRICE_SETTINGS,
    SettingsStore,
    build_price_currency_settings,
    get_price_currency_settings,
    normalize_currency_code,
    save_price_currency_settings,
)


class TestPriceCurrencyNormalization:

    def test_codes_are_upper_case_letters(self):
        assert normalize_currency_code(" s.e-k ") == "SEK"

    def test_full_normalization(self):
        payload = {
            "baseCurrency": "sek",
            "currencies": [
                {"code": "eur", "name": " Euro ", "rate": "0.0874561234"},
                {"code": "EUR", "name": "duplicate", "rate": 2},
                {"code": "usd", "name": "Dollar", "rate": "n/a"},
                {"code": "nok", "rate": 1.0},
                "garbage",
            ],
        }

        result = build_price_currency_settings(payload)

        assert result == {
            "baseCurrency": "SEK",
            "currencies": [
                {"code": "SEK", "name": "", "rate": 1},
                {"code": "EUR", "name": "Euro", "rate": 0.087456},
                {"code": "USD", "name": "Dollar", "rate": ""},
                {"code": "NOK", "name": "", "rate": 1},
            ],
        }

    def test_base_currency_rate_is_forced_to_one(self):
        result = build_price_currency_settings({"baseCurrency": "EUR", "currencies": [{"code": "EUR", "rate": 3}]})
        assert result["currencies"] == [{"code": "EUR", "name": "", "rate": 1}]

    def test_base_currency_is_required(self):
        with pytest.raises(InvalidOperationError, match="Base currency is required."):
            build_price_currency_settings({"currencies": []})


class TestSettingsStore:

    async def test_defaults_when_missing(self, db):
        assert await get_price_currency_settings(SettingsStore(db)) == DEFAULT_PRICE_SETTINGS

    async def test_roundtrip_through_the_table(self, db):
        store = SettingsStore(db)

        saved = await save_price_currency_settings(store, {"baseCurrency": "eur"})

        assert saved == {"baseCurrency": "EUR", "currencies": [{"code": "EUR", "name": "", "rate": 1}]}
        assert await get_price_currency_settings(store) == saved

    async def test_unreadable_value_falls_back_to_default(self, db):
        db.add(Setting(key="price_currency", value="{not json"))
        await db.commit()

        assert await SettingsStore(db).get("price_currency", "fallback") == "fallback"
