"""
Tests for the legacy dump import (categories-<key>.json + products-<key>.json).
"""

import json

import pytest

from catalog_manager.core.exceptions import ImportValidationError
from catalog_manager.crud import category_crud, product_crud
from catalog_manager.services.legacy import parse_legacy_nodes
from catalog_manager.services.legacy_import import build_legacy_path, import_legacy_main_key, validate_legacy_payload


@pytest.fixture
def legacy_payload(fixtures_dir):
    categories = json.loads((fixtures_dir / "categories-f50.json").read_text(encoding="utf-8"))
    products = json.loads((fixtures_dir / "products-f50.json").read_text(encoding="utf-8"))
    return categories, products


class TestValidateLegacyPayload:

    def test_fixture_counts_missing_references(self, legacy_payload):
        categories, products = legacy_payload

        report = validate_legacy_payload("f50", categories, products)

        assert report.ok
        assert (report.counts.categories, report.counts.products) == (3, 1)
        # 'f50-extra' solo aparece en los datos del producto
        assert (report.counts.missing_product_refs, report.counts.missing_category_refs) == (0, 1)

    def test_errors_and_warnings(self):
        categories = [{"id": 1}, {"slug": "f50"}, {"id": 3, "slug": "f50"}]
        products = [{"id": 1, "sku": ""}, {"sku": "A"}, {"id": 2, "sku": "A"}]

        report = validate_legacy_payload("f50", categories, products)

        assert not report.ok
        assert report.errors.items == ["Category row 1: missing slug/key.", "Product row 1: missing sku."]
        assert "Duplicate category slugs detected: f50" in report.warnings.items
        assert "Duplicate product SKUs detected: A" in report.warnings.items
        assert "Category row 2: missing id." in report.warnings.items


def test_path_builder_survives_cycles():
    nodes = parse_legacy_nodes([
        {"id": 1, "slug": "a", "parent": 2},
        {"id": 2, "slug": "b", "parent": 1},
    ])
    by_id = {node.id: node for node in nodes}

    assert build_legacy_path(nodes[0], by_id, {}) == "b\\a"


class TestImportLegacyMainKey:

    async def test_imports_categories_products_and_links(self, db, legacy_payload):
        categories, products = legacy_payload

        result = await import_legacy_main_key(db, "f50", categories, products)

        assert (result.category_created, result.product_created, result.links_inserted) == (4, 1, 2)
        main = await category_crud.get_category_by_key(db, "f50")
        assert main.is_main
        assert (main.name_sv, main.catalog_image) == ("F50 Gräsklippare", "product_catalog_image-f50.jpg")
        engine = await category_crud.get_category_by_key(db, "f50-engine")
        assert (engine.parent_key, engine.path, engine.position) == ("f50", "f50\\f50-engine", 2)
        # parent 0 sin ser la raíz: un nivel de prefijo
        carb = await category_crud.get_category_by_key(db, "f50-engine-carb")
        assert (carb.parent_key, carb.is_main) == ("f50-engine", False)
        extra = await category_crud.get_category_by_key(db, "f50-extra")
        assert (extra.name_sv, extra.parent_key) == ("Extra", "f50")
        product = await product_crud.get_product_by_sku(db, "SKU-1")
        assert (product.name_sv, product.price) == ("Skruv", "9.90")

    async def test_position_overrides_and_reimport(self, db, legacy_payload):
        categories, products = legacy_payload
        positions = {("SKU-1", "f50-engine"): (4, 2)}
        await import_legacy_main_key(db, "f50", categories, products, positions=positions)

        result = await import_legacy_main_key(db, "f50", categories, products, positions=positions)

        assert (result.category_created, result.category_updated, result.product_updated) == (0, 3, 1)
        links = await product_crud.get_links(db, "SKU-1", "f50-engine")
        assert [(link.pos_num, link.no_units) for link in links] == [(4, "2")]

    async def test_existing_category_is_not_overwritten_by_product_refs(self, db, make_category, legacy_payload):
        categories, products = legacy_payload
        await make_category("f50-extra", name_sv="Extra delar", parent_key="f50")
        await db.commit()

        result = await import_legacy_main_key(db, "f50", categories, products)

        assert result.category_created == 3
        assert (await category_crud.get_category_by_key(db, "f50-extra")).name_sv == "Extra delar"

    async def test_invalid_dump_is_rejected(self, db):
        with pytest.raises(ImportValidationError) as exc_info:
            await import_legacy_main_key(db, "f50", [{"id": 1}], [])

        assert exc_info.value.report["mainKey"] == "f50"
        assert await category_crud.get_total_categories(db) == 0
