"""
Tests for the CSV import service: products (with images and catalog image),
pricelist and positions.
"""

import io
import zipfile

import pytest

from catalog_manager.core.exceptions import ImportValidationError
from catalog_manager.crud import category_crud, product_crud


def make_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buffer.getvalue()


class TestImportProducts:

    async def test_import_creates_hierarchy_and_links(self, db, import_service, products_csv):
        result = await import_service.import_products(db, products_csv)

        assert (result.created.categories, result.created.products) == (2, 1)
        assert (result.categories, result.products) == (2, 1)
        assert result.main_keys == ["f50"]

        main = await category_crud.get_category_by_key(db, "f50")
        engine = await category_crud.get_category_by_key(db, "f50-engine")
        assert main.is_main and main.parent_key == ""
        assert (engine.parent_key, engine.path, engine.position) == ("f50", "F50\\Engine", 2)
        links = await product_crud.get_links(db, "SKU-1", "f50-engine")
        assert [(link.pos_num, link.no_units) for link in links] == [(5, "2")]

    async def test_reimport_is_idempotent(self, db, import_service, products_csv):
        await import_service.import_products(db, products_csv)

        result = await import_service.import_products(db, products_csv)

        assert (result.created.categories, result.created.products) == (0, 0)
        assert (result.updated.categories, result.updated.products) == (2, 1)
        assert len(await product_crud.get_links(db, "SKU-1", "f50-engine")) == 1

    async def test_dry_run_writes_nothing(self, db, import_service, products_csv):
        result = await import_service.import_products(db, products_csv, dry_run=True)

        assert result.dry_run
        assert (result.main_keys, result.reset_links_for_products) == (["f50"], 1)
        assert await category_crud.get_total_categories(db) == 0

    async def test_invalid_batch_is_rejected_whole(self, db, import_service, products_csv):
        bad_csv = products_csv + b"bogus;F50\\Other;;1;;;;;\n"

        with pytest.raises(ImportValidationError) as exc_info:
            await import_service.import_products(db, bad_csv)

        assert exc_info.value.report["ok"] is False
        assert exc_info.value.report["errors"]["items"] == ['Row 4: invalid type "bogus".']
        assert exc_info.value.extra["dryRun"] is False
        assert await category_crud.get_total_categories(db) == 0

    async def test_images_and_catalog_image(self, db, import_service, image_store, catalog_store, products_csv):
        images = make_zip([("F50 Engine.jpg", b"jpg"), ("notes.txt", b"txt")])

        result = await import_service.import_products(db, products_csv, zip_bytes=images, catalog=("Cover.PNG", b"png"))

        assert result.images == 1
        assert result.zip_validation.invalid_ext == 1
        assert image_store.list_names() == ["f50_engine.jpg"]
        assert result.catalog_image == "product_catalog_image-f50.png"
        assert catalog_store.exists("product_catalog_image-f50.png")
        main = await category_crud.get_category_by_key(db, "f50")
        assert main.catalog_image == "product_catalog_image-f50.png"

    async def test_failed_commit_leaves_no_images(self, db, import_service, image_store, catalog_store, products_csv, monkeypatch):
        async def failing_commit():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(db, "commit", failing_commit)
        images = make_zip([("F50 Engine.jpg", b"jpg")])

        with pytest.raises(RuntimeError):
            await import_service.import_products(db, products_csv, zip_bytes=images, catalog=("Cover.png", b"png"))

        assert image_store.list_names() == []
        assert not catalog_store.exists("product_catalog_image-f50.png")


class TestPricelist:

    async def test_updates_prices_and_counts_missing(self, db, import_service, products_csv):
        await import_service.import_products(db, products_csv)

        result = await import_service.import_pricelist(db, b"Artikelkod;Grundpris\nSKU-1;12,50\nNOPE;1\n")

        assert (result.updated, result.missing) == (1, 1)
        assert (await product_crud.get_product_by_sku(db, "SKU-1")).price == "12.50"

    async def test_reimport_keeps_prices(self, db, import_service, products_csv):
        await import_service.import_products(db, products_csv)
        await import_service.import_pricelist(db, b"artikelkod;grundpris\nSKU-1;12,50\n")

        await import_service.import_products(db, products_csv)

        assert (await product_crud.get_product_by_sku(db, "SKU-1")).price == "12.50"


class TestPositions:

    async def test_replaces_existing_links_and_inserts_new_ones(self, db, import_service, products_csv):
        await import_service.import_products(db, products_csv)
        data = b"sku;category_key;pos_num;no_units\nSKU-1;f50-engine;9;3\nSKU-1;f50;1;1\nGHOST;f50;1;1\n"

        result = await import_service.import_positions(db, data)

        assert (result.updated, result.inserted, result.skipped) == (1, 1, 1)
        links = await product_crud.get_links(db, "SKU-1", "f50-engine")
        assert [(link.pos_num, link.no_units) for link in links] == [(9, "3")]
        assert len(await product_crud.get_links(db, "SKU-1", "f50")) == 1
