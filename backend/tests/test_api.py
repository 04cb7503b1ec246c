"""
End-to-end tests for the REST API (in-memory database, temporary directories).
"""

import pytest


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["message"].startswith("Bienvenido a")


class TestCategoryEndpoints:

    async def test_create_and_list(self, client):
        for body in ({"path": "G20", "name_sv": "G20", "is_main": True}, {"path": "G20\\Engine", "name_sv": "B Motor", "position": 4}):
            response = await client.post("/api/v1/categories/", json=body)
            assert response.status_code == 201

        duplicate = await client.post("/api/v1/categories/", json={"path": "g20"})
        assert duplicate.status_code == 400

        listed = (await client.get("/api/v1/categories/", params={"q": "g20"})).json()
        by_key = {item["key"]: item for item in listed}
        assert sorted(by_key) == ["g20", "g20-engine"]
        assert by_key["g20-engine"]["parent_key"] == "g20"

        main = (await client.get("/api/v1/categories/main")).json()
        assert main == [{"key": "g20", "name": "G20"}]

    async def test_children_labels(self, client, seeded_catalog):
        response = await client.get("/api/v1/categories/f50/children")

        assert [(item["key"], item["display_label"]) for item in response.json()] == [
            ("f50-engine", "2A"),
            ("f50-frame", "3"),
        ]

    async def test_delete_requires_cascade(self, client, seeded_catalog):
        refused = await client.delete("/api/v1/categories/f50-engine")
        assert refused.status_code == 400

        response = await client.delete("/api/v1/categories/f50", params={"cascade": True})

        assert response.json() == {"deleted": 3}
        assert (await client.get("/api/v1/categories/")).json() == []

    async def test_catalog_image_upload(self, client, seeded_catalog, catalog_store):
        response = await client.post(
            "/api/v1/categories/f50/catalog-image",
            files={"image": ("Cover.JPG", b"jpeg-bytes", "image/jpeg")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["catalog_image"] == "product_catalog_image-f50.jpg"
        assert body["catalog_url"].endswith("product_catalog_image-f50.jpg")
        assert catalog_store.exists("product_catalog_image-f50.jpg")

        not_main = await client.post(
            "/api/v1/categories/f50-engine/catalog-image",
            files={"image": ("x.jpg", b"x", "image/jpeg")},
        )
        assert not_main.status_code == 400

    async def test_language_update(self, client, seeded_catalog):
        f50 = [item for item in (await client.get("/api/v1/categories/")).json() if item["key"] == "f50"][0]

        response = await client.put(
            "/api/v1/language/",
            json={"type": "category", "items": [{"id": f50["id"], "name_sv": "F50", "name_pl": "Kosiarka"}]},
        )

        assert response.json() == {"updated": 1}
        updated = [item for item in (await client.get("/api/v1/categories/")).json() if item["key"] == "f50"][0]
        assert (updated["name_sv"], updated["name_pl"]) == ("F50", "Kosiarka")


class TestImportEndpoints:

    async def test_products_import_uses_camel_case(self, client, products_csv):
        response = await client.post(
            "/api/v1/import/products",
            files={"csv_file": ("products.csv", products_csv, "text/csv")},
            data={"dry_run": "false"},
        )

        assert response.status_code == 200
        body = response.json()
        assert (body["dryRun"], body["mainKeys"]) == (False, ["f50"])
        assert body["created"] == {"categories": 2, "products": 1}

    async def test_rejected_import_returns_report(self, client, products_csv):
        response = await client.post(
            "/api/v1/import/products",
            files={"csv_file": ("products.csv", products_csv + b"bogus;F50;;;;;;;\n", "text/csv")},
            data={"dry_run": "true"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["dryRun"] is True
        assert body["validation"]["errors"]["items"] == ['Row 4: invalid type "bogus".']

    async def test_legacy_import(self, client, fixtures_dir):
        response = await client.post(
            "/api/v1/import/legacy",
            data={"main_key": " F50 "},
            files={
                "categories_file": ("categories-f50.json", (fixtures_dir / "categories-f50.json").read_bytes(), "application/json"),
                "products_file": ("products-f50.json", (fixtures_dir / "products-f50.json").read_bytes(), "application/json"),
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert (body["mainKey"], body["categoryCreated"], body["productCreated"]) == ("f50", 4, 1)

    async def test_legacy_import_rejects_bad_json(self, client):
        response = await client.post(
            "/api/v1/import/legacy",
            data={"main_key": "f50"},
            files={
                "categories_file": ("categories-f50.json", b"{oops", "application/json"),
                "products_file": ("products-f50.json", b"[]", "application/json"),
            },
        )

        assert response.status_code == 400


class TestExportEndpoint:

    async def test_generate_json(self, client, seeded_catalog, json_dir):
        response = await client.post("/api/v1/export/generate-json", json={"mainKey": "f50"})

        assert response.status_code == 200
        assert response.json()["contractVersion"] == "1.0.0"
        assert (json_dir / "categories-f50.json").exists()
        assert (json_dir / "_contract.json").exists()

    @pytest.mark.parametrize("body, status_code", [
        ({"mainKey": "g20"}, 404),
        ({}, 400),
    ])
    async def test_errors(self, client, body, status_code):
        response = await client.post("/api/v1/export/generate-json", json=body)

        assert response.status_code == status_code


class TestPriceCurrencyEndpoint:

    async def test_defaults_then_save(self, client):
        assert (await client.get("/api/v1/settings/price-currency")).json()["baseCurrency"] == "SEK"

        response = await client.post(
            "/api/v1/settings/price-currency",
            json={"baseCurrency": "eur", "currencies": [{"code": "sek", "rate": "11.5"}]},
        )

        assert response.json() == {
            "baseCurrency": "EUR",
            "currencies": [
                {"code": "EUR", "name": "", "rate": 1},
                {"code": "SEK", "name": "", "rate": 11.5},
            ],
        }
        assert (await client.get("/api/v1/settings/price-currency")).json()["baseCurrency"] == "EUR"

    async def test_base_currency_is_required(self, client):
        response = await client.post("/api/v1/settings/price-currency", json={"currencies": []})

        assert response.status_code == 400
