"""
Tests for the pure product/category graph assembler.

Rows are plain namespaces shaped like the ORM models, so no database is needed.
"""

from types import SimpleNamespace

from catalog_manager.services.catalog_graph import (
    ImageLookup,
    assemble_export,
    build_category_products,
    order_category_products,
)
from catalog_manager.services.legacy import LegacyMaps

TEXT_FIELDS = ("name_sv", "desc_sv", "name_en", "desc_en", "name_pl", "desc_pl")


def category(id, key, parent_key="", position=0, is_main=False, path="", catalog_image=None, **texts):
    fields = {field: texts.get(field) for field in TEXT_FIELDS}
    return SimpleNamespace(
        id=id, key=key, parent_key=parent_key, position=position, is_main=is_main,
        path=path or key, catalog_image=catalog_image, **fields,
    )


def product(id, sku, price="10.00", **texts):
    fields = {field: texts.get(field) for field in TEXT_FIELDS}
    return SimpleNamespace(id=id, sku=sku, price=price, **fields)


def link(category_key, pos_num, no_units="1"):
    return SimpleNamespace(category_key=category_key, pos_num=pos_num, no_units=no_units)


CATEGORIES = [
    category(1, "f50", position=1, is_main=True, catalog_image="product_catalog_image-f50.jpg", name_sv="F50"),
    category(2, "f50-engine", parent_key="f50", position=2, name_sv="Motor", name_en="Engine"),
    category(3, "f50-engine-carb", parent_key="f50-engine", position=3),
    category(4, "f50-orphan", parent_key="f50", position=4),
]

PRODUCTS = {sku: product(index, sku) for index, sku in enumerate(["<", ">", "A", "B", "S"], start=1)}

# Ordenadas por (pos_num, sku, category_key), como las devuelve la base de datos
LINK_ROWS = [
    (PRODUCTS["<"], link("f50-engine", 0)),
    (PRODUCTS[">"], link("f50-engine", 0)),
    (PRODUCTS["B"], link("f50-engine", 0)),
    (PRODUCTS["S"], link("f50-engine", 2, "3")),
    (PRODUCTS["S"], link("f50-orphan", 2)),
    (PRODUCTS["A"], link("f50-engine", 5)),
    (PRODUCTS["S"], link("f50-engine", 7)),
]


def by_key(items):
    return {item["key"]: item for item in items}


class TestIncludedPartsOrder:

    def test_bracket_rule(self):
        entries = [{"sku": "A", "pos_num": 5}, {"sku": ">", "pos_num": 0}, {"sku": "B", "pos_num": 0}, {"sku": "<", "pos_num": 0}]
        assert [entry["sku"] for entry in order_category_products(entries)] == ["A", ">", "B", "<"]

    def test_sentinels_are_dropped_without_included_parts(self):
        entries = [{"sku": ">", "pos_num": 0}, {"sku": "<", "pos_num": 0}, {"sku": "A", "pos_num": 5}]
        assert [entry["sku"] for entry in order_category_products(entries)] == ["A"]

    def test_category_list_uses_string_positions(self):
        rows = [(PRODUCTS["B"], link("f50-engine", 0)), (PRODUCTS["A"], link("f50-engine", 5))]
        entries = build_category_products(rows)
        assert [(entry["sku"], entry["pos_num"]) for entry in entries] == [("A", "5"), ("B", "0")]


class TestAssembleExport:

    def test_category_products_follow_the_bracket_rule(self):
        export = assemble_export("f50", CATEGORIES, LINK_ROWS)

        engine = by_key(export.categories)["f50-engine"]
        assert [entry["sku"] for entry in engine["products"]] == ["S", "A", "S", ">", "B", "<"]
        assert [entry["pos_num"] for entry in engine["products"]] == ["2", "5", "7", "0", "0", "0"]

    def test_one_product_per_sku_with_one_membership_per_position(self):
        export = assemble_export("f50", CATEGORIES, LINK_ROWS)

        products = {item["sku"]: item for item in export.products}
        assert sorted(products) == ["<", ">", "A", "B", "S"]
        memberships = [(entry["key"], entry["pos_num"], entry["no_units"]) for entry in products["S"]["categories"]]
        assert memberships == [("f50-engine", "2", "3"), ("f50-orphan", "2", "1"), ("f50-engine", "7", "1")]
        assert products["B"]["categories"][0]["pos_num"] == "0"

    def test_parent_ids_and_main_catalog_image(self):
        export = assemble_export("f50", CATEGORIES, LINK_ROWS)

        items = by_key(export.categories)
        assert [item["key"] for item in export.categories] == ["f50", "f50-engine", "f50-engine-carb", "f50-orphan"]
        assert items["f50"]["parent"] == 0
        assert items["f50-engine-carb"]["parent"] == 2
        assert items["f50"]["product_catalog_image_url"] == "/images/product-catalog-images/product_catalog_image-f50.jpg"
        assert items["f50-engine"]["product_catalog_image_url"] == ""
        assert items["f50-engine"]["lang_name"] == {"se": "Motor", "en": "Engine", "pl": ""}

    def test_snapshot_allow_list_and_parent_override(self):
        maps = LegacyMaps(
            parent_by_slug={"f50-engine-carb": "f50", "f50-engine": "gone"},
            position_by_slug={"f50-engine": "9"},
            allowed_slugs={"f50", "f50-engine", "f50-engine-carb"},
        )

        export = assemble_export("f50", CATEGORIES, LINK_ROWS, maps)

        items = by_key(export.categories)
        assert "f50-orphan" not in items
        assert items["f50-engine-carb"]["parent"] == 1
        # El padre heredado no se exporta: se usa el parent_key local
        assert items["f50-engine"]["parent"] == 1
        assert (items["f50-engine"]["position"], items["f50-engine"]["pos_num"]) == (9, "9")
        s_keys = {entry["key"] for item in export.products if item["sku"] == "S" for entry in item["categories"]}
        assert s_keys == {"f50-engine"}


class TestImageLookup:

    def test_candidates_are_deduplicated_in_order(self):
        candidates = ImageLookup.candidates("f50-engine-honda gx100", "F50\\Engine\\Honda GX100")
        assert candidates == ["f50-engine-honda gx100", "f50-engine-honda_gx100", "honda gx100", "honda_gx100"]
        assert ImageLookup.candidates("f50", "F50") == ["f50"]

    def test_key_candidates_win_over_leaf(self, image_store):
        image_store.write("honda_gx100.jpg", b"leaf")
        image_store.write("f50-engine-honda_gx100.svg", b"key")

        lookup = ImageLookup(image_store)

        assert lookup.image_ref("f50-engine-honda gx100", "F50\\Engine\\Honda GX100") == {
            "src": "/images/spare-part-images/f50-engine-honda_gx100.svg"
        }
        assert lookup.image_ref("f50-frame", "F50\\Frame") == {}

    def test_export_attaches_images(self, image_store):
        image_store.write("f50-engine.png", b"png")

        export = assemble_export("f50", CATEGORIES, LINK_ROWS, image_lookup=ImageLookup(image_store))

        items = by_key(export.categories)
        assert items["f50-engine"]["image"] == {"src": "/images/spare-part-images/f50-engine.png"}
        assert items["f50"]["image"] == {}
