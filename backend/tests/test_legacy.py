"""
Tests for the legacy snapshot reconciler: lookup tables, overrides, the
key-prefix parent fallback and the snapshot source (local cache and HTTP).
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from catalog_manager.crud import category_crud
from catalog_manager.services.legacy import (
    LegacyMaps,
    LegacySnapshotSource,
    apply_legacy_overrides,
    build_legacy_maps,
    parse_legacy_nodes,
    repair_parent_keys,
    resolve_parent_by_prefix,
)

SNAPSHOT = [
    {"id": 1, "slug": "f50", "parent": 0},
    {"id": 2, "slug": "f50-engine", "parent": 1, "pos_num": "3"},
    {"id": 3, "key": "f50-engine-carb", "parent": 2, "pos_num": "x"},
    "not a node",
]


def category(key, position=0):
    return SimpleNamespace(key=key, position=position)


class TestLegacyMaps:

    def test_maps_are_built_from_the_flat_list(self):
        maps = build_legacy_maps(parse_legacy_nodes(SNAPSHOT))

        assert maps.parent_by_slug == {"f50-engine": "f50", "f50-engine-carb": "f50-engine"}
        assert maps.position_by_slug == {"f50-engine": "3", "f50-engine-carb": "x"}
        assert maps.allowed_slugs == {"f50", "f50-engine", "f50-engine-carb"}

    def test_loose_field_shapes_keep_the_node(self):
        nodes = parse_legacy_nodes([
            {"id": 1, "slug": "f50", "parent": 0, "lang_name": [], "products": None},
            {"id": 2, "slug": "f50-engine", "parent": 1, "pos_num": "8", "product_catalog_image_url": False},
            {"id": 3, "slug": "f50-frame", "parent": 1, "lang_desc": "", "name": False},
            {"id": 4, "slug": 500, "parent": 1},
        ])

        assert len(nodes) == 4
        assert (nodes[0].lang_name, nodes[0].products) == (None, [])
        assert nodes[1].product_catalog_image_url is None
        assert nodes[3].node_slug == "500"
        maps = build_legacy_maps(nodes)
        assert maps.allowed_slugs == {"f50", "f50-engine", "f50-frame", "500"}
        assert maps.parent_by_slug == {"f50-engine": "f50", "f50-frame": "f50", "500": "f50"}
        assert maps.position_by_slug == {"f50-engine": "8"}

    def test_missing_snapshot_gives_empty_maps(self):
        maps = build_legacy_maps(None)
        assert not maps.allowed_slugs and not maps.parent_by_slug


class TestLegacyOverrides:

    def test_allow_list_and_positions(self):
        maps = build_legacy_maps(parse_legacy_nodes(SNAPSHOT))
        categories = [category("f50", 1), category("f50-engine", 7), category("f50-engine-carb", 4), category("f50-orphan", 9)]

        reconciled = {item.category.key: item for item in apply_legacy_overrides(categories, maps)}

        assert "f50-orphan" not in reconciled
        assert (reconciled["f50-engine"].position, reconciled["f50-engine"].pos_num) == (3, "3")
        # pos_num heredado no numérico: se mantiene la posición local
        assert (reconciled["f50-engine-carb"].position, reconciled["f50-engine-carb"].pos_num) == (4, "4")
        assert reconciled["f50-engine-carb"].legacy_parent_key == "f50-engine"

    def test_without_snapshot_local_data_is_untouched(self):
        categories = [category("f50", 0), category("f50-orphan", 9)]

        reconciled = apply_legacy_overrides(categories, LegacyMaps())

        assert [item.category.key for item in reconciled] == ["f50", "f50-orphan"]
        assert [(item.position, item.pos_num, item.legacy_parent_key) for item in reconciled] == [
            (0, "", ""),
            (9, "9", ""),
        ]


class TestResolveParentByPrefix:

    def test_longest_known_prefix_wins(self):
        known = {"f50", "f50-engine"}
        assert resolve_parent_by_prefix("f50-engine-honda gx100", known, "f50") == "f50-engine"

    def test_no_match(self):
        assert resolve_parent_by_prefix("g20-engine", {"f50"}, "f50") == ""

    def test_deny_list_suppresses_reattachment_to_root(self):
        deny = [("Monteringsdetaljer", "shared mounting parts")]
        assert resolve_parent_by_prefix("f50-misc", {"f50"}, "f50", name="Monteringsdetaljer", deny_list=deny) == ""
        assert resolve_parent_by_prefix("f50-misc", {"f50"}, "f50", name="Other") == "f50"

    def test_deny_list_does_not_apply_below_root(self):
        deny = [("f50-engine-misc", "ignored")]
        known = {"f50", "f50-engine"}
        assert resolve_parent_by_prefix("f50-engine-misc", known, "f50", deny_list=deny) == "f50-engine"


class TestSnapshotSource:

    async def test_reads_local_cache(self, tmp_path):
        (tmp_path / "categories-f50.json").write_text(json.dumps(SNAPSHOT), encoding="utf-8")

        nodes = await LegacySnapshotSource(cache_dir=tmp_path).load("f50")

        assert [node.node_slug for node in nodes] == ["f50", "f50-engine", "f50-engine-carb"]

    async def test_missing_cache_and_no_url(self, tmp_path):
        assert await LegacySnapshotSource(cache_dir=tmp_path).load("f50") is None

    async def test_unreadable_cache(self, tmp_path):
        (tmp_path / "categories-f50.json").write_text("{broken", encoding="utf-8")
        assert await LegacySnapshotSource(cache_dir=tmp_path).load("f50") is None

    async def test_fetches_over_http(self):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, json=SNAPSHOT)

        source = LegacySnapshotSource(base_url="https://legacy.example.com/json/", transport=httpx.MockTransport(handler))
        nodes = await source.load("f50")

        assert requested == ["https://legacy.example.com/json/categories-f50.json"]
        assert len(nodes) == 3

    @pytest.mark.parametrize("response", [
        httpx.Response(404),
        httpx.Response(500),
        httpx.Response(200, text="<html>"),
        httpx.Response(200, json={"not": "a list"}),
    ])
    async def test_http_failures_yield_none(self, response):
        source = LegacySnapshotSource(base_url="https://legacy.example.com", transport=httpx.MockTransport(lambda request: response))
        assert await source.load("f50") is None

    async def test_cache_takes_precedence_over_http(self, tmp_path):
        (tmp_path / "categories-f50.json").write_text(json.dumps(SNAPSHOT[:1]), encoding="utf-8")

        def handler(request):
            raise AssertionError("HTTP should not be used when the cache has the file")

        source = LegacySnapshotSource(cache_dir=tmp_path, base_url="https://legacy.example.com", transport=httpx.MockTransport(handler))
        nodes = await source.load("f50")

        assert [node.node_slug for node in nodes] == ["f50"]


async def test_repair_parent_keys(db, make_category):
    await make_category("f50", is_main=True)
    await make_category("f50-engine")
    await make_category("f50-engine-carb", parent_key="missing")
    await make_category("f50-misc", name_sv="Monteringsdetaljer")
    await make_category("f50-frame", parent_key="f50")
    await db.commit()

    updates = await repair_parent_keys(db, "f50", deny_list=[("monteringsdetaljer", "shared parts")])

    assert sorted(updates) == [("f50-engine", "f50"), ("f50-engine-carb", "f50-engine")]
    misc = await category_crud.get_category_by_key(db, "f50-misc")
    assert misc.parent_key == ""
