import pytest

from conftest import FakeStore
from lumen_i18n.services.i18n.keys import parse_entity_key
from lumen_i18n.services.search.catalog import CatalogEntity
from lumen_i18n.services.search.entity_index import EntitySearchIndex

PANEL_ID = "550e8400-e29b-41d4-a716-446655440000"
SPOT_ID = "6f1c2a10-1b2c-4d3e-8f90-a1b2c3d4e5f6"
LIGHTING_ID = "0b7e4f52-3c1d-4a8e-9f20-7d6c5b4a3921"


class _FakeCatalog:
    def __init__(self) -> None:
        self.products = [
            CatalogEntity("product", PANEL_ID, sku="LP-6060", slug="led-panel-60x60"),
            CatalogEntity("product", SPOT_ID, sku="SP-100", slug="spot-100"),
        ]
        self.categories = [CatalogEntity("category", LIGHTING_ID, slug="lighting")]
        self.calls: list[tuple[str, str]] = []

    def _rows(self, entity_type: str) -> list[CatalogEntity]:
        return self.products if entity_type == "product" else self.categories

    async def find_by_ids(self, entity_type, ids, *, limit=5):  # noqa: ANN001
        wanted = set(ids)
        self.calls.append(("ids", ",".join(sorted(wanted))))
        return [row for row in self._rows(entity_type) if row.id in wanted][:limit]

    async def find_by_identifier(self, entity_type, identifier, *, limit=5):  # noqa: ANN001
        self.calls.append(("identifier", identifier))
        needle = identifier.lower()
        return [
            row
            for row in self._rows(entity_type)
            if needle in {(row.sku or "").lower(), (row.slug or "").lower()}
        ][:limit]

    async def find_by_prefix(self, entity_type, prefix, *, limit=5):  # noqa: ANN001
        self.calls.append(("prefix", prefix))
        return [
            row
            for row in self._rows(entity_type)
            if (row.slug or "").startswith(prefix) or (row.sku or "").startswith(prefix)
        ][:limit]

    async def search_sku(self, term, *, limit=10):  # noqa: ANN001
        return [row for row in self.products if term.lower() in (row.sku or "").lower()][:limit]


@pytest.mark.asyncio
async def test_uuid_key_maps_back_to_product() -> None:
    store = FakeStore({("en", f"product.{PANEL_ID}.name"): "LED Panel"})
    index = EntitySearchIndex(store, _FakeCatalog())

    results = await index.search("led", "en")

    assert len(results) == 1
    assert results[0].entity_id == PANEL_ID
    assert results[0].name == "LED Panel"
    assert results[0].sku == "LP-6060"


@pytest.mark.asyncio
async def test_resolution_order_uuid_then_identifier_then_prefix() -> None:
    catalog = _FakeCatalog()
    index = EntitySearchIndex(FakeStore(), catalog)

    by_uuid = await index.resolve_entity(parse_entity_key(f"product.{SPOT_ID}.name"))
    assert [row.id for row in by_uuid] == [SPOT_ID]
    assert catalog.calls == [("ids", SPOT_ID)]

    catalog.calls.clear()
    by_slug = await index.resolve_entity(parse_entity_key("category.lighting.name"))
    assert [row.id for row in by_slug] == [LIGHTING_ID]
    assert catalog.calls == [("identifier", "lighting")]

    catalog.calls.clear()
    by_prefix = await index.resolve_entity(parse_entity_key("product.led-panel.name"))
    assert [row.id for row in by_prefix] == [PANEL_ID]
    assert catalog.calls == [("identifier", "led-panel"), ("prefix", "led-panel")]


@pytest.mark.asyncio
async def test_unknown_uuid_falls_back_to_identifier() -> None:
    catalog = _FakeCatalog()
    index = EntitySearchIndex(FakeStore(), catalog)
    missing = "11111111-2222-4333-8444-555555555555"

    assert await index.resolve_entity(parse_entity_key(f"product.{missing}.name")) == []
    assert [call[0] for call in catalog.calls] == ["ids", "identifier", "prefix"]


@pytest.mark.asyncio
async def test_search_covers_categories_and_deduplicates() -> None:
    store = FakeStore(
        {
            ("tr", f"product.{PANEL_ID}.name"): "LED Aydınlatma Paneli",
            ("tr", "product.LP-6060.name"): "LED Aydınlatma Paneli (eski)",
            ("tr", "category.lighting.name"): "Aydınlatma",
            ("tr", "header.lighting"): "Aydınlatma",
        }
    )
    index = EntitySearchIndex(store, _FakeCatalog())

    results = await index.search("aydınlatma", "tr")

    assert [(r.entity_type, r.entity_id) for r in results] == [
        ("product", PANEL_ID),
        ("category", LIGHTING_ID),
    ]


@pytest.mark.asyncio
async def test_search_by_sku_uses_translated_name() -> None:
    store = FakeStore({("de", f"product.{SPOT_ID}.name"): "Strahler 100"})
    index = EntitySearchIndex(store, _FakeCatalog())

    results = await index.search("SP-1", "de")

    assert len(results) == 1
    assert results[0].entity_id == SPOT_ID
    assert results[0].name == "Strahler 100"


@pytest.mark.asyncio
async def test_search_short_query_and_limit() -> None:
    store = FakeStore(
        {
            ("en", f"product.{PANEL_ID}.name"): "Panel light",
            ("en", f"product.{SPOT_ID}.name"): "Spot light",
        }
    )
    index = EntitySearchIndex(store, _FakeCatalog(), default_limit=5)

    assert await index.search("l", "en") == []
    assert len(await index.search("light", "en", limit=1)) == 1
    assert len(await index.search("light", "en")) == 2
