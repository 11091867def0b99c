"""
Страница «Атрибуты»: нормализация, форма, фильтры и привязка к подкатегориям.
"""
import asyncio

import pytest

from admin_console.models.attribute import GLOBAL_SCOPE, Attribute, AttributeForm, AttributeValue
from admin_console.models.category import Category, Subcategory
from admin_console.services.attributes import (
    AttributeFormError, AttributeNotFound, build_attribute_payload, filter_attributes, is_linked,
    normalize_attribute, set_subcategory_link, sync_and_reload, toggle_default,
)
from conftest import BASE_URL, request_json


def attr(id, name, subs=(), status="visible", created_at="2026-01-01T00:00:00Z"):
    return Attribute(id=id, name=name, status=status, created_at=created_at, subcategory_ids=list(subs))


class TestNormalizeAttribute:

    def test_backend_shape(self):
        result = normalize_attribute({
            "id": 12,
            "name": "Fabric Type",
            "type": "weird",
            "status": "HIDDEN",
            "subcategory_ids": [3, 4],
            "options": [
                {"option_id": 1, "label": "Cotton", "price_delta": 2, "description": "Soft"},
                {"id": "v2", "name": "Silk", "price_delta": "5"},
                {"id": "v3", "name": "Wool", "price_delta": True, "image_url": "media/w.png"},
            ],
        }, BASE_URL)
        assert result.id == "12"
        assert result.slug == "fabric-type"
        assert result.type == "custom"
        assert result.status == "hidden"
        assert result.subcategory_ids == ["3", "4"]
        cotton, silk, wool = result.values
        assert (cotton.id, cotton.name, cotton.price_delta, cotton.short_description) == ("1", "Cotton", 2.0, "Soft")
        assert silk.price_delta is None
        assert wool.price_delta is None
        assert wool.image_url == "http://catalog.test/media/w.png"

    def test_created_at_defaults_to_now(self):
        result = normalize_attribute({"name": "Size", "type": "size"}, BASE_URL)
        assert result.type == "size"
        assert result.created_at.endswith("Z")
        assert result.id


class TestToggleDefault:

    def test_set_and_unset(self):
        values = [AttributeValue(id="a", name="S", price_delta=3.0), AttributeValue(id="b", name="M", is_default=True)]
        result = toggle_default(values, "a")
        assert [v.is_default for v in result] == [True, False]
        assert result[0].price_delta is None
        again = toggle_default(result, "a")
        assert [v.is_default for v in again] == [False, False]


class TestAttributePayload:

    def test_requires_name(self):
        with pytest.raises(AttributeFormError):
            build_attribute_payload(AttributeForm(name="  ", values=[AttributeValue(id="1", name="Red")]))

    def test_requires_labeled_value(self):
        with pytest.raises(AttributeFormError):
            build_attribute_payload(AttributeForm(name="Color", values=[AttributeValue(id="1", name=" ")]))

    def test_global_and_scoped(self):
        values = [
            AttributeValue(id="1", name=" Red ", price_delta=float("inf"), short_description="<b>Bright</b> red"),
            AttributeValue(id="2", name=""),
        ]
        payload = build_attribute_payload(AttributeForm(name=" Main Color ", values=values, scope=GLOBAL_SCOPE))
        assert payload["name"] == "Main Color"
        assert payload["slug"] == "main-color"
        assert payload["type"] == "custom"
        assert payload["subcategory_ids"] == []
        assert payload["values"] == [{
            "id": "1", "name": "Red", "is_default": False, "image_url": None, "image_id": None,
            "description": "Bright red",
        }]
        scoped = build_attribute_payload(AttributeForm(name="Color", values=values, scope="sub-9"))
        assert scoped["subcategory_ids"] == ["sub-9"]

    def test_editing_keeps_identity(self):
        editing = Attribute(id="attr-1", name="Old", type="color", created_at="2025-05-05T00:00:00Z")
        form = AttributeForm(name="New", type="size", values=[AttributeValue(id="1", name="Red")])
        payload = build_attribute_payload(form, editing=editing)
        assert payload["id"] == "attr-1"
        assert payload["type"] == "color"
        assert payload["created_at"] == "2025-05-05T00:00:00Z"


class TestFilterAttributes:

    attributes = [
        attr("1", "zeta", subs=["s1"], created_at="2026-03-01T00:00:00Z"),
        attr("2", "Alpha", subs=["s2"], status="hidden", created_at="2026-01-01T00:00:00Z"),
        attr("3", "beta", created_at="2026-02-01T00:00:00Z"),
    ]
    subcategories = [
        Subcategory(id="s1", name="Cupcakes", categories=["Cakes"]),
        Subcategory(id="s2", name="Roses", categories=["c-flowers"]),
    ]

    def test_category_filter_keeps_global(self):
        cakes = Category(id="c-cakes", name="Cakes")
        result = filter_attributes(self.attributes, self.subcategories, cakes)
        assert [a.id for a in result] == ["1", "3"]

    def test_category_filter_only_for_all_subcategories(self):
        cakes = Category(id="c-cakes", name="Cakes")
        result = filter_attributes(self.attributes, self.subcategories, cakes, subcategory_id="s2")
        assert len(result) == 3

    def test_search_status_and_sort(self):
        assert [a.id for a in filter_attributes(self.attributes, search="ET")] == ["1", "3"]
        assert [a.id for a in filter_attributes(self.attributes, status="hidden")] == ["2"]
        assert [a.name for a in filter_attributes(self.attributes, sort="alpha")] == ["Alpha", "beta", "zeta"]
        assert [a.id for a in filter_attributes(self.attributes, sort="recent")] == ["1", "3", "2"]

    def test_is_linked(self):
        assert is_linked(self.attributes[0], "s1") is True
        assert is_linked(self.attributes[0], "__all__") is False


class TestSubcategoryLink:

    raw = {"id": "a1", "name": "Color", "created_at": "2026-01-01T00:00:00Z", "subcategory_ids": ["s1"],
           "values": [{"id": "v1", "name": "Red"}]}

    def test_link_and_unlink(self, backend, catalog):
        backend.route("GET", "/api/show-subcat-attributes/", (200, {"results": [self.raw]}))
        backend.route("PUT", "/api/edit-subcat-attributes/", (200, {"success": True}))

        linked = asyncio.run(set_subcategory_link(catalog, "a1", "s2", True))
        assert linked.subcategory_ids == ["s1", "s2"]
        sent = request_json(backend.calls("PUT", "/api/edit-subcat-attributes/")[0])
        assert sent["subcategory_ids"] == ["s1", "s2"]
        assert sent["values"][0]["name"] == "Red"

        unlinked = asyncio.run(set_subcategory_link(catalog, "a1", "s1", False))
        assert unlinked.subcategory_ids == []

    def test_requires_concrete_subcategory(self, catalog):
        with pytest.raises(AttributeFormError):
            asyncio.run(set_subcategory_link(catalog, "a1", "__all__", True))

    def test_unknown_attribute(self, backend, catalog):
        backend.route("GET", "/api/show-subcat-attributes/", (200, [self.raw]))
        with pytest.raises(AttributeNotFound):
            asyncio.run(set_subcategory_link(catalog, "missing", "s1", True))


class TestSyncAndReload:

    def test_failed_sync_still_reloads(self, backend, catalog):
        backend.route("POST", "/api/sync-product-attributes/", (500, {"error": "sync broke"}))
        backend.route("GET", "/api/show-subcat-attributes/", (200, [{"id": "a1", "name": "Color"}]))
        result = asyncio.run(sync_and_reload(catalog))
        assert result["synced"] is False
        assert [a.id for a in result["attributes"]] == ["a1"]
