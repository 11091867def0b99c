"""
Карточка товара, тело сохранения и библиотека атрибутов товара.
"""
import asyncio

from admin_console.models.attribute import AttributeOption, CustomAttribute
from admin_console.services.products import (
    LIBRARY_PARTIAL_WARNING, build_product_payload, compose_product_details, load_attribute_library,
    set_subcategory_for_products,
)
from conftest import BASE_URL, request_json


class TestProductDetails:

    def test_sections_are_combined(self):
        details = compose_product_details("p1", {
            "basic": {"name": "Red Velvet"},
            "seo": None,
            "variant": {"sku": "RV"},
            "shipping": [],
            "variants": {"variant_combinations": [{"sku": "RV-S"}, "junk"]},
            "other": {"images_with_ids": [
                {"id": 10, "url": "/media/rv.png", "alt": "Front", "is_primary": True},
                {"id": 11},
            ]},
            "attributes": [
                {"id": "a1", "name": "Size", "options": [{"label": "Small", "price_delta": "2.5", "image_url": "media/s.png"}]},
            ],
        }, BASE_URL)
        assert details.basic == {"name": "Red Velvet"}
        assert details.seo == {}
        assert details.shipping == {}
        assert details.variants == [{"sku": "RV-S"}]
        assert [(i.id, i.url, i.is_primary) for i in details.images] == [("10", "http://catalog.test/media/rv.png", True)]
        option = details.attributes[0].options[0]
        assert option.price_delta == 2.5
        assert option.image_preview == "http://catalog.test/media/s.png"
        assert option.id

    def test_legacy_image_list(self):
        details = compose_product_details("p1", {"other": {"images": ["/media/a.png", ""]}}, BASE_URL)
        assert [i.url for i in details.images] == ["http://catalog.test/media/a.png"]

    def test_full_product_from_backend(self, backend, catalog):
        for path in ("/api/show_specific_product/", "/api/show_product_seo/", "/api/show_product_variant/",
                     "/api/show_product_shipping_info/", "/api/show_product_variants/", "/api/show_product_other_details/"):
            backend.route("POST", path, (200, {}))
        backend.route("POST", "/api/show_product_attributes/", (404, {"error": "no attributes"}))
        sections = asyncio.run(catalog.get_product_details("p1"))
        assert sections["attributes"] == []
        assert all(request_json(r) == {"product_id": "p1"} for r in backend.requests)


class TestProductPayload:

    def test_create_and_edit(self):
        attrs = [CustomAttribute(id="a1", name="Size", options=[AttributeOption(id="o1", label="S", is_default=True)])]
        created = build_product_payload({"name": "Cake"}, attrs)
        assert created["name"] == "Cake"
        assert created["customAttributes"][0]["options"][0]["label"] == "S"
        assert "product_ids" not in created
        assert build_product_payload({"name": "Cake"}, attrs, "p9")["product_ids"] == ["p9"]


class TestAttributeLibrary:

    def test_partial_failure_warning(self, backend, catalog):
        def per_subcategory(request):
            if request.url.params["subcategory_id"] == "s2":
                return 500, {"error": "down"}
            return 200, [{"id": "a1", "name": "Size", "values": [{"id": "o1", "name": "S", "price_delta": 3}]}]

        backend.route("GET", "/api/show-subcat-attributes/", per_subcategory)
        selected = [CustomAttribute(id="a1", name="Size", options=[AttributeOption(id="o1", label="S")])]
        response = asyncio.run(load_attribute_library(catalog, ["s1", "s2", "s1"], selected, True, "AED"))
        assert response.warning == LIBRARY_PARTIAL_WARNING
        assert [a.id for a in response.attributes] == ["a1"]
        assert response.attributes[0].selection == "full"
        assert response.attributes[0].price_labels == {"o1": "+3 AED"}
        assert len(backend.requests) == 2

    def test_no_subcategories(self, backend, catalog):
        response = asyncio.run(load_attribute_library(catalog, [], [], False, "AED"))
        assert response.attributes == []
        assert response.warning is None
        assert backend.requests == []


class TestSubcategoryLinking:

    def test_link_and_unlink_counts(self, backend, catalog):
        def link(request):
            if request_json(request)["product_id"] == "bad":
                return 400, {"error": "no such product"}
            return 200, {"success": True}

        backend.route("POST", "/api/link-product-subcategory/", link)
        backend.route("POST", "/api/unlink-product-subcategory/", (200, {"success": True}))

        linked = asyncio.run(set_subcategory_for_products(catalog, ["p1", "bad"], "s1", True))
        assert (linked.ok, linked.failed_ids) == (1, ["bad"])
        assert request_json(backend.requests[0]) == {"product_id": "p1", "subcategory_id": "s1", "replace": False}

        unlinked = asyncio.run(set_subcategory_for_products(catalog, ["p1"], "s1", False))
        assert unlinked.ok == 1
        assert request_json(backend.calls("POST", "/api/unlink-product-subcategory/")[0]) == {
            "product_id": "p1", "subcategory_ids": ["s1"],
        }
