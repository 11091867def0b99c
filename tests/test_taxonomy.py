"""
Категории, подкатегории, дерево товаров и остатки.
"""
import asyncio

import pytest

from admin_console.models.category import Category
from admin_console.services.catalog_api import CatalogAPIError
from admin_console.services.taxonomy import (
    build_catalog_tree, delete_taxonomy_rows, low_stock, normalize_categories, normalize_product,
    normalize_subcategories, product_subcategory_ids, stock_status, subcategory_options,
)
from conftest import BASE_URL, request_json


class TestNormalization:

    def test_categories_skip_hidden_unless_requested(self):
        raw = [
            {"id": 1, "name": "Cakes"},
            {"category_id": "c2", "name": "Flowers", "status": "Hidden"},
            {"name": "Gifts"},
            "garbage",
        ]
        visible = normalize_categories(raw)
        assert [(c.id, c.name) for c in visible] == [("1", "Cakes"), ("Gifts", "Gifts")]
        assert len(normalize_categories(raw, include_hidden=True)) == 3

    def test_subcategories_prefer_subcategory_id(self):
        raw = [{
            "subcategory_id": "s1", "id": 99, "name": "Cupcakes",
            "categories": [{"name": "Cakes"}, "c-2"],
        }]
        sub = normalize_subcategories(raw)[0]
        assert sub.id == "s1"
        assert sub.categories == ["Cakes", "c-2"]

    def test_subcategory_options_match_id_or_name(self):
        subs = normalize_subcategories([
            {"id": "s1", "name": "Cupcakes", "categories": ["Cakes"]},
            {"id": "s2", "name": "Tarts", "categories": ["c-1"]},
            {"id": "s3", "name": "Roses", "categories": ["Flowers"]},
        ])
        options = subcategory_options(subs, Category(id="c-1", name="Cakes"))
        assert [s.id for s in options] == ["s1", "s2"]
        assert len(subcategory_options(subs, None)) == 3


class TestProducts:

    def test_subcategory_ids_merge_all_fields(self):
        raw = {
            "subcategories": [{"id": "s1"}, "s2"],
            "subcategory": {"id": "s1"},
            "subcategory_ids": ["s3", None],
        }
        assert product_subcategory_ids(raw) == ["s1", "s2", "s3"]

    @pytest.mark.parametrize("quantity,alert,expected", [
        (0, 5, "Out Of Stock"),
        (3, 5, "Low Stock"),
        (5, 5, "Low Stock"),
        (6, 5, "In Stock"),
        (None, 5, "legacy"),
        (4, None, "legacy"),
    ])
    def test_stock_status(self, quantity, alert, expected):
        assert stock_status(quantity, alert, "legacy") == expected

    def test_normalize_product(self):
        product = normalize_product({
            "product_id": "P-1", "title": "Red Velvet", "quantity": "2", "low_stock_alert": "4",
            "image": "/media/rv.png", "subcategories": ["s1"],
        }, BASE_URL)
        assert product.id == "P-1"
        assert product.name == "Red Velvet"
        assert product.stock_quantity == 2
        assert product.stock_status == "Low Stock"
        assert product.thumbnail == "http://catalog.test/media/rv.png"
        assert product.subcategory_ids == ["s1"]

    def test_low_stock(self):
        products = [
            normalize_product({"id": str(i), "stock_quantity": qty}, BASE_URL)
            for i, qty in enumerate([0, 1, 5, 6, None])
        ]
        assert [p.id for p in low_stock(products)] == ["1", "2"]
        assert [p.id for p in low_stock(products, threshold=6)] == ["1", "2", "3"]

    def test_catalog_tree(self):
        categories = normalize_categories([{"id": "c1", "name": "Cakes"}, {"id": "c2", "name": "Flowers"}])
        subcategories = normalize_subcategories([
            {"id": "s1", "name": "Cupcakes", "categories": ["c1"]},
            {"id": "s2", "name": "Bouquets", "categories": ["Flowers", "Cakes"]},
            {"id": "s3", "name": "Orphan", "categories": ["missing"]},
        ])
        products = [
            normalize_product({"id": "p1", "subcategories": ["s1", "s2"]}, BASE_URL),
            normalize_product({"id": "p2", "subcategory_ids": ["s2", "s2"]}, BASE_URL),
        ]
        tree = {node.name: node for node in build_catalog_tree(categories, subcategories, products)}
        assert [s.id for s in tree["Cakes"].subcategories] == ["s1", "s2"]
        assert [s.id for s in tree["Flowers"].subcategories] == ["s2"]
        bouquets = tree["Flowers"].subcategories[0]
        assert [p.id for p in bouquets.products] == ["p1", "p2"]


class TestDeleteTaxonomy:

    def test_confirmation_round_trip(self, backend, catalog):
        def delete(request):
            body = request_json(request)
            if not body["confirm"]:
                return 200, {"confirm": True, "message": "Category has 3 products. Continue?"}
            return 200, {"success": True}

        backend.route("POST", "/api/delete-categories/", delete)
        backend.route("GET", "/api/show-categories/", (200, [{"id": "c1", "name": "Cakes"}, {"id": "c2", "name": "Flowers"}]))

        first = asyncio.run(delete_taxonomy_rows(catalog, "categories", ["c1"], False))
        assert first.needs_confirmation is True
        assert first.success is False
        assert first.message == "Category has 3 products. Continue?"
        assert backend.calls("GET", "/api/show-categories/") == []

        second = asyncio.run(delete_taxonomy_rows(catalog, "categories", ["c1"], True))
        assert second.success is True
        assert second.remaining == [{"id": "c2", "name": "Flowers"}]

    def test_confirmation_sent_with_error_status(self, backend, catalog):
        backend.route("POST", "/api/delete-categories/", (409, {"confirm": True, "message": "Category has products. Continue?"}))
        result = asyncio.run(delete_taxonomy_rows(catalog, "categories", ["c1"], False))
        assert result.needs_confirmation is True
        assert result.message == "Category has products. Continue?"

        backend.route("POST", "/api/delete-categories/", (409, {"error": "Category is locked"}))
        with pytest.raises(CatalogAPIError) as exc_info:
            asyncio.run(delete_taxonomy_rows(catalog, "categories", ["c1"], False))
        assert exc_info.value.status_code == 409

    def test_subcategory_rows_use_subcategory_id(self, backend, catalog):
        backend.route("POST", "/api/delete-subcategories/", (200, {"success": True}))
        backend.route("GET", "/api/show-subcategories/", (200, [
            {"subcategory_id": "s1", "name": "A"}, {"subcategory_id": "s2", "name": "B"},
        ]))
        result = asyncio.run(delete_taxonomy_rows(catalog, "subcategories", ["s2"], False))
        assert result.remaining == [{"subcategory_id": "s1", "name": "A"}]

    def test_backend_refusal(self, backend, catalog):
        backend.route("POST", "/api/delete-categories/", (200, {"success": False, "error": "Locked"}))
        with pytest.raises(CatalogAPIError) as exc_info:
            asyncio.run(delete_taxonomy_rows(catalog, "categories", ["c1"], True))
        assert exc_info.value.message == "Locked"
        assert exc_info.value.status_code == 400
