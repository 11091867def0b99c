"""
HTTP-слой консоли: ключ администратора, коды ответов и проброс ошибок бэкенда.
"""
import pytest
from fastapi.testclient import TestClient

from admin_console.core.config import settings
from admin_console.main import app
from conftest import request_json

API = settings.API_V1_STR


class TestAdminKey:

    def test_health_check_is_public(self):
        response = TestClient(app).get("/")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok", "project": settings.PROJECT_NAME, "catalog_api": "http://catalog.test",
        }

    def test_missing_key_is_forbidden(self, client):
        response = TestClient(app).get(f"{API}/admin/categories/")
        assert response.status_code == 403

    def test_wrong_key_is_forbidden(self, client):
        response = client.get(f"{API}/admin/categories/", headers={"X-Admin-API-Key": "nope"})
        assert response.status_code == 403

    def test_unconfigured_key_disables_admin_api(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_API_KEY", None)
        assert client.get(f"{API}/admin/categories/").status_code == 503


class TestCategoriesEndpoints:

    def test_list_and_backend_error(self, client, backend):
        backend.route("GET", "/api/show-categories/", (200, [{"id": 1, "name": "Cakes"}, {"id": 2, "name": "Old", "status": "hidden"}]))
        assert client.get(f"{API}/admin/categories/").json() == [{"id": "1", "name": "Cakes", "status": None}]
        assert len(client.get(f"{API}/admin/categories/", params={"include_hidden": True}).json()) == 2

        backend.route("GET", "/api/show-categories/", (400, {"error": "Bad filter"}))
        response = client.get(f"{API}/admin/categories/")
        assert response.status_code == 400
        assert response.json()["detail"] == "Bad filter"

    def test_subcategories_of_category(self, client, backend):
        backend.route("GET", "/api/show-categories/", (200, [{"id": "c1", "name": "Cakes"}]))
        backend.route("GET", "/api/show-subcategories/", (200, [
            {"id": "s1", "name": "Cupcakes", "categories": ["Cakes"]},
            {"id": "s2", "name": "Roses", "categories": ["Flowers"]},
        ]))
        response = client.get(f"{API}/admin/categories/subcategories", params={"category": "c1"})
        assert [s["id"] for s in response.json()] == ["s1"]
        unknown = client.get(f"{API}/admin/categories/subcategories", params={"category": "Flowers"})
        assert [s["id"] for s in unknown.json()] == ["s2"]

    def test_two_phase_delete(self, client, backend):
        def delete(request):
            if request_json(request)["confirm"]:
                return 200, {"success": True}
            return 200, {"confirm": True, "message": "Continue?"}

        backend.route("POST", "/api/delete-subcategories/", delete)
        backend.route("GET", "/api/show-subcategories/", (200, []))
        first = client.post(f"{API}/admin/categories/subcategories/delete", json={"ids": ["s1"]})
        assert first.json()["needs_confirmation"] is True
        second = client.post(f"{API}/admin/categories/subcategories/delete", json={"ids": ["s1"], "confirm": True})
        assert second.json()["success"] is True

    def test_unknown_kind_rejected(self, client):
        assert client.post(f"{API}/admin/categories/tags/delete", json={"ids": ["1"]}).status_code == 422


class TestAttributesEndpoints:

    def test_create_uses_backend_id(self, client, backend):
        backend.route("POST", "/api/save-subcat-attributes/", (200, {"id": 55}))
        response = client.post(f"{API}/admin/attributes/", json={
            "name": "Color", "scope": "s1", "values": [{"id": "v1", "name": "Red", "price_delta": 2}],
        })
        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "55"
        assert body["subcategory_ids"] == ["s1"]
        assert body["values"][0]["price_delta"] == 2

    def test_create_without_values_is_bad_request(self, client):
        response = client.post(f"{API}/admin/attributes/", json={"name": "Color", "values": []})
        assert response.status_code == 400

    def test_edit_unknown_attribute(self, client, backend):
        backend.route("GET", "/api/show-subcat-attributes/", (200, []))
        response = client.put(f"{API}/admin/attributes/nope", json={"name": "X", "values": [{"id": "1", "name": "A"}]})
        assert response.status_code == 404

    def test_list_filters(self, client, backend):
        backend.route("GET", "/api/show-subcat-attributes/", (200, [
            {"id": "a1", "name": "Color", "status": "hidden", "created_at": "2026-01-01T00:00:00Z"},
            {"id": "a2", "name": "Size", "created_at": "2026-02-01T00:00:00Z"},
        ]))
        response = client.get(f"{API}/admin/attributes/", params={"status": "visible", "sort": "recent"})
        assert [a["id"] for a in response.json()] == ["a2"]

    def test_link_requires_concrete_subcategory(self, client):
        response = client.post(f"{API}/admin/attributes/a1/link", json={"subcategory_id": "__all__"})
        assert response.status_code == 400

    def test_toggle_default(self, client):
        response = client.post(f"{API}/admin/attributes/toggle-default", json={
            "values": [{"id": "1", "name": "S", "price_delta": 4}, {"id": "2", "name": "M"}], "value_id": "1",
        })
        assert [(v["is_default"], v["price_delta"]) for v in response.json()] == [(True, None), (False, None)]


class TestProductsEndpoints:

    def test_low_stock(self, client, backend):
        backend.route("GET", "/api/show-product/", (200, [
            {"id": "p1", "stock_quantity": 2}, {"id": "p2", "stock_quantity": 0}, {"id": "p3", "stock_quantity": 40},
        ]))
        assert [p["id"] for p in client.get(f"{API}/admin/products/low-stock").json()] == ["p1"]

    def test_attribute_payload(self, client):
        response = client.post(f"{API}/admin/products/attributes/payload", json=[
            {"id": "a1", "name": "Size", "options": [{"id": "o1", "label": "S", "is_default": True}]},
        ])
        assert response.status_code == 200
        assert response.json()[0]["options"][0]["label"] == "S"

    def test_set_default_unknown_option(self, client):
        selected = [{"id": "size", "name": "Size", "options": [{"id": "s", "label": "S", "is_default": True}]}]
        missing = client.post(f"{API}/admin/products/attributes/set-default", json={
            "selected": selected, "attribute_id": "size", "option_id": "does-not-exist",
        })
        assert missing.status_code == 404
        found = client.post(f"{API}/admin/products/attributes/set-default", json={
            "selected": selected, "attribute_id": "size", "option_id": "s",
        })
        assert found.json()[0]["options"][0]["is_default"] is True

    def test_save_product_sends_custom_attributes(self, client, backend):
        backend.route("POST", "/api/edit-product/", (200, {"success": True}))
        response = client.put(f"{API}/admin/products/p7", json={"fields": {"name": "Cake"}, "attributes": []})
        assert response.status_code == 200
        sent = request_json(backend.requests[0])
        assert sent == {"name": "Cake", "customAttributes": [], "product_ids": ["p7"]}


class TestContentEndpoints:

    def test_callback_lead_time_warning(self, client, backend):
        backend.route("POST", "/api/save-callback/", (200, {"success": True}))
        response = client.post(f"{API}/admin/callbacks/", json={
            "username": "Eve", "preferred_callback": "2026-07-08T10:00:00Z", "event_datetime": "2026-07-10T10:00:00Z",
        })
        assert response.status_code == 201
        body = response.json()
        assert len(body["warnings"]) == 1
        assert body["callback"]["username"] == "Eve"
        assert body["callback"]["status"] == "pending"

    def test_missing_callback(self, client, backend):
        backend.route("GET", "/api/show-specific-callback/", (404, {"error": "not found"}))
        assert client.get(f"{API}/admin/callbacks/9").status_code == 404

    def test_blank_testimonials_skipped(self, client, backend):
        backend.route("POST", "/api/save-testimonials", (200, {"id": 1}))
        response = client.post(f"{API}/admin/testimonials/", json=[{"name": "Ann", "content": "Yum"}, {"name": ""}])
        assert [t["id"] for t in response.json()] == ["1"]
        assert len(backend.requests) == 1

    def test_blog_list(self, client, backend):
        backend.route("GET", "/api/show-all-blogs/", (200, {"data": [
            {"id": 1, "title": "A", "status": "Draft", "category": "News"},
            {"id": 2, "title": "B", "status": "Published", "category": "Tips"},
        ]}))
        body = client.get(f"{API}/admin/blogs/").json()
        assert [b["id"] for b in body["blogs"]] == ["2", "1"]
        assert body["categories"] == ["News", "Tips"]


class TestNotificationsAndSession:

    def test_feed(self, client, backend):
        backend.route("GET", "/api/notifications/", (200, [
            {"notification_id": 1, "source_table": "orders", "status": "unread", "created_at": "2026-01-01T00:00:00Z"},
            {"notification_id": 2, "source_table": "blog", "status": "unread", "created_at": "2026-01-02T00:00:00Z"},
        ]))
        body = client.get(f"{API}/admin/notifications/", params={"access_pages": ["Orders"]}).json()
        assert [n["notification_id"] for n in body["notifications"]] == ["1"]
        assert body["unread"] == 1

    def test_mark_read_many(self, client, backend):
        backend.route("POST", "/api/notifications/mark-read-batch", (200, {"success": True}))
        response = client.post(f"{API}/admin/notifications/mark-read", json={"ids": ["1", "2"]})
        assert response.json() == {"marked": ["1", "2"], "failed": []}

    def test_session_check(self, client, backend):
        backend.route("GET", "/api/show-admin/", (200, [{"admin_id": "a1", "access_pages": ["Orders"]}]))
        response = client.post(f"{API}/admin/session/check", json={
            "admin_id": "a1", "access_pages": ["Orders"], "path": "/admin/orders/5",
        })
        assert response.json()["authorized"] is True


class TestMediaEndpoints:

    def test_grouped_listing(self, client, backend):
        backend.route("GET", "/api/show-all-images/", (200, [
            {"image_id": 1, "url": "/media/a.png", "alt_text": "A", "linked_table": "blog"},
        ]))
        body = client.get(f"{API}/admin/media/").json()
        assert body["blog"][0]["url"] == "http://catalog.test/media/a.png"

    def test_upload_requires_data_url(self, client):
        response = client.post(f"{API}/admin/media/", json={"image": "https://cdn.test/a.png"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Ошибка валидации входных данных"

    @pytest.mark.parametrize("order", ["sideways", "ASC"])
    def test_bad_sort_order(self, client, order):
        assert client.get(f"{API}/admin/media/", params={"order": order}).status_code == 422
