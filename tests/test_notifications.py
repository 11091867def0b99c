"""
Лента уведомлений, отметка прочитанным и модерация комментариев.
"""
import asyncio

from admin_console.services.notifications import (
    COMMENT_SOURCE, build_feed, mark_read_batch, moderate_comment, next_hidden_toggle,
    normalize_notifications, pretty_source, redirect_path, visible_notifications,
)
from conftest import request_json

RAW = [
    {"notification_id": 1, "message": "New order", "source_table": "orders", "status": "unread",
     "created_at": "2026-03-01T10:00:00Z", "order_id": 501},
    {"notification_id": 2, "message": "Stock low", "source_table": "inventory", "status": "read",
     "created_at": "2026-03-02T10:00:00Z"},
    {"notification_id": 3, "message": "New comment", "type": "comment", "source_table": "product",
     "source_id": 77, "status": "unread", "created_at": "2026-03-03T10:00:00Z", "meta_status": "pending"},
    {"notification_id": 4, "message": "Testimonial", "source_table": "ProductTestimonial",
     "source_id": "78", "status": "unread", "created_at": "2026-02-01T10:00:00Z", "user": None},
    {"notification_id": 5, "message": "Mystery", "source_table": "weather", "status": "unread",
     "created_at": "2026-03-04T10:00:00Z"},
    {"notification_id": 6, "message": "Broken", "source_table": "orders", "status": "archived"},
]


class TestNormalize:

    def test_comments_unknown_sources_and_malformed(self):
        items = {n.notification_id: n for n in normalize_notifications(RAW)}
        assert set(items) == {"1", "2", "3", "4"}
        assert items["3"].source_table == COMMENT_SOURCE
        assert items["3"].source_id == "77"
        assert items["4"].source_table == COMMENT_SOURCE
        assert items["1"].order_id == "501"

    def test_labels_and_redirects(self):
        assert pretty_source("Orders") == "Orders"
        assert pretty_source("product_comment") == "Product Comments"
        assert redirect_path("blog") == "/admin/blogView"
        assert redirect_path("weather") == "/admin/notifications"


class TestVisibility:

    def test_comments_always_visible(self):
        items = normalize_notifications(RAW)
        visible = visible_notifications(items, allowed_sources=["orders"])
        assert [n.notification_id for n in visible] == ["3", "1", "4"]

    def test_tabs_and_order(self):
        items = normalize_notifications(RAW)
        assert [n.notification_id for n in visible_notifications(items, tab="unread", order="oldest")] == ["4", "1", "3"]
        assert [n.notification_id for n in visible_notifications(items, tab="Inventory")] == ["2"]

    def test_feed_for_limited_admin(self):
        feed = build_feed(RAW, access_pages=["Orders"])
        assert feed.sources == ["orders", COMMENT_SOURCE]
        assert feed.unread == 3
        assert feed.tab_counts == {"all": 3, "orders": 1, COMMENT_SOURCE: 2}
        assert feed.comment_statuses == {"77": "pending"}

    def test_feed_without_access_pages_shows_only_comments(self):
        feed = build_feed(RAW)
        assert feed.sources == [COMMENT_SOURCE]
        assert [n.notification_id for n in feed.notifications] == ["3", "4"]
        assert feed.unread == 2

        orders_only = [{"notification_id": 1, "source_table": "orders", "status": "unread"}]
        assert build_feed(orders_only).notifications == []
        assert build_feed(orders_only, access_pages=[]).notifications == []

    def test_order_follows_instants_not_strings(self):
        items = normalize_notifications([
            {"notification_id": "a", "source_table": "orders", "status": "unread", "created_at": "2026-03-01T10:00:00Z"},
            {"notification_id": "b", "source_table": "orders", "status": "unread", "created_at": "2026-03-01T12:00:00+04:00"},
            {"notification_id": "c", "source_table": "orders", "status": "unread"},
        ])
        assert [n.notification_id for n in visible_notifications(items, order="latest")] == ["a", "b", "c"]
        assert [n.notification_id for n in visible_notifications(items, order="oldest")] == ["c", "b", "a"]

    def test_hidden_toggle(self):
        assert next_hidden_toggle("hidden") == "approved"
        assert next_hidden_toggle("approved") == "hidden"
        assert next_hidden_toggle(None) == "hidden"


class TestMarkRead:

    def test_batch_endpoint(self, backend, catalog):
        backend.route("POST", "/api/notifications/mark-read-batch", (200, {"success": True}))
        assert asyncio.run(mark_read_batch(catalog, ["1", "2"])) == []
        assert backend.calls("POST", "/api/notification-update") == []

    def test_falls_back_to_single_updates(self, backend, catalog):
        backend.route("POST", "/api/notifications/mark-read-batch", (404, {"error": "no batch"}))

        def update(request):
            if request_json(request)["notification_id"] == "2":
                return 500, {"error": "db"}
            return 200, {"success": True}

        backend.route("POST", "/api/notification-update", update)
        assert asyncio.run(mark_read_batch(catalog, ["1", "2", "3"])) == ["2"]
        assert len(backend.calls("POST", "/api/notification-update")) == 3

    def test_nothing_to_mark(self, backend, catalog):
        assert asyncio.run(mark_read_batch(catalog, [])) == []
        assert backend.requests == []


class TestModeration:

    def test_related_notifications_marked_read(self, backend, catalog):
        backend.route("POST", "/api/edit-product-comment/", (200, {"success": True}))
        backend.route("GET", "/api/notifications/", (200, RAW + [
            {"notification_id": 9, "type": "comment", "source_id": 77, "status": "read"},
        ]))
        backend.route("POST", "/api/notifications/mark-read-batch", (200, {"success": True}))

        marked = asyncio.run(moderate_comment(catalog, "77", "approved"))
        assert marked == ["3"]
        assert request_json(backend.calls("POST", "/api/edit-product-comment/")[0]) == {
            "comment_id": "77", "status": "approved",
        }
        assert request_json(backend.calls("POST", "/api/notifications/mark-read-batch")[0]) == {"ids": ["3"]}
