# admin_console/services/notifications.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

from pydantic import ValidationError

from admin_console.models.notification import Notification, NotificationFeed, CommentStatus
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.utils.dates import parse_iso

logger = logging.getLogger(__name__)

COMMENT_SOURCE = "product_comment"

# source_table -> подпись страницы в access_pages
SOURCE_TO_PAGE_LABEL = {
    "category": "Manage Categories",
    "subcategory": "Manage Categories",
    "orders": "Orders",
    "product": "Products Section",
    "inventory": "Inventory",
    "admin": "New Account",
    "blog": "Blog",
    COMMENT_SOURCE: "Product Comments",
}

# куда переходить по клику на уведомление
SOURCE_TO_PATH = {
    "category": "/admin/manage-categories",
    "subcategory": "/admin/manage-categories",
    "orders": "/admin/orders",
    "product": "/admin/products",
    "inventory": "/admin/inventory",
    "admin": "/admin/new-account",
    "blog": "/admin/blogView",
    COMMENT_SOURCE: "/admin/notifications",
}

SortOrder = Literal["latest", "oldest"]


def _source(n: Notification) -> str:
    return (n.source_table or "").lower()


def pretty_source(source: str) -> str:
    return SOURCE_TO_PAGE_LABEL.get(source.lower(), source)


def redirect_path(source: str) -> str:
    return SOURCE_TO_PATH.get(source.lower(), "/admin/notifications")


def normalize_notifications(raw_list: Iterable[Any]) -> List[Notification]:
    """
    Комментарии к товарам (type=comment, producttestimonial) сводятся
    к виртуальному источнику product_comment; неизвестные источники отбрасываются.
    """
    result = []
    for raw in raw_list:
        if not isinstance(raw, dict):
            continue
        src = str(raw.get("source_table") or "").lower()
        is_comment = str(raw.get("type") or "").lower() == "comment" or src in ("producttestimonial", COMMENT_SOURCE)
        data = {k: v for k, v in raw.items() if v is not None}
        if is_comment:
            data["source_table"] = COMMENT_SOURCE
        for key in ("notification_id", "source_id", "order_id"):
            if data.get(key) is not None:
                data[key] = str(data[key])
        try:
            notification = Notification(**data)
        except ValidationError as e:
            logger.warning(f"Skipping malformed notification {raw.get('notification_id')}: {e.errors()}")
            continue
        if _source(notification) in SOURCE_TO_PATH:
            result.append(notification)
    return result


def accessible_sources(access_pages: Sequence[str]) -> List[str]:
    return [src for src, label in SOURCE_TO_PAGE_LABEL.items() if label in access_pages]


def comment_status_seed(notifications: Iterable[Notification]) -> Dict[str, CommentStatus]:
    """Статусы комментариев, которые бэкенд прислал прямо в уведомлениях."""
    return {
        n.source_id: n.meta_status
        for n in notifications
        if _source(n) == COMMENT_SOURCE and n.source_id and n.meta_status
    }


def visible_notifications(
    notifications: Sequence[Notification],
    allowed_sources: Optional[Sequence[str]] = None,
    tab: str = "all",
    order: SortOrder = "latest",
) -> List[Notification]:
    """Фильтр по доступу и вкладке, сортировка по created_at. Комментарии видны всегда."""
    items = list(notifications)
    if allowed_sources is not None:
        items = [n for n in items if _source(n) == COMMENT_SOURCE or _source(n) in allowed_sources]

    if tab == "unread":
        items = [n for n in items if n.status == "unread"]
    elif tab != "all":
        items = [n for n in items if _source(n) == tab.lower()]

    epoch = datetime.fromtimestamp(0, tz=timezone.utc)
    return sorted(items, key=lambda n: parse_iso(n.created_at) or epoch, reverse=(order == "latest"))


def source_tabs(notifications: Sequence[Notification], allowed_sources: Optional[Sequence[str]] = None) -> List[str]:
    sources = {_source(n) or "unknown" for n in notifications}
    if allowed_sources is not None:
        sources = {s for s in sources if s in allowed_sources or s == COMMENT_SOURCE}
    return sorted(sources)


def tab_unread_counts(notifications: Sequence[Notification], tabs: Sequence[str]) -> Dict[str, int]:
    counts = {"all": sum(1 for n in notifications if n.status == "unread")}
    for tab in tabs:
        counts[tab] = sum(1 for n in notifications if n.status == "unread" and _source(n) == tab)
    return counts


def build_feed(
    raw_list: Iterable[Any],
    access_pages: Optional[Sequence[str]] = None,
    tab: str = "all",
    order: SortOrder = "latest",
) -> NotificationFeed:
    notifications = normalize_notifications(raw_list)
    # без access_pages доступны только комментарии к товарам
    allowed = accessible_sources(access_pages or [])
    tabs = source_tabs(notifications, allowed)
    scoped = visible_notifications(notifications, allowed, "all", order)
    return NotificationFeed(
        notifications=visible_notifications(notifications, allowed, tab, order),
        unread=sum(1 for n in scoped if n.status == "unread"),
        sources=tabs,
        comment_statuses=comment_status_seed(notifications),
        tab_counts=tab_unread_counts(scoped, tabs),
    )


def next_hidden_toggle(current: Optional[str]) -> CommentStatus:
    return "approved" if current == "hidden" else "hidden"


async def mark_read_batch(service: CatalogAPIService, ids: List[str]) -> List[str]:
    """
    Отмечает уведомления прочитанными. Если batch-эндпоинт упал,
    шлёт notification-update по каждому id; возвращает id, которые не удалось обновить.
    """
    if not ids:
        return []
    try:
        await service.mark_notifications_read_batch(ids)
        return []
    except CatalogAPIError as e:
        logger.warning(f"Batch mark-read failed ({e.message}), falling back to per-id updates")

    results = await asyncio.gather(
        *(service.update_notification(i, "read") for i in ids),
        return_exceptions=True,
    )
    failed = []
    for notification_id, result in zip(ids, results):
        if isinstance(result, CatalogAPIError):
            logger.error(f"Failed to mark notification {notification_id} as read: {result.message}")
            failed.append(notification_id)
        elif isinstance(result, BaseException):
            raise result
    return failed


async def moderate_comment(service: CatalogAPIService, comment_id: str, status: CommentStatus) -> List[str]:
    """Меняет статус комментария и помечает прочитанными все уведомления о нём."""
    await service.edit_product_comment(comment_id, status)
    logger.info(f"Comment {comment_id} moderated to '{status}'")
    notifications = normalize_notifications(await service.get_notifications())
    related = [
        n.notification_id for n in notifications
        if _source(n) == COMMENT_SOURCE and n.source_id == comment_id and n.status == "unread"
    ]
    if related:
        await mark_read_batch(service, related)
    return related
