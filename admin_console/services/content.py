# admin_console/services/content.py
"""Блог, отзывы и заявки на обратный звонок: подготовка данных для бэкенда и списки."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from admin_console.models.content import (
    BlogForm, BlogRow, CallbackForm, CallbackRow, CallbackSort, Testimonial,
)
from admin_console.models.common import BulkResult
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.utils.dates import parse_iso

logger = logging.getLogger(__name__)

# Перезвонить нужно минимум за неделю до мероприятия
CALLBACK_LEAD_TIME = timedelta(days=7)

_CALLBACK_STATUSES = ("pending", "scheduled", "contacted", "completed", "cancelled")

# --- Блог ---

_BLOG_SNAKE_FIELDS = {
    "featuredImage": "featured_image",
    "metaTitle": "meta_title",
    "metaDescription": "meta_description",
    "ogTitle": "og_title",
    "ogImage": "og_image",
}


def blog_payload(form: BlogForm, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Тело save-blog / edit-blog.
    Дата публикации в будущем -> scheduled, иначе published.
    camelCase-поля дублируются в snake_case.
    """
    now = now or datetime.now(timezone.utc)
    publish = parse_iso(form.publishDate) if form.publishDate else None
    status = "scheduled" if publish and publish > now else "published"

    payload: Dict[str, Any] = {
        "title": form.title,
        "slug": form.slug,
        "content": form.content,
        "tags": list(form.tags),
        "author": form.author,
        "featuredImage": form.featuredImage,
        "metaTitle": form.metaTitle,
        "metaDescription": form.metaDescription,
        "ogTitle": form.ogTitle,
        "ogImage": form.ogImage,
        "schemaEnabled": form.schemaEnabled,
        "publishDate": publish.isoformat().replace('+00:00', 'Z') if publish else None,
        "draft": form.draft,
        "status": status,
    }
    for camel, snake in _BLOG_SNAKE_FIELDS.items():
        payload[snake] = payload[camel]
    if not form.id:
        payload["id"] = ""
        payload["blog_id"] = ""
    return payload


def normalize_blog(raw: Dict[str, Any]) -> BlogRow:
    ident = raw.get("id") if raw.get("id") is not None else raw.get("blog_id")
    status = raw.get("status")
    if status is None:
        status = "Published" if raw.get("published") else "Draft"
    return BlogRow(
        id=str(ident) if ident is not None else str(uuid.uuid4()),
        title=raw.get("title") or "",
        author=raw.get("author") or "",
        category=raw.get("category") or "",
        status=str(status),
        thumbnail=raw.get("thumbnail") or raw.get("image") or "",
        created=str(raw.get("created") or raw.get("created_at") or ""),
        updated=str(raw.get("updated") or raw.get("updated_at") or ""),
        content=raw.get("content") or "",
    )


def sort_blogs(blogs: Iterable[BlogRow]) -> List[BlogRow]:
    """Сначала опубликованные, внутри групп свежие по updated (или created)."""
    epoch = datetime.fromtimestamp(0, tz=timezone.utc)

    def _key(b: BlogRow):
        published = b.status.lower() == "published"
        stamp = parse_iso(b.updated or b.created) or epoch
        return (not published, -stamp.timestamp())

    return sorted(blogs, key=_key)


def blog_categories(blogs: Iterable[BlogRow]) -> List[str]:
    return sorted({b.category.strip() for b in blogs if b.category.strip()})


def filter_blogs(blogs: Sequence[BlogRow], category: Optional[str] = None) -> List[BlogRow]:
    if not category:
        return list(blogs)
    return [b for b in blogs if b.category == category]


# --- Отзывы ---

def clamp_rating(value: Any) -> int:
    try:
        rating = int(float(value))
    except (TypeError, ValueError):
        return 5
    return max(1, min(5, rating))


def normalize_testimonial(raw: Dict[str, Any]) -> Testimonial:
    status = raw.get("status")
    if status is None:
        status = "Published" if raw.get("published") else "Draft"
    return Testimonial(
        id=raw.get("id"),
        name=raw.get("name") or "",
        role=raw.get("role") or "",
        image=raw.get("image") or raw.get("image_url") or "",
        rating=clamp_rating(raw.get("rating", 5)),
        content=raw.get("content") or "",
        status=str(status),
    )


def is_blank_testimonial(t: Testimonial) -> bool:
    return not (t.name.strip() or t.role.strip() or t.content.strip() or t.image.strip())


def testimonial_payload(t: Testimonial) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": t.name.strip(),
        "role": t.role.strip(),
        "rating": clamp_rating(t.rating),
        "content": t.content.strip(),
        "status": "published",
    }
    if t.id:
        payload["id"] = t.id
    image = t.image or ""
    if image.startswith("data:image/"):
        payload["image"] = image
    elif image.lower().startswith(("http://", "https://")):
        payload["image_url"] = image
    return payload


async def save_testimonial(service: CatalogAPIService, t: Testimonial) -> Testimonial:
    """Есть id -> edit-testimonials (PUT), нет -> save-testimonials (POST)."""
    payload = testimonial_payload(t)
    if t.id:
        data = await service.edit_testimonial(payload)
    else:
        data = await service.save_testimonial(payload)
    if isinstance(data, dict):
        new_id = data.get("id") or data.get("_id") or data.get("testimonial_id")
        src = data.get("image") or data.get("image_url")
        return t.model_copy(update={"id": str(new_id) if new_id else t.id, "image": src or t.image})
    return t


# --- Заявки на обратный звонок ---

def normalize_callback(raw: Dict[str, Any]) -> Optional[CallbackRow]:
    data = {k: v for k, v in raw.items() if v is not None}
    if data.get("status") not in _CALLBACK_STATUSES:
        data["status"] = "pending"
    try:
        return CallbackRow(**data)
    except ValidationError as e:
        logger.warning(f"Skipping malformed callback {raw.get('id')}: {e.errors()}")
        return None


def sort_callbacks(rows: Iterable[CallbackRow], sort: CallbackSort = "added") -> List[CallbackRow]:
    """
    added: свежие сверху; urgency / event_date: по возрастанию,
    заявки без даты уходят в конец.
    """
    rows = list(rows)
    if sort == "urgency":
        return sorted(rows, key=lambda r: _ascending_key(r.preferred_callback))
    if sort == "event_date":
        return sorted(rows, key=lambda r: _ascending_key(r.event_datetime))
    epoch = datetime.fromtimestamp(0, tz=timezone.utc)
    return sorted(rows, key=lambda r: parse_iso(r.created_at) or epoch, reverse=True)


def _ascending_key(value: Optional[str]):
    dt = parse_iso(value)
    return (dt is None, dt.timestamp() if dt else 0.0)


def lead_time_warnings(preferred: Any, event: Any) -> List[str]:
    """Предупреждение, если перезвон назначен позже чем за 7 дней до мероприятия. Заявку не блокирует."""
    preferred_dt, event_dt = parse_iso(preferred), parse_iso(event)
    if preferred_dt is None or event_dt is None:
        return []
    if event_dt - preferred_dt >= CALLBACK_LEAD_TIME:
        return []
    return ["Preferred call-back must be at least 7 days before the event date/time."]


def callback_payload(form: CallbackForm, callback_id: Optional[str] = None) -> Dict[str, Any]:
    def _iso(value: Optional[datetime]) -> str:
        dt = parse_iso(value)
        return dt.isoformat().replace('+00:00', 'Z') if dt else ""

    payload: Dict[str, Any] = {
        "device_uuid": form.device_uuid,
        "username": form.username.strip(),
        "email": form.email.strip(),
        "phone_number": form.phone_number.strip(),
        "event_type": form.event_type.strip() or "Other",
        "event_venue": form.event_venue.strip(),
        "preferred_callback": _iso(form.preferred_callback),
        "event_datetime": _iso(form.event_datetime),
        "approx_guest": "" if form.approx_guest is None else str(form.approx_guest),
        "budget": form.budget.strip(),
        "theme": form.theme.strip(),
        "notes": form.notes,
    }
    # статус учитывается бэкендом только при редактировании
    if callback_id:
        payload["id"] = callback_id
        payload["status"] = form.status or "pending"
    return payload


async def delete_callbacks(service: CatalogAPIService, ids: Sequence[str]) -> BulkResult:
    """Удаляет заявки по одной, считая удачные и неудачные."""
    result = BulkResult()
    for callback_id in ids:
        try:
            await service.delete_callback(callback_id)
            result.ok += 1
        except CatalogAPIError as e:
            logger.warning(f"Failed to delete callback {callback_id}: {e.message}")
            result.failed += 1
            result.failed_ids.append(callback_id)
    return result
