# admin_console/services/attributes.py
"""
Страница «Атрибуты»: нормализация ответов бэкенда, форма атрибута,
фильтры списка и привязка к подкатегориям.
"""
import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Sequence

from admin_console.models.attribute import (
    ALL_SUBCATEGORIES, GLOBAL_SCOPE, Attribute, AttributeForm, AttributeValue,
)
from admin_console.models.category import Category, Subcategory
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.taxonomy import subcategory_options
from admin_console.utils.dates import now_iso, parse_iso
from admin_console.utils.media import absolute_media_url, slugify, strip_html

logger = logging.getLogger(__name__)

_KNOWN_TYPES = ("size", "color", "material", "custom")

AttributeSort = Literal["alpha", "recent"]


class AttributeFormError(ValueError):
    """Форма атрибута заполнена некорректно."""


class AttributeNotFound(LookupError):
    pass


def _uid() -> str:
    return str(uuid.uuid4())


def normalize_attribute(raw: Dict[str, Any], base_url: str) -> Attribute:
    if isinstance(raw.get("values"), list):
        values_src = raw["values"]
    elif isinstance(raw.get("options"), list):
        values_src = raw["options"]
    else:
        values_src = []

    values = []
    for v in values_src:
        if not isinstance(v, dict):
            continue
        price = v.get("price_delta")
        description = v.get("description")
        values.append(AttributeValue(
            id=str(v.get("id") if v.get("id") is not None else v.get("option_id") or _uid()),
            name=str(v.get("name") if v.get("name") is not None else v.get("label") or ""),
            price_delta=float(price) if isinstance(price, (int, float)) and not isinstance(price, bool) else None,
            is_default=bool(v.get("is_default")),
            image_url=absolute_media_url(v.get("image_url"), base_url),
            image_id=str(v["image_id"]) if v.get("image_id") is not None else None,
            short_description=description if isinstance(description, str) else None,
        ))

    name = raw.get("name") if raw.get("name") is not None else raw.get("title")
    attr_type = raw.get("type") if raw.get("type") in _KNOWN_TYPES else "custom"
    status = "hidden" if str(raw.get("status") or "").lower() == "hidden" else "visible"
    subs = raw.get("subcategory_ids")
    attr_id = raw.get("id") if raw.get("id") is not None else raw.get("attribute_id")

    return Attribute(
        id=str(attr_id) if attr_id is not None else _uid(),
        name=str(name) if name is not None else "Attribute",
        slug=raw["slug"] if isinstance(raw.get("slug"), str) else slugify(raw.get("name")),
        type=attr_type,
        status=status,
        values=values,
        created_at=str(raw.get("created_at") or raw.get("createdAt") or now_iso()),
        subcategory_ids=[str(x) for x in subs] if isinstance(subs, list) else [],
    )


def toggle_default(values: Sequence[AttributeValue], value_id: str) -> List[AttributeValue]:
    """
    Переключает «по умолчанию» у значения формы.
    Повторный клик по текущему значению снимает флаг; новому значению
    по умолчанию надбавка сбрасывается.
    """
    target = next((v for v in values if v.id == value_id), None)
    should_set = target is not None and not target.is_default
    result = []
    for v in values:
        if v.id == value_id and should_set:
            result.append(v.model_copy(update={"is_default": True, "price_delta": None}))
        else:
            result.append(v.model_copy(update={"is_default": False}))
    return result


def _value_wire(v: AttributeValue, trim: bool = True) -> Dict[str, Any]:
    wire: Dict[str, Any] = {
        "id": v.id,
        "name": v.name.strip() if trim else v.name,
        "is_default": bool(v.is_default),
        "image_url": v.image_url or None,
        "image_id": v.image_id or None,
    }
    if v.price_delta is not None and math.isfinite(v.price_delta):
        wire["price_delta"] = v.price_delta
    if isinstance(v.short_description, str):
        wire["description"] = strip_html(v.short_description)
    return wire


def attribute_wire(attr: Attribute) -> Dict[str, Any]:
    """Attribute целиком в формате save/edit-subcat-attributes."""
    return {
        "id": attr.id,
        "name": attr.name,
        "slug": attr.slug,
        "type": attr.type,
        "status": attr.status,
        "values": [_value_wire(v, trim=False) for v in attr.values],
        "created_at": attr.created_at,
        "subcategory_ids": list(attr.subcategory_ids),
    }


def build_attribute_payload(form: AttributeForm, editing: Optional[Attribute] = None) -> Dict[str, Any]:
    name = form.name.strip()
    if not name:
        raise AttributeFormError("Укажите название атрибута")
    meaningful = [v for v in form.values if v.name.strip()]
    if not meaningful:
        raise AttributeFormError("Добавьте хотя бы одно значение с подписью")

    return {
        "id": (editing.id if editing else None) or form.id or _uid(),
        "name": name,
        "slug": slugify(name),
        "type": (editing.type if editing else None) or form.type or "custom",
        "status": form.status,
        "values": [_value_wire(v) for v in meaningful],
        "created_at": (editing.created_at if editing else None) or form.created_at or now_iso(),
        "subcategory_ids": [] if form.scope == GLOBAL_SCOPE else [str(form.scope)],
    }


def filter_attributes(
    attributes: Sequence[Attribute],
    subcategories: Sequence[Subcategory] = (),
    category: Optional[Category] = None,
    subcategory_id: str = ALL_SUBCATEGORIES,
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort: Optional[AttributeSort] = None,
) -> List[Attribute]:
    """Фильтры и сортировка таблицы атрибутов."""
    base = list(attributes)

    if category is not None and subcategory_id == ALL_SUBCATEGORIES:
        in_category = {s.id for s in subcategory_options(subcategories, category)}
        base = [a for a in base if not a.subcategory_ids or any(i in in_category for i in a.subcategory_ids)]

    query = (search or "").strip().lower()
    if query:
        base = [a for a in base if query in a.name.lower()]
    if status:
        base = [a for a in base if a.status == status]

    if sort == "alpha":
        base.sort(key=lambda a: a.name.casefold())
    elif sort == "recent":
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        base.sort(key=lambda a: parse_iso(a.created_at) or oldest, reverse=True)
    return base


def is_linked(attr: Attribute, subcategory_id: str) -> bool:
    return subcategory_id != ALL_SUBCATEGORIES and subcategory_id in attr.subcategory_ids


async def load_attributes(service: CatalogAPIService, subcategory_id: Optional[str] = None) -> List[Attribute]:
    sub = subcategory_id if subcategory_id and subcategory_id != ALL_SUBCATEGORIES else None
    raw_list = await service.get_attributes(sub)
    return [normalize_attribute(raw, service.base_url) for raw in raw_list if isinstance(raw, dict)]


async def sync_and_reload(service: CatalogAPIService, subcategory_id: Optional[str] = None) -> Dict[str, Any]:
    """Синхронизация атрибутов товаров; при ошибке просто перечитываем список."""
    synced = True
    try:
        await service.sync_product_attributes()
    except CatalogAPIError as e:
        logger.warning(f"Product attribute sync failed, continuing with regular load: {e}")
        synced = False
    return {"synced": synced, "attributes": await load_attributes(service, subcategory_id)}


async def set_subcategory_link(
    service: CatalogAPIService,
    attribute_id: str,
    subcategory_id: str,
    linked: bool,
) -> Attribute:
    """Привязывает атрибут к подкатегории или отвязывает от неё (через edit-subcat-attributes)."""
    if not subcategory_id or subcategory_id == ALL_SUBCATEGORIES:
        raise AttributeFormError("Сначала выберите конкретную подкатегорию")

    current = next((a for a in await load_attributes(service) if a.id == attribute_id), None)
    if current is None:
        raise AttributeNotFound(attribute_id)

    if linked:
        next_ids = list(dict.fromkeys([*current.subcategory_ids, subcategory_id]))
    else:
        next_ids = [i for i in current.subcategory_ids if i != subcategory_id]
    updated = current.model_copy(update={"subcategory_ids": next_ids})
    await service.edit_attribute(attribute_wire(updated))
    logger.info(f"Attribute {attribute_id} {'linked to' if linked else 'unlinked from'} subcategory {subcategory_id}")
    return updated
