# admin_console/services/attribute_library.py
"""
Сведение библиотеки атрибутов подкатегорий с атрибутами конкретного товара.

Библиотека: атрибуты, привязанные к выбранным подкатегориям товара.
Выбор: атрибуты/опции, уже отмеченные в товаре. Все функции чистые:
принимают текущий выбор и возвращают новый список, исходный не меняется.
"""
import logging
import math
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from admin_console.models.attribute import (
    AttributeOption, CustomAttribute, LibraryAttributeView, SelectionState,
)
from admin_console.utils.media import absolute_media_url, is_data_url, is_http_url

logger = logging.getLogger(__name__)


def _first(*values: Any) -> Any:
    """Первое значение, которое не None."""
    for value in values:
        if value is not None:
            return value
    return None


def _new_id() -> str:
    return str(uuid.uuid4())


def attribute_key(attr: Optional[CustomAttribute]) -> str:
    if attr is None:
        return ""
    if attr.id:
        return str(attr.id)
    if attr.name:
        return attr.name.strip().lower()
    return ""


def option_key(opt: Optional[AttributeOption]) -> str:
    if opt is None:
        return ""
    if opt.id:
        return str(opt.id)
    if opt.label:
        return opt.label.strip().lower()
    return ""


def parse_price(value: Any) -> float:
    """Число из price_delta: число, числовая строка или 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if value:
        try:
            return float(str(value).strip())
        except ValueError:
            return 0.0
    return 0.0


def format_price_delta(value: float, currency: str = "AED") -> str:
    absolute = abs(value)
    formatted = str(int(absolute)) if float(absolute).is_integer() else f"{absolute:.2f}"
    if value > 0:
        return f"+{formatted} {currency}"
    if value < 0:
        return f"-{formatted} {currency}"
    return f"{formatted} {currency}"


def _sorted_by_label(options: Iterable[AttributeOption]) -> List[AttributeOption]:
    return sorted(options, key=lambda o: o.label.casefold())


def normalize_library_option(option: AttributeOption, base_url: str) -> AttributeOption:
    """
    Опция библиотеки в виде, пригодном для записи в товар.
    Превью берётся из любого известного поля, image обнуляется:
    на бэкенд уходят только новые загрузки.
    """
    preview = _first(option.image_preview, option.image)
    return AttributeOption(
        id=option.id,
        label=option.label,
        price_delta=parse_price(option.price_delta),
        is_default=bool(option.is_default),
        image_id=option.image_id,
        image_preview=absolute_media_url(preview, base_url) if preview else None,
        image=None,
        description=option.description if option.description is not None else "",
    )


def normalize_library_attribute(raw: Dict[str, Any], base_url: str) -> CustomAttribute:
    """Атрибут библиотеки из JSON бэкенда (show-subcat-attributes)."""
    if isinstance(raw.get("values"), list):
        values = raw["values"]
    elif isinstance(raw.get("options"), list):
        values = raw["options"]
    else:
        values = []

    options: List[AttributeOption] = []
    for opt in values:
        if not isinstance(opt, dict):
            continue
        if opt.get("price_delta") is not None:
            price = parse_price(opt.get("price_delta"))
        else:
            price = parse_price(opt.get("price"))

        description = ""
        for field in ("description", "short_description"):
            candidate = opt.get(field)
            if isinstance(candidate, str) and candidate.strip():
                description = candidate
                break

        options.append(AttributeOption(
            id=str(_first(opt.get("id"), opt.get("value_id"), _new_id())),
            label=str(_first(opt.get("name"), opt.get("label"), "")),
            price_delta=price,
            is_default=bool(opt.get("is_default")),
            image_id=str(opt["image_id"]) if opt.get("image_id") is not None else None,
            image_preview=absolute_media_url(opt.get("image_url"), base_url),
            image=None,
            description=description,
        ))

    return CustomAttribute(
        id=str(_first(raw.get("id"), raw.get("attribute_id"), _new_id())),
        name=str(_first(raw.get("name"), raw.get("title"), "Attribute")),
        status=str(_first(raw.get("status"), "active")),
        options=_sorted_by_label(options),
    )


def merge_library(
    raw_lists: Sequence[Sequence[Dict[str, Any]]],
    selected: Sequence[CustomAttribute],
    edit_mode: bool,
    base_url: str,
) -> List[CustomAttribute]:
    """
    Сводит ответы по нескольким подкатегориям в одну библиотеку.

    Скрытые атрибуты пропускаются, кроме уже выбранных в редактируемом товаре.
    Дубликаты (по id или имени) объединяются: опции по ключу, первая побеждает;
    имя и статус берутся из последнего вхождения.
    """
    normalized = [
        normalize_library_attribute(raw, base_url)
        for raw_list in raw_lists
        for raw in raw_list
        if isinstance(raw, dict)
    ]
    selected_keys = {k for k in (attribute_key(a) for a in selected) if k}

    merged: Dict[str, CustomAttribute] = {}
    for attr in normalized:
        is_hidden = (attr.status or "").lower() == "hidden"
        is_selected = attribute_key(attr) in selected_keys
        if is_hidden and not (edit_mode and is_selected):
            continue

        key = attr.id or attr.name
        existing = merged.get(key)
        if existing is None:
            merged[key] = attr
            continue

        by_key: Dict[str, AttributeOption] = {}
        for opt in [*existing.options, *attr.options]:
            by_key.setdefault(option_key(opt), opt)
        merged[key] = existing.model_copy(update={
            "name": attr.name or existing.name,
            "status": attr.status or existing.status,
            "options": _sorted_by_label(by_key.values()),
        })

    return list(merged.values())


def ensure_default_option(options: List[AttributeOption], preferred_key: Optional[str] = None) -> List[AttributeOption]:
    """
    Гарантирует ровно одну опцию по умолчанию.
    Если её нет, выбирается preferred_key, иначе первая; у назначенной
    заново опции надбавка обнуляется.
    """
    if not options:
        return options

    default_index = next((i for i, opt in enumerate(options) if opt.is_default), -1)
    assigned = False

    if default_index == -1 and preferred_key:
        preferred_index = next((i for i, opt in enumerate(options) if option_key(opt) == preferred_key), -1)
        if preferred_index != -1:
            default_index = preferred_index
            assigned = True

    if default_index == -1:
        default_index = 0
        assigned = True

    result = []
    for i, opt in enumerate(options):
        is_default = i == default_index
        if assigned and is_default:
            result.append(opt.model_copy(update={"is_default": True, "price_delta": 0.0}))
        else:
            result.append(opt.model_copy(update={"is_default": is_default}))
    return result


def _find_selected(selected: Sequence[CustomAttribute], attr: CustomAttribute) -> Optional[CustomAttribute]:
    key = attribute_key(attr)
    if not key:
        return None
    return next((a for a in selected if attribute_key(a) == key), None)


def is_option_selected(selected: Sequence[CustomAttribute], attr: CustomAttribute, option: AttributeOption) -> bool:
    """Совпадение по id либо по имени без учёта регистра."""
    attr_name = (attr.name or "").lower()
    match = next(
        (a for a in selected if (a.id is not None and a.id == attr.id) or (a.name or "").lower() == attr_name),
        None,
    )
    if match is None:
        return False
    label = (option.label or "").lower()
    return any(
        (opt.id is not None and opt.id == option.id) or (opt.label or "").lower() == label
        for opt in match.options
    )


def selection_state(attr: CustomAttribute, selected: Sequence[CustomAttribute]) -> SelectionState:
    if not attr.options:
        return "none"
    match = _find_selected(selected, attr)
    if match is None:
        return "none"
    selected_keys = {option_key(opt) for opt in match.options}
    count = sum(1 for opt in attr.options if option_key(opt) in selected_keys)
    if count == len(attr.options):
        return "full"
    if count > 0:
        return "partial"
    return "none"


def _merge_option(existing: AttributeOption, incoming: AttributeOption) -> AttributeOption:
    """Опция из библиотеки поверх уже выбранной: флаг «по умолчанию», картинка и описание сохраняются."""
    return incoming.model_copy(update={
        "is_default": existing.is_default,
        "image_preview": _first(existing.image_preview, incoming.image_preview),
        "image_id": _first(existing.image_id, incoming.image_id),
        "description": _first(existing.description, incoming.description, ""),
    })


def _default_key(attr: CustomAttribute) -> Optional[str]:
    default = next((opt for opt in attr.options if opt.is_default), None)
    return option_key(default) if default else None


def _stored_id(*candidates: Optional[str]) -> str:
    return next((c for c in candidates if c), None) or _new_id()


def toggle_attribute(
    selected: Sequence[CustomAttribute],
    attr: CustomAttribute,
    checked: bool,
    base_url: str,
) -> List[CustomAttribute]:
    """Отметка атрибута целиком: все его опции копируются в товар либо атрибут снимается."""
    key = attribute_key(attr)
    current = list(selected)
    if not key:
        return current
    index = next((i for i, a in enumerate(current) if attribute_key(a) == key), -1)

    if not checked:
        if index != -1:
            del current[index]
        return current

    incoming = [normalize_library_option(opt, base_url) for opt in attr.options]
    if index == -1:
        current.append(CustomAttribute(
            id=_stored_id(attr.id, key, attr.name),
            name=attr.name,
            options=ensure_default_option(incoming),
        ))
        return current

    existing_attr = current[index]
    by_key: Dict[str, AttributeOption] = {option_key(opt): opt for opt in existing_attr.options}
    for opt in incoming:
        k = option_key(opt)
        by_key[k] = _merge_option(by_key[k], opt) if k in by_key else opt

    current[index] = existing_attr.model_copy(update={
        "id": _stored_id(existing_attr.id, attr.id, key, attr.name),
        "name": attr.name,
        "options": ensure_default_option(list(by_key.values()), _default_key(existing_attr)),
    })
    return current


def toggle_option(
    selected: Sequence[CustomAttribute],
    attr: CustomAttribute,
    option: AttributeOption,
    checked: bool,
    base_url: str,
) -> List[CustomAttribute]:
    """Отметка одной опции атрибута библиотеки."""
    key = attribute_key(attr)
    opt_key = option_key(option)
    current = list(selected)
    if not key or not opt_key:
        return current
    index = next((i for i, a in enumerate(current) if attribute_key(a) == key), -1)

    if checked:
        normalized = normalize_library_option(option, base_url)
        if index == -1:
            current.append(CustomAttribute(
                id=_stored_id(attr.id, key, attr.name),
                name=attr.name,
                options=ensure_default_option([normalized]),
            ))
            return current

        existing_attr = current[index]
        options = list(existing_attr.options)
        opt_index = next((i for i, o in enumerate(options) if option_key(o) == opt_key), -1)
        if opt_index == -1:
            options.append(normalized)
        else:
            options[opt_index] = _merge_option(options[opt_index], normalized)
        current[index] = existing_attr.model_copy(update={
            "options": ensure_default_option(options, _default_key(existing_attr)),
        })
        return current

    if index == -1:
        return current
    existing_attr = current[index]
    remaining = [o for o in existing_attr.options if option_key(o) != opt_key]
    if not remaining:
        del current[index]
        return current
    current[index] = existing_attr.model_copy(update={"options": ensure_default_option(remaining)})
    return current


def _key_matches(key: str, wanted: str) -> bool:
    return bool(key) and key in (wanted, (wanted or "").strip().lower())


def find_option(
    selected: Sequence[CustomAttribute], attribute_id: str, option_id: str,
) -> Optional[AttributeOption]:
    """Опция выбранного атрибута по id или подписи (как в option_key)."""
    for attr in selected:
        if _key_matches(attribute_key(attr), attribute_id):
            for opt in attr.options:
                if _key_matches(option_key(opt), option_id):
                    return opt
    return None


def set_default_option(selected: Sequence[CustomAttribute], attribute_id: str, option_id: str) -> List[CustomAttribute]:
    """
    Ручной выбор опции по умолчанию: её надбавка обнуляется, остальные снимаются.
    Неизвестная опция ничего не меняет.
    """
    result = []
    for attr in selected:
        if not _key_matches(attribute_key(attr), attribute_id):
            result.append(attr)
            continue
        if not any(_key_matches(option_key(opt), option_id) for opt in attr.options):
            logger.warning(f"Option '{option_id}' not found in attribute '{attribute_id}', default unchanged")
            result.append(attr)
            continue
        chosen = False
        options = []
        for opt in attr.options:
            if not chosen and _key_matches(option_key(opt), option_id):
                chosen = True
                options.append(opt.model_copy(update={"is_default": True, "price_delta": 0.0}))
            else:
                options.append(opt.model_copy(update={"is_default": False}))
        result.append(attr.model_copy(update={"options": options}))
    return result


def build_attributes_payload(attrs: Sequence[CustomAttribute]) -> List[Dict[str, Any]]:
    """Атрибуты товара в формате, который ждёт save-product/edit-product."""
    out = []
    for attr in attrs:
        name = (attr.name or "").strip()
        if not name:
            continue
        options = []
        for opt in attr.options:
            label = (opt.label or "").strip()
            if not label:
                continue
            image = None
            if is_data_url(opt.image):
                image = opt.image
            elif is_http_url(opt.image_preview):
                # существующую ссылку пробрасываем, чтобы бэкенд её сохранил
                image = opt.image_preview
            options.append({
                "id": opt.id,
                "label": label,
                "price_delta": opt.price_delta if math.isfinite(opt.price_delta) else 0,
                "is_default": bool(opt.is_default),
                "image_id": opt.image_id or None,
                "image": image,
                "description": opt.description or "",
            })
        out.append({"id": attr.id, "name": name, "options": options})
    return out


def library_view(
    library: Sequence[CustomAttribute],
    selected: Sequence[CustomAttribute],
    currency: str = "AED",
) -> List[LibraryAttributeView]:
    views = []
    for attr in library:
        picked = [option_key(opt) for opt in attr.options if is_option_selected(selected, attr, opt)]
        views.append(LibraryAttributeView(
            **attr.model_dump(),
            selection=selection_state(attr, selected),
            selected_option_keys=picked,
            price_labels={option_key(opt): format_price_delta(opt.price_delta, currency) for opt in attr.options},
        ))
    return views
