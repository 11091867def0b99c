# admin_console/services/products.py
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from admin_console.models.attribute import AttributeOption, CustomAttribute, LibraryResponse
from admin_console.models.common import BulkResult
from admin_console.models.product import ProductDetails, ProductImage
from admin_console.services.attribute_library import (
    build_attributes_payload, library_view, merge_library, parse_price,
)
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.utils.media import absolute_media_url

logger = logging.getLogger(__name__)

LIBRARY_PARTIAL_WARNING = "Some subcategory attributes could not be loaded."


def normalize_product_attributes(raw: Any, base_url: str) -> List[CustomAttribute]:
    """Атрибуты, уже сохранённые в товаре (show_product_attributes)."""
    if not isinstance(raw, list):
        return []
    result = []
    for a in raw:
        if not isinstance(a, dict):
            continue
        options = []
        for o in a.get("options") or []:
            if not isinstance(o, dict):
                continue
            options.append(AttributeOption(
                id=str(o.get("id") or uuid.uuid4()),
                label=str(o.get("label") or ""),
                price_delta=parse_price(o.get("price_delta")),
                is_default=bool(o.get("is_default")),
                image_id=str(o["image_id"]) if o.get("image_id") else None,
                image_preview=absolute_media_url(o.get("image_url"), base_url),
                image=None,
                description=o.get("description") if isinstance(o.get("description"), str) else "",
            ))
        result.append(CustomAttribute(id=str(a.get("id") or uuid.uuid4()), name=str(a.get("name") or ""), options=options))
    return result


def product_images(other: Any, base_url: str) -> List[ProductImage]:
    """Изображения товара: images_with_ids, а для старого бэкенда просто список ссылок."""
    if not isinstance(other, dict):
        return []
    images = []
    for row in other.get("images_with_ids") or []:
        if isinstance(row, dict) and row.get("url"):
            images.append(ProductImage(
                id=str(row["id"]) if row.get("id") else None,
                url=absolute_media_url(row["url"], base_url),
                alt=row.get("alt") if isinstance(row.get("alt"), str) else None,
                is_primary=bool(row.get("is_primary")),
            ))
    if not images:
        for url in other.get("images") or []:
            if isinstance(url, str) and url:
                images.append(ProductImage(url=absolute_media_url(url, base_url)))
    return images


def compose_product_details(product_id: str, sections: Dict[str, Any], base_url: str) -> ProductDetails:
    def _dict(name: str) -> Dict[str, Any]:
        value = sections.get(name)
        return value if isinstance(value, dict) else {}

    variants = sections.get("variants")
    if isinstance(variants, dict):
        variants = variants.get("variant_combinations")
    return ProductDetails(
        product_id=product_id,
        basic=_dict("basic"),
        seo=_dict("seo"),
        variant=_dict("variant"),
        shipping=_dict("shipping"),
        variants=[v for v in variants if isinstance(v, dict)] if isinstance(variants, list) else [],
        images=product_images(sections.get("other"), base_url),
        attributes=normalize_product_attributes(sections.get("attributes"), base_url),
    )


def build_product_payload(
    fields: Dict[str, Any],
    attributes: Sequence[CustomAttribute],
    product_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Тело save-product, либо edit-product, если передан product_id."""
    payload = {**fields, "customAttributes": build_attributes_payload(attributes)}
    if product_id:
        payload["product_ids"] = [product_id]
    return payload


async def load_attribute_library(
    service: CatalogAPIService,
    subcategory_ids: Sequence[str],
    selected: Sequence[CustomAttribute],
    edit_mode: bool,
    currency: str,
) -> LibraryResponse:
    """Библиотека атрибутов по подкатегориям товара с отметками текущего выбора."""
    ids = [s for s in dict.fromkeys(str(i) for i in subcategory_ids) if s]
    if not ids:
        return LibraryResponse()
    raw_lists, had_error = await service.get_attributes_for_subcategories(ids)
    library = merge_library(raw_lists, selected, edit_mode, service.base_url)
    return LibraryResponse(
        attributes=library_view(library, selected, currency),
        warning=LIBRARY_PARTIAL_WARNING if had_error else None,
    )


async def set_subcategory_for_products(
    service: CatalogAPIService,
    product_ids: Sequence[str],
    subcategory_id: str,
    linked: bool,
) -> BulkResult:
    """Привязка/отвязка подкатегории для выбранных товаров, по одному запросу на товар."""
    result = BulkResult()
    for product_id in product_ids:
        try:
            if linked:
                await service.link_product_subcategory(product_id, subcategory_id)
            else:
                await service.unlink_product_subcategory(product_id, [subcategory_id])
            result.ok += 1
        except CatalogAPIError as e:
            logger.warning(f"Failed to {'link' if linked else 'unlink'} product {product_id} / subcategory {subcategory_id}: {e.message}")
            result.failed += 1
            result.failed_ids.append(product_id)
    return result
