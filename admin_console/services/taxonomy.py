# admin_console/services/taxonomy.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from admin_console.models.category import Category, Subcategory, TaxonomyDeleteResponse
from admin_console.models.product import CatalogCategoryNode, CatalogSubcategoryNode, ProductSummary
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.utils.media import absolute_media_url
from admin_console.utils.selection import remove_rows

logger = logging.getLogger(__name__)


_CATEGORY_ID_FIELDS = ("id", "category_id", "name")
_SUBCATEGORY_ID_FIELDS = ("subcategory_id", "id", "name")


def _is_hidden(raw: Dict[str, Any]) -> bool:
    return str(raw.get("status") or "").lower() == "hidden"


def _row_ident(raw: Dict[str, Any], fields: Sequence[str]) -> Any:
    return next((raw.get(k) for k in fields if raw.get(k) is not None), None)


def normalize_categories(raw_list: Iterable[Any], include_hidden: bool = False) -> List[Category]:
    result = []
    for raw in raw_list:
        if not isinstance(raw, dict) or (not include_hidden and _is_hidden(raw)):
            continue
        ident = _row_ident(raw, _CATEGORY_ID_FIELDS)
        if ident is None:
            continue
        result.append(Category(id=str(ident), name=raw.get("name") or "Category", status=raw.get("status")))
    return result


def normalize_subcategories(raw_list: Iterable[Any], include_hidden: bool = False) -> List[Subcategory]:
    result = []
    for raw in raw_list:
        if not isinstance(raw, dict) or (not include_hidden and _is_hidden(raw)):
            continue
        ident = _row_ident(raw, _SUBCATEGORY_ID_FIELDS)
        if ident is None:
            continue
        cats = raw.get("categories") if isinstance(raw.get("categories"), list) else []
        result.append(Subcategory(
            id=str(ident),
            name=raw.get("name") or "Subcategory",
            status=raw.get("status"),
            categories=[str(c.get("name") if isinstance(c, dict) else c) for c in cats],
        ))
    return result


def subcategory_options(subcategories: Sequence[Subcategory], category: Optional[Category]) -> List[Subcategory]:
    """Подкатегории выбранной категории (связь по id или имени категории)."""
    if category is None:
        return list(subcategories)
    keys = {category.id, category.name}
    return [s for s in subcategories if keys.intersection(s.categories)]


def product_subcategory_ids(raw: Dict[str, Any]) -> List[str]:
    """Все подкатегории товара: список subcategories плюс устаревшее поле subcategory."""
    ids: List[str] = []
    many = raw.get("subcategories")
    if isinstance(many, list):
        for sub in many:
            sid = sub.get("id") if isinstance(sub, dict) else sub
            if sid:
                ids.append(str(sid))
    legacy = raw.get("subcategory")
    if isinstance(legacy, dict) and legacy.get("id"):
        ids.append(str(legacy["id"]))
    if isinstance(raw.get("subcategory_ids"), list):
        ids.extend(str(x) for x in raw["subcategory_ids"] if x)
    return list(dict.fromkeys(ids))


def normalize_product(raw: Dict[str, Any], base_url: str) -> ProductSummary:
    def _int(value: Any) -> Optional[int]:
        try:
            return int(value) if value not in (None, "") else None
        except (TypeError, ValueError):
            return None

    quantity = _int(raw.get("stock_quantity", raw.get("quantity")))
    alert = _int(raw.get("low_stock_alert"))
    return ProductSummary(
        id=str(raw.get("id") or raw.get("product_id") or ""),
        product_id=str(raw["product_id"]) if raw.get("product_id") else None,
        name=raw.get("name") or raw.get("title") or "",
        sku=raw.get("sku"),
        status=raw.get("status"),
        price=raw.get("price"),
        stock_quantity=quantity,
        low_stock_alert=alert,
        stock_status=stock_status(quantity, alert, raw.get("stock_status")),
        thumbnail=absolute_media_url(raw.get("thumbnail") or raw.get("image"), base_url),
        subcategory_ids=product_subcategory_ids(raw),
    )


def build_catalog_tree(
    categories: Sequence[Category],
    subcategories: Sequence[Subcategory],
    products: Sequence[ProductSummary],
) -> List[CatalogCategoryNode]:
    """
    Дерево категория -> подкатегории -> товары для страницы товаров.
    Товар попадает во все свои подкатегории, без повторов внутри одной.
    """
    by_sub: Dict[str, Dict[str, ProductSummary]] = {}
    for product in products:
        for sid in product.subcategory_ids:
            by_sub.setdefault(sid, {}).setdefault(product.id, product)

    nodes = {c.name: CatalogCategoryNode(name=c.name) for c in categories}
    by_id = {c.id: c.name for c in categories}
    for sub in subcategories:
        sub_node = CatalogSubcategoryNode(id=sub.id, name=sub.name, products=list(by_sub.get(sub.id, {}).values()))
        for cat_ref in sub.categories:
            name = cat_ref if cat_ref in nodes else by_id.get(cat_ref)
            if name in nodes:
                nodes[name].subcategories.append(sub_node)
    return list(nodes.values())


def stock_status(quantity: Optional[int], alert: Optional[int], fallback: Optional[str] = None) -> Optional[str]:
    if quantity is None or alert is None:
        return fallback
    if quantity == 0:
        return "Out Of Stock"
    if quantity <= alert:
        return "Low Stock"
    return "In Stock"


def low_stock(products: Sequence[ProductSummary], threshold: int = 5) -> List[ProductSummary]:
    """Товары, которые ещё есть, но осталось не больше threshold штук."""
    return [p for p in products if p.stock_quantity is not None and 0 < p.stock_quantity <= threshold]


async def delete_taxonomy_rows(service: CatalogAPIService, kind: str, ids: List[str], confirm: bool) -> TaxonomyDeleteResponse:
    """
    Двухшаговое удаление: первый запрос с confirm=False; если бэкенд просит
    подтверждение, консоль показывает message и повторяет запрос с confirm=True.
    """
    result = await service.delete_taxonomy(kind, ids, confirm)
    if result.get("confirm") and not confirm:
        return TaxonomyDeleteResponse(success=False, needs_confirmation=True, message=result.get("message") or "Continue?")
    if not result.get("success"):
        raise CatalogAPIError(result.get("error") or "Delete failed", status_code=400, details=result)

    if kind == "categories":
        rows, id_fields = await service.get_categories(), _CATEGORY_ID_FIELDS
    else:
        rows, id_fields = await service.get_subcategories(), _SUBCATEGORY_ID_FIELDS
    remaining, _ = remove_rows(
        [r for r in rows if isinstance(r, dict)], ids,
        key=lambda r: str(_row_ident(r, id_fields)),
    )
    logger.info(f"Deleted {len(ids)} {kind}")
    return TaxonomyDeleteResponse(success=True, message="Deleted successfully", remaining=remaining)
