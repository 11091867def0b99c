# admin_console/api/v1/endpoints/products.py
import asyncio
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import Any, Dict, List, Optional

from admin_console.core.config import settings
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services import attribute_library
from admin_console.services.products import (
    build_product_payload, compose_product_details, load_attribute_library, set_subcategory_for_products,
)
from admin_console.services.taxonomy import (
    build_catalog_tree, low_stock, normalize_categories, normalize_product, normalize_subcategories,
)
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.attribute import (
    AttributeToggleRequest, CustomAttribute, LibraryRequest, LibraryResponse, OptionToggleRequest, SetDefaultRequest,
)
from admin_console.models.common import BulkResult, IdsPayload, OperationResult
from admin_console.models.product import (
    CatalogCategoryNode, ProductDetails, ProductSavePayload, ProductSummary, SubcategoryLinkPayload, ThumbnailPayload,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/products",
    tags=["Admin Products"],
    dependencies=[Depends(verify_admin_api_key)]
)


async def _products(catalog: CatalogAPIService) -> List[ProductSummary]:
    return [normalize_product(p, catalog.base_url) for p in await catalog.get_products() if isinstance(p, dict)]


@router.get("/", summary="Список товаров", response_model=List[ProductSummary])
async def list_products(
    subcategory_id: Optional[str] = Query(None, description="Только товары этой подкатегории"),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        products = await _products(catalog)
        if subcategory_id:
            products = [p for p in products if subcategory_id in p.subcategory_ids]
        return products
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching products list", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения списка товаров.")


@router.get("/tree", summary="Дерево категория -> подкатегория -> товары", response_model=List[CatalogCategoryNode])
async def products_tree(catalog: CatalogAPIService = Depends(get_catalog_service)):
    try:
        raw_categories, raw_subcategories, products = await asyncio.gather(
            catalog.get_categories(), catalog.get_subcategories(), _products(catalog),
        )
        return build_catalog_tree(
            normalize_categories(raw_categories, include_hidden=True),
            normalize_subcategories(raw_subcategories, include_hidden=True),
            products,
        )
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error building products tree", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка построения дерева товаров.")


@router.get("/low-stock", summary="Товары с заканчивающимся остатком", response_model=List[ProductSummary])
async def low_stock_products(
    threshold: int = Query(5, ge=1),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        return low_stock(await _products(catalog), threshold)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)


@router.post("/delete", summary="Удалить выбранные товары", response_model=OperationResult)
async def delete_products(
    payload: IdsPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.delete_products(payload.ids)
        logger.info(f"Deleted products: {payload.ids}")
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error deleting products", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка удаления товаров.")


@router.post("/link-subcategory", summary="Привязать подкатегорию к товарам", response_model=BulkResult)
async def link_subcategory(
    payload: SubcategoryLinkPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return await set_subcategory_for_products(catalog, payload.product_ids, payload.subcategory_id, linked=True)


@router.post("/unlink-subcategory", summary="Отвязать подкатегорию от товаров", response_model=BulkResult)
async def unlink_subcategory(
    payload: SubcategoryLinkPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return await set_subcategory_for_products(catalog, payload.product_ids, payload.subcategory_id, linked=False)


@router.post("/", summary="Создать товар", response_model=OperationResult, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductSavePayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.save_product(build_product_payload(payload.fields, payload.attributes))
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error creating product", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка создания товара.")


@router.get("/{product_id}", summary="Карточка товара", response_model=ProductDetails)
async def get_product(
    product_id: str,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        sections = await catalog.get_product_details(product_id)
        return compose_product_details(product_id, sections, catalog.base_url)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error fetching product details for ID {product_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения карточки товара.")


@router.put("/{product_id}", summary="Изменить товар", response_model=OperationResult)
async def edit_product(
    product_id: str,
    payload: ProductSavePayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.edit_product(build_product_payload(payload.fields, payload.attributes, product_id))
        logger.info(f"Product {product_id} updated")
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error updating product {product_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка обновления товара.")


@router.post("/{product_id}/thumbnail", summary="Назначить главное изображение", response_model=OperationResult)
async def set_thumbnail(
    product_id: str,
    payload: ThumbnailPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.set_product_thumbnail(product_id, payload.image_id)
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)


# --- Редактор атрибутов товара ---

@router.post("/attributes/library", summary="Библиотека атрибутов для подкатегорий товара", response_model=LibraryResponse)
async def attribute_library_view(
    payload: LibraryRequest,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        return await load_attribute_library(
            catalog, payload.subcategory_ids, payload.selected, payload.edit_mode, settings.PRICE_CURRENCY,
        )
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error loading attribute library", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка загрузки библиотеки атрибутов.")


@router.post("/attributes/toggle-attribute", summary="Отметить/снять атрибут целиком", response_model=List[CustomAttribute])
async def toggle_library_attribute(
    payload: AttributeToggleRequest,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return attribute_library.toggle_attribute(payload.selected, payload.attribute, payload.checked, catalog.base_url)


@router.post("/attributes/toggle-option", summary="Отметить/снять опцию атрибута", response_model=List[CustomAttribute])
async def toggle_library_option(
    payload: OptionToggleRequest,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return attribute_library.toggle_option(
        payload.selected, payload.attribute, payload.option, payload.checked, catalog.base_url,
    )


@router.post("/attributes/set-default", summary="Выбрать опцию по умолчанию", response_model=List[CustomAttribute])
async def set_default(payload: SetDefaultRequest):
    if attribute_library.find_option(payload.selected, payload.attribute_id, payload.option_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Опция не найдена среди выбранных атрибутов.")
    return attribute_library.set_default_option(payload.selected, payload.attribute_id, payload.option_id)


@router.post("/attributes/payload", summary="Атрибуты товара в формате бэкенда", response_model=List[Dict[str, Any]])
async def attributes_payload(selected: List[CustomAttribute]):
    return attribute_library.build_attributes_payload(selected)
