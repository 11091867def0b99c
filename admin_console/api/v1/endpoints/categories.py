# admin_console/api/v1/endpoints/categories.py
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import List, Optional

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.taxonomy import (
    delete_taxonomy_rows, normalize_categories, normalize_subcategories, subcategory_options,
)
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.category import (
    Category, Subcategory, TaxonomyDeletePayload, TaxonomyDeleteResponse, TaxonomyKind, VisibilityPayload,
)
from admin_console.models.common import OperationResult

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/categories",
    tags=["Admin Categories"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.get("/", summary="Список категорий", response_model=List[Category])
async def list_categories(
    include_hidden: bool = Query(False, description="Показывать скрытые (для страницы управления)"),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        return normalize_categories(await catalog.get_categories(), include_hidden=include_hidden)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching categories", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения категорий.")


@router.get("/subcategories", summary="Список подкатегорий", response_model=List[Subcategory])
async def list_subcategories(
    category: Optional[str] = Query(None, description="ID или имя категории"),
    include_hidden: bool = Query(False),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        subcategories = normalize_subcategories(await catalog.get_subcategories(), include_hidden=include_hidden)
        if not category:
            return subcategories
        categories = normalize_categories(await catalog.get_categories(), include_hidden=True)
        # неизвестная категория -> ищем по переданной строке как есть
        category_obj = next((c for c in categories if category in (c.id, c.name)), Category(id=category, name=category))
        return subcategory_options(subcategories, category_obj)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching subcategories", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения подкатегорий.")


@router.post("/{kind}/delete", summary="Удалить категории или подкатегории", response_model=TaxonomyDeleteResponse)
async def delete_taxonomy(
    kind: TaxonomyKind,
    payload: TaxonomyDeletePayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """
    Если бэкенд просит подтверждение, возвращает needs_confirmation=true;
    консоль повторяет запрос с confirm=true.
    """
    try:
        return await delete_taxonomy_rows(catalog, kind, payload.ids, payload.confirm)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error deleting {kind}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка удаления.")


@router.post("/{kind}/visibility", summary="Скрыть или показать", response_model=OperationResult)
async def update_visibility(
    kind: TaxonomyKind,
    payload: VisibilityPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        result = await catalog.update_hidden_status(kind, payload.ids, payload.status)
        logger.info(f"Set status '{payload.status}' for {len(payload.ids)} {kind}")
        return OperationResult(success=True, data=result)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error updating visibility for {kind}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка обновления видимости.")
