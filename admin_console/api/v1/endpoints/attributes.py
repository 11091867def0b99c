# admin_console/api/v1/endpoints/attributes.py
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import List, Optional

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.attributes import (
    AttributeFormError, AttributeNotFound, AttributeSort,
    build_attribute_payload, filter_attributes, load_attributes, normalize_attribute,
    set_subcategory_link, sync_and_reload, toggle_default,
)
from admin_console.services.taxonomy import normalize_categories, normalize_subcategories
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.attribute import (
    ALL_SUBCATEGORIES, Attribute, AttributeForm, AttributeLinkPayload, AttributeValue, DefaultTogglePayload,
)
from admin_console.models.common import BulkResult, IdsPayload
from pydantic import BaseModel

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/attributes",
    tags=["Admin Attributes"],
    dependencies=[Depends(verify_admin_api_key)]
)


class AttributeSyncResult(BaseModel):
    synced: bool
    attributes: List[Attribute] = []


@router.get("/", summary="Список атрибутов с фильтрами", response_model=List[Attribute])
async def list_attributes(
    subcategory_id: str = Query(ALL_SUBCATEGORIES, description="ID подкатегории или __all__"),
    category: Optional[str] = Query(None, description="ID или имя категории"),
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    sort: Optional[AttributeSort] = Query(None),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        attributes = await load_attributes(catalog, subcategory_id)
        category_obj = None
        subcategories = []
        if category:
            categories = normalize_categories(await catalog.get_categories(), include_hidden=True)
            category_obj = next((c for c in categories if category in (c.id, c.name)), None)
            subcategories = normalize_subcategories(await catalog.get_subcategories(), include_hidden=True)
        return filter_attributes(
            attributes, subcategories, category_obj, subcategory_id,
            search=search, status=status_filter, sort=sort,
        )
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching attributes list", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения списка атрибутов.")


@router.post("/", summary="Создать атрибут", response_model=Attribute, status_code=status.HTTP_201_CREATED)
async def create_attribute(
    form: AttributeForm,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        payload = build_attribute_payload(form)
        created = await catalog.save_attribute(payload)
        # бэкенд может вернуть свой id
        if isinstance(created, dict) and created.get("id"):
            payload["id"] = str(created["id"])
        logger.info(f"Attribute '{payload['name']}' created with ID {payload['id']}")
        return normalize_attribute(payload, catalog.base_url)
    except AttributeFormError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error creating attribute", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка создания атрибута.")


@router.put("/{attribute_id}", summary="Изменить атрибут", response_model=Attribute)
async def edit_attribute(
    attribute_id: str,
    form: AttributeForm,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        existing = next((a for a in await load_attributes(catalog) if a.id == attribute_id), None)
        if existing is None:
            raise AttributeNotFound(attribute_id)
        payload = build_attribute_payload(form, editing=existing)
        await catalog.edit_attribute(payload)
        logger.info(f"Attribute {attribute_id} updated")
        return normalize_attribute(payload, catalog.base_url)
    except AttributeNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Атрибут с ID {attribute_id} не найден.")
    except AttributeFormError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error updating attribute {attribute_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка обновления атрибута.")


@router.post("/delete", summary="Удалить выбранные атрибуты", response_model=BulkResult)
async def delete_attributes(
    payload: IdsPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        deleted = await catalog.delete_attributes(payload.ids)
        logger.info(f"Deleted {deleted} of {len(payload.ids)} attributes")
        return BulkResult(ok=deleted, message=f"Deleted {deleted} item(s)")
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error deleting attributes", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка удаления атрибутов.")


async def _change_link(catalog: CatalogAPIService, attribute_id: str, subcategory_id: str, linked: bool) -> Attribute:
    try:
        return await set_subcategory_link(catalog, attribute_id, subcategory_id, linked)
    except AttributeNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Атрибут с ID {attribute_id} не найден.")
    except AttributeFormError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error changing subcategory link for attribute {attribute_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка обновления привязки атрибута.")


@router.post("/{attribute_id}/link", summary="Привязать атрибут к подкатегории", response_model=Attribute)
async def link_attribute(
    attribute_id: str,
    payload: AttributeLinkPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return await _change_link(catalog, attribute_id, payload.subcategory_id, linked=True)


@router.post("/{attribute_id}/unlink", summary="Отвязать атрибут от подкатегории", response_model=Attribute)
async def unlink_attribute(
    attribute_id: str,
    payload: AttributeLinkPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return await _change_link(catalog, attribute_id, payload.subcategory_id, linked=False)


@router.post("/sync", summary="Синхронизировать атрибуты товаров", response_model=AttributeSyncResult)
async def sync_attributes(
    subcategory_id: str = Query(ALL_SUBCATEGORIES),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """Если синхронизация не удалась, просто возвращает свежий список (synced=false)."""
    try:
        return await sync_and_reload(catalog, subcategory_id)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)


@router.post("/toggle-default", summary="Переключить значение по умолчанию в форме", response_model=List[AttributeValue])
async def toggle_default_value(payload: DefaultTogglePayload):
    return toggle_default(payload.values, payload.value_id)
