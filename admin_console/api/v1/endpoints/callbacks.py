# admin_console/api/v1/endpoints/callbacks.py
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import Any, Dict, List

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.content import (
    callback_payload, delete_callbacks, lead_time_warnings, normalize_callback, sort_callbacks,
)
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.common import BulkResult, IdsPayload
from admin_console.models.content import CallbackForm, CallbackRow, CallbackSaveResponse, CallbackSort

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/callbacks",
    tags=["Admin Callbacks"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.get("/", summary="Заявки на обратный звонок", response_model=List[CallbackRow])
async def list_callbacks(
    sort: CallbackSort = Query("added", description="added | urgency | event_date"),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        rows = [normalize_callback(r) for r in await catalog.get_callbacks() if isinstance(r, dict)]
        return sort_callbacks([r for r in rows if r is not None], sort)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching callbacks", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения заявок.")


@router.get("/{callback_id}", summary="Заявка", response_model=CallbackRow)
async def get_callback(
    callback_id: str,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        raw = await catalog.get_callback(callback_id)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    row = normalize_callback(raw) if raw else None
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Заявка с ID {callback_id} не найдена.")
    return row


def _saved_row(data: Dict[str, Any], payload: Dict[str, Any]) -> CallbackRow:
    # бэкенд возвращает сохранённую строку; если нет, собираем её из отправленного
    row = normalize_callback(data) if data.get("id") is not None else None
    return row or CallbackRow(**{"id": "", **payload})


@router.post("/", summary="Создать заявку", response_model=CallbackSaveResponse, status_code=status.HTTP_201_CREATED)
async def create_callback(
    form: CallbackForm,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    payload = callback_payload(form)
    try:
        data = await catalog.save_callback(payload)
        return CallbackSaveResponse(
            callback=_saved_row(data, payload),
            warnings=lead_time_warnings(form.preferred_callback, form.event_datetime),
        )
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error creating callback", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка создания заявки.")


@router.put("/{callback_id}", summary="Изменить заявку", response_model=CallbackSaveResponse)
async def edit_callback(
    callback_id: str,
    form: CallbackForm,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    payload = callback_payload(form, callback_id)
    try:
        data = await catalog.edit_callback(payload)
        logger.info(f"Callback {callback_id} updated, status '{payload['status']}'")
        return CallbackSaveResponse(
            callback=_saved_row(data, payload),
            warnings=lead_time_warnings(form.preferred_callback, form.event_datetime),
        )
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error updating callback {callback_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка обновления заявки.")


@router.post("/delete", summary="Удалить выбранные заявки", response_model=BulkResult)
async def delete_selected_callbacks(
    payload: IdsPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """Удаление по одной; в ответе число удачных и неудачных."""
    return await delete_callbacks(catalog, payload.ids)
