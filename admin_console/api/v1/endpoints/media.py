# admin_console/api/v1/endpoints/media.py
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import Dict, List

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.media_library import (
    MediaSort, delete_images, group_images, metadata_payload, normalize_image,
)
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.common import BulkResult, IdsPayload, OperationResult
from admin_console.models.media import ImageMetadata, ImageUpload, ImageUploadResult, MediaImage

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/media",
    tags=["Admin Media Library"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.get("/", summary="Медиатека, сгруппированная по linked_table", response_model=Dict[str, List[MediaImage]])
async def list_images(
    search: str = Query(""),
    sort: MediaSort = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        raw_images = await catalog.get_images()
        images = [img for img in (normalize_image(r, catalog.base_url) for r in raw_images if isinstance(r, dict)) if img]
        return group_images(images, search, sort, descending=(order == "desc"))
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching media library", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения медиатеки.")


@router.post("/", summary="Загрузить изображение (data URL)", response_model=ImageUploadResult, status_code=status.HTTP_201_CREATED)
async def upload_image(
    payload: ImageUpload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        result = await catalog.save_image(payload.image, payload.alt_text, payload.linked_table)
        image_id = result.get("image_id")
        return ImageUploadResult(url=result["url"], image_id=str(image_id) if image_id is not None else None)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error uploading image", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка загрузки изображения.")


@router.put("/{image_id}", summary="Изменить метаданные изображения", response_model=OperationResult)
async def edit_image(
    image_id: str,
    meta: ImageMetadata,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.edit_image(metadata_payload(image_id, meta))
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)


@router.post("/delete", summary="Удалить выбранные изображения", response_model=BulkResult)
async def delete_selected_images(
    payload: IdsPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    return await delete_images(catalog, payload.ids)
