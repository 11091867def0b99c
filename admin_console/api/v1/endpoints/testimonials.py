# admin_console/api/v1/endpoints/testimonials.py
import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.content import is_blank_testimonial, normalize_testimonial, save_testimonial
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.common import OperationResult
from admin_console.models.content import Testimonial

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/testimonials",
    tags=["Admin Testimonials"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.get("/", summary="Все отзывы", response_model=List[Testimonial])
async def list_testimonials(catalog: CatalogAPIService = Depends(get_catalog_service)):
    try:
        return [normalize_testimonial(t) for t in await catalog.get_testimonials() if isinstance(t, dict)]
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching testimonials", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения отзывов.")


@router.post("/", summary="Сохранить отзывы (новые и изменённые)", response_model=List[Testimonial])
async def save_testimonials(
    rows: List[Testimonial],
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """Пустые строки пропускаются; у сохранённых подставляются id и ссылка на картинку от бэкенда."""
    to_save = [t for t in rows if not is_blank_testimonial(t)]
    try:
        saved = await asyncio.gather(*(save_testimonial(catalog, t) for t in to_save))
        logger.info(f"Saved {len(saved)} testimonials")
        return list(saved)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error saving testimonials", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка сохранения отзывов.")


@router.delete("/{testimonial_id}", summary="Удалить отзыв", response_model=OperationResult)
async def delete_testimonial(
    testimonial_id: str,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.delete_testimonial(testimonial_id)
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
