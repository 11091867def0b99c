# admin_console/api/v1/endpoints/session.py
import logging
from fastapi import APIRouter, Depends

from admin_console.services.catalog_api import CatalogAPIService
from admin_console.services.access_guard import check_session
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.session import SessionCheckRequest, SessionCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/session",
    tags=["Admin Session"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.post("/check", summary="Проверить доступ администратора к странице", response_model=SessionCheckResponse)
async def session_check(
    payload: SessionCheckRequest,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """
    Сверяет сохранённую сессию (admin_id, access_pages) с бэкендом и
    решает, можно ли открыть path. Ошибки бэкенда сессию не обрывают.
    """
    result = await check_session(catalog, payload)
    if not result.authorized:
        logger.info(f"Access to {payload.path} denied for admin {payload.admin_id}: {result.reason}")
    return result
