# admin_console/api/v1/endpoints/notifications.py
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import List, Optional

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.notifications import (
    SortOrder, build_feed, mark_read_batch, moderate_comment, next_hidden_toggle,
)
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.common import OperationResult
from admin_console.models.notification import (
    CommentModerationPayload, CommentModerationResult, CommentStatus, MarkReadPayload, MarkReadResult, NotificationFeed,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/notifications",
    tags=["Admin Notifications"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.get("/", summary="Лента уведомлений", response_model=NotificationFeed)
async def get_notifications(
    tab: str = Query("all", description="all | unread | <source_table>"),
    order: SortOrder = Query("latest"),
    access_pages: Optional[List[str]] = Query(None, description="Страницы, доступные администратору"),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """Без access_pages в ленте остаются только комментарии к товарам."""
    try:
        return build_feed(await catalog.get_notifications(), access_pages, tab, order)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching notifications", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения уведомлений.")


@router.post("/{notification_id}/read", summary="Отметить прочитанным", response_model=OperationResult)
async def mark_read(
    notification_id: str,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        await catalog.update_notification(notification_id, "read")
        return OperationResult(success=True)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)


@router.post("/mark-read", summary="Отметить прочитанными несколько уведомлений", response_model=MarkReadResult)
async def mark_read_many(
    payload: MarkReadPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    failed = await mark_read_batch(catalog, payload.ids)
    return MarkReadResult(marked=[i for i in payload.ids if i not in failed], failed=failed)


@router.post("/comments/{comment_id}", summary="Модерация комментария к товару", response_model=CommentModerationResult)
async def moderate(
    comment_id: str,
    payload: CommentModerationPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        marked = await moderate_comment(catalog, comment_id, payload.status)
        return CommentModerationResult(comment_id=comment_id, status=payload.status, marked_read=marked)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error moderating comment {comment_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка модерации комментария.")


@router.post("/comments/{comment_id}/toggle-hidden", summary="Скрыть комментарий или вернуть его", response_model=CommentModerationResult)
async def toggle_comment_hidden(
    comment_id: str,
    current: Optional[CommentStatus] = Query(None, description="Текущий статус комментария"),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """hidden -> approved, любой другой статус -> hidden."""
    return await moderate(comment_id, CommentModerationPayload(status=next_hidden_toggle(current)), catalog)
