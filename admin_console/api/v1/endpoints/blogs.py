# admin_console/api/v1/endpoints/blogs.py
import logging
from fastapi import APIRouter, Depends, Query, HTTPException, status
from typing import List, Optional

from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.services.content import blog_categories, blog_payload, filter_blogs, normalize_blog, sort_blogs
from admin_console.dependencies import get_catalog_service, verify_admin_api_key
from admin_console.models.common import IdsPayload, OperationResult
from admin_console.models.content import BlogForm, BlogRow
from pydantic import BaseModel

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin/blogs",
    tags=["Admin Blog"],
    dependencies=[Depends(verify_admin_api_key)]
)


class BlogList(BaseModel):
    blogs: List[BlogRow] = []
    categories: List[str] = []


@router.get("/", summary="Список статей блога", response_model=BlogList)
async def list_blogs(
    category: Optional[str] = Query(None),
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    """Сначала опубликованные, затем по свежести обновления."""
    try:
        blogs = sort_blogs(normalize_blog(b) for b in await catalog.get_blogs() if isinstance(b, dict))
        return BlogList(blogs=filter_blogs(blogs, category), categories=blog_categories(blogs))
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error fetching blogs", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка получения статей блога.")


@router.get("/{blog_id}", summary="Статья блога для редактора")
async def get_blog(
    blog_id: str,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        blog = await catalog.get_blog(blog_id)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    if blog is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Статья с ID {blog_id} не найдена.")
    return blog


@router.post("/", summary="Создать статью", response_model=OperationResult, status_code=status.HTTP_201_CREATED)
async def create_blog(
    form: BlogForm,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    payload = blog_payload(form.model_copy(update={"id": None}))
    try:
        data = await catalog.save_blog(payload)
        logger.info(f"Blog '{form.title}' saved with status '{payload['status']}'")
        return OperationResult(success=True, message=payload["status"], data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception("Error saving blog", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка сохранения статьи.")


@router.put("/{blog_id}", summary="Изменить статью", response_model=OperationResult)
async def edit_blog(
    blog_id: str,
    form: BlogForm,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    payload = blog_payload(form.model_copy(update={"id": blog_id}))
    try:
        data = await catalog.edit_blog(blog_id, payload)
        logger.info(f"Blog {blog_id} updated")
        return OperationResult(success=True, message=payload["status"], data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
    except Exception as e:
        logger.exception(f"Error updating blog {blog_id}", exc_info=e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ошибка обновления статьи.")


@router.post("/delete", summary="Удалить статьи", response_model=OperationResult)
async def delete_blogs(
    payload: IdsPayload,
    catalog: CatalogAPIService = Depends(get_catalog_service),
):
    try:
        data = await catalog.delete_blogs(payload.ids)
        return OperationResult(success=True, data=data)
    except CatalogAPIError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
