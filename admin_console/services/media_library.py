# admin_console/services/media_library.py
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

from admin_console.models.common import BulkResult
from admin_console.models.media import ImageMetadata, MediaImage
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError
from admin_console.utils.media import absolute_media_url, png_download_name

logger = logging.getLogger(__name__)

MediaSort = Literal["name", "size"]


def _int(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def normalize_image(raw: Dict[str, Any], base_url: str) -> Optional[MediaImage]:
    ident = raw.get("image_id") if raw.get("image_id") is not None else raw.get("id")
    url = absolute_media_url(raw.get("url") or raw.get("image_url"), base_url)
    if ident is None or not url:
        return None
    tags = raw.get("tags")
    alt = raw.get("alt_text")
    return MediaImage(
        image_id=ident,
        url=url,
        alt_text=alt,
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        width=_int(raw.get("width")),
        height=_int(raw.get("height")),
        linked_id=raw.get("linked_id"),
        linked_table=raw.get("linked_table"),
        linked_page=raw.get("linked_page"),
        image_type=raw.get("image_type"),
        size=_int(raw.get("size")),
        download_name=png_download_name(alt or raw.get("filename") or raw.get("original_name") or str(ident)),
    )


def group_images(
    images: Iterable[MediaImage],
    search: str = "",
    sort: MediaSort = "name",
    descending: bool = False,
) -> Dict[str, List[MediaImage]]:
    """Поиск по alt и тегам, сортировка, группировка по linked_table."""
    q = search.strip().lower()
    found = [
        img for img in images
        if q in (img.alt_text or "").lower() or any(q in (t or "").lower() for t in img.tags)
    ]
    if sort == "name":
        found.sort(key=lambda img: (img.alt_text or "").casefold(), reverse=descending)
    else:
        found.sort(key=lambda img: img.size or 0, reverse=descending)

    groups: Dict[str, List[MediaImage]] = {}
    for img in found:
        groups.setdefault(img.linked_table or "uncategorized", []).append(img)
    return groups


def metadata_payload(image_id: str, meta: ImageMetadata) -> Dict[str, Any]:
    return {"image_id": image_id, **meta.model_dump()}


async def delete_images(service: CatalogAPIService, image_ids: Sequence[str]) -> BulkResult:
    """Удаляет изображения параллельно; ошибки по отдельным id не прерывают остальные."""
    results = await asyncio.gather(*(service.delete_image(i) for i in image_ids), return_exceptions=True)
    summary = BulkResult()
    for image_id, result in zip(image_ids, results):
        if isinstance(result, CatalogAPIError):
            logger.warning(f"Failed to delete image {image_id}: {result.message}")
            summary.failed += 1
            summary.failed_ids.append(image_id)
        elif isinstance(result, BaseException):
            raise result
        else:
            summary.ok += 1
    return summary
