# admin_console/services/catalog_api.py
import asyncio
import httpx
import json
import logging
from typing import List, Dict, Optional, Any, Union, Tuple
from pydantic import BaseModel
from httpx import Headers
from admin_console.core.config import settings
from admin_console.utils.media import is_api_path

logger = logging.getLogger(__name__)

FRONTEND_KEY_HEADER = "X-Frontend-Key"

# Разделы карточки товара, которые бэкенд отдаёт отдельными эндпоинтами
PRODUCT_SECTIONS = {
    "basic": "api/show_specific_product/",
    "seo": "api/show_product_seo/",
    "variant": "api/show_product_variant/",
    "shipping": "api/show_product_shipping_info/",
    "variants": "api/show_product_variants/",
    "attributes": "api/show_product_attributes/",
    "other": "api/show_product_other_details/",
}

TAXONOMY_KINDS = ("categories", "subcategories")


class CatalogAPIError(Exception):
    """Базовый класс для ошибок бэкенда каталога."""
    def __init__(self, message="Ошибка при взаимодействии с API каталога", status_code=None, details=None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


def extract_error_message(response: httpx.Response, max_length: int = 400) -> str:
    """Достаёт из ответа с ошибкой человекочитаемое сообщение (по возможности)."""
    body_text = ""
    try:
        body_text = response.text or ""
    except (UnicodeDecodeError, httpx.ResponseNotRead):
        body_text = ""
    message = None
    try:
        payload = json.loads(body_text) if body_text else None
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                message = value.strip()
                break
    if not message:
        message = body_text.strip() or f"HTTP {response.status_code}"
    if len(message) > max_length:
        message = message[:max_length] + "…"
    return message


def as_list(data: Any, *keys: str) -> List[Any]:
    """Бэкенд отдаёт списки то голыми, то внутри results/attributes/data."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys or ("results", "data"):
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


class CatalogAPIService:
    """
    Асинхронный клиент REST API каталога.
    Ко всем запросам под /api/ добавляется заголовок X-Frontend-Key.
    """
    def __init__(self, base_url: Optional[str] = None, frontend_key: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.CATALOG_BASE_URL).rstrip('/')
        self.frontend_key = (settings.FRONTEND_KEY if frontend_key is None else frontend_key).strip()
        timeouts = httpx.Timeout(settings.CATALOG_TIMEOUT, read=settings.CATALOG_READ_TIMEOUT, write=10.0, connect=5.0)
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeouts, transport=transport)
        logger.info(f"CatalogAPIService initialized for URL: {self.base_url}")

    async def close_client(self):
        """Закрывает httpx клиент."""
        if hasattr(self, '_client') and self._client:
            await self._client.aclose()
            logger.info("Catalog HTTP client closed.")

    def _headers_for(self, endpoint: str) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        # Пустой ключ не отправляем, и никогда не шлём его на /media/
        if self.frontend_key and is_api_path(endpoint, self.base_url):
            headers[FRONTEND_KEY_HEADER] = self.frontend_key
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Union[Dict, List, BaseModel]] = None,
        data: Optional[Dict] = None,
        files: Optional[Dict] = None,
    ) -> Tuple[Optional[Any], Optional[Headers]]:
        """
        Внутренний метод для выполнения запросов к API с обработкой ошибок.
        Возвращает кортеж (данные_ответа, заголовки_ответа) при успехе или вызывает CatalogAPIError.
        """
        endpoint = endpoint.lstrip('/')
        payload: Optional[Union[Dict, List]] = None

        if json_data is not None:
            if isinstance(json_data, BaseModel):
                payload = json_data.model_dump(mode='json', exclude_none=True, by_alias=True)
            elif isinstance(json_data, (dict, list)):
                payload = json_data
            else:
                logger.warning(f"Unsupported json_data type for {method} {endpoint}: {type(json_data)}")
                payload = {}

        if params:
            params = {k: v for k, v in params.items() if v is not None}

        logger.debug(f"Requesting {method} {endpoint} | Params: {params} | Payload: {str(payload)[:300]}")

        try:
            response = await self._client.request(
                method, endpoint, params=params, json=payload, data=data, files=files,
                headers=self._headers_for(endpoint),
            )
            response_headers = response.headers
            response.raise_for_status()

            response_data: Optional[Any] = None
            if response.status_code == 204:
                logger.debug(f"Received 204 No Content for {method} {endpoint}")
                response_data = True
            else:
                content_type = response.headers.get("Content-Type", "")
                if "application/json" in content_type:
                    try:
                        response_data = response.json()
                        logger.debug(f"Received {response.status_code} JSON response for {method} {endpoint}. Body sample: {str(response_data)[:200]}...")
                    except json.JSONDecodeError as json_err:
                        logger.error(f"Failed to decode JSON response for {method} {endpoint}. Status: {response.status_code}. Error: {json_err}. Response text: {response.text[:500]}...")
                        raise CatalogAPIError(f"{endpoint}: некорректный JSON в ответе бэкенда", status_code=response.status_code, details=response.text) from json_err
                elif not response.content:
                    response_data = None
                else:
                    logger.warning(f"Unexpected Content-Type '{content_type}' for {method} {endpoint}. Status: {response.status_code}. Response text: {response.text[:500]}...")
                    response_data = response.text

            return response_data, response_headers

        except httpx.HTTPStatusError as e:
            error_status_code = e.response.status_code
            error_message = extract_error_message(e.response)
            error_details: Any = None
            try:
                error_details = e.response.json()
            except (json.JSONDecodeError, ValueError):
                error_details = e.response.text[:500]
            logger.error(f"Catalog API error: {error_status_code} - {error_message} for {e.request.url}")
            raise CatalogAPIError(
                message=error_message,
                status_code=error_status_code,
                details=error_details
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {e} for {method} {endpoint}")
            raise CatalogAPIError("Превышен таймаут запроса к API каталога", status_code=504) from e
        except httpx.RequestError as e:
            logger.error(f"Network error: {e} for {method} {endpoint}")
            raise CatalogAPIError("Ошибка сети при подключении к API каталога", status_code=502) from e

    # --- Категории и подкатегории ---

    async def get_categories(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-categories/")
        return as_list(data)

    async def get_subcategories(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-subcategories/")
        return as_list(data)

    async def delete_taxonomy(self, kind: str, ids: List[str], confirm: bool) -> Dict:
        """
        Удаление категорий/подкатегорий. Бэкенд может ответить {"confirm": true, "message": ...},
        тогда запрос нужно повторить с confirm=True.
        """
        if kind not in TAXONOMY_KINDS:
            raise ValueError(f"Unknown taxonomy kind: {kind}")
        logger.info(f"Deleting {len(ids)} {kind} (confirm={confirm})")
        try:
            data, _ = await self._request("POST", f"api/delete-{kind}/", json_data={"ids": ids, "confirm": confirm})
        except CatalogAPIError as e:
            # запрос подтверждения иногда приходит с кодом 4xx
            if isinstance(e.details, dict) and e.details.get("confirm"):
                logger.info(f"Backend asks to confirm deleting {kind} (HTTP {e.status_code})")
                return e.details
            raise
        return data if isinstance(data, dict) else {}

    async def update_hidden_status(self, kind: str, ids: List[str], status: str) -> Dict:
        if kind not in TAXONOMY_KINDS:
            raise ValueError(f"Unknown taxonomy kind: {kind}")
        data, _ = await self._request(
            "POST", "api/update_hidden_status/",
            json_data={"ids": ids, "type": kind, "status": status},
        )
        result = data if isinstance(data, dict) else {}
        if not result.get("success"):
            raise CatalogAPIError(result.get("error") or "Не удалось обновить видимость", status_code=400, details=result)
        return result

    # --- Атрибуты подкатегорий ---

    async def get_attributes(self, subcategory_id: Optional[str] = None) -> List[Dict]:
        params = {"subcategory_id": subcategory_id} if subcategory_id else None
        try:
            data, _ = await self._request("GET", "api/show-subcat-attributes/", params=params)
        except CatalogAPIError as e:
            # Для подкатегории без атрибутов бэкенд отвечает 404
            if e.status_code == 404 and subcategory_id:
                return []
            raise
        return as_list(data, "results", "attributes")

    async def get_attributes_for_subcategories(self, subcategory_ids: List[str]) -> Tuple[List[List[Dict]], bool]:
        """
        Загружает библиотеку атрибутов по нескольким подкатегориям параллельно.
        Возвращает (списки по подкатегориям, была_ли_ошибка); упавшие подкатегории дают [].
        """
        results = await asyncio.gather(
            *(self.get_attributes(sub_id) for sub_id in subcategory_ids),
            return_exceptions=True,
        )
        lists: List[List[Dict]] = []
        encountered_error = False
        for sub_id, result in zip(subcategory_ids, results):
            if isinstance(result, CatalogAPIError):
                logger.error(f"Failed to load attribute library for subcategory {sub_id}: {result}")
                encountered_error = True
                lists.append([])
            elif isinstance(result, BaseException):
                raise result
            else:
                lists.append(result)
        return lists, encountered_error

    async def save_attribute(self, payload: Union[Dict, BaseModel]) -> Optional[Any]:
        data, _ = await self._request("POST", "api/save-subcat-attributes/", json_data=payload)
        return data

    async def edit_attribute(self, payload: Union[Dict, BaseModel]) -> Optional[Any]:
        data, _ = await self._request("PUT", "api/edit-subcat-attributes/", json_data=payload)
        return data

    async def delete_attributes(self, ids: List[str]) -> int:
        data, _ = await self._request("POST", "api/delete-subcat-attributes/", json_data={"ids": ids})
        deleted = data.get("deleted") if isinstance(data, dict) else None
        return deleted if isinstance(deleted, int) else 0

    async def sync_product_attributes(self) -> Optional[Any]:
        data, _ = await self._request("POST", "api/sync-product-attributes/", json_data={"sync_all": True})
        return data

    # --- Товары ---

    async def get_products(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-product/")
        return as_list(data)

    async def get_product_section(self, section: str, product_id: str) -> Any:
        endpoint = PRODUCT_SECTIONS[section]
        try:
            data, _ = await self._request("POST", endpoint, json_data={"product_id": product_id})
        except CatalogAPIError as e:
            # У товара без атрибутов раздел attributes отвечает 404
            if e.status_code == 404 and section == "attributes":
                return []
            raise
        return data

    async def get_product_details(self, product_id: str) -> Dict[str, Any]:
        """Собирает карточку товара из всех разделов параллельно."""
        logger.info(f"Fetching product details for ID: {product_id}")
        sections = list(PRODUCT_SECTIONS)
        results = await asyncio.gather(*(self.get_product_section(s, product_id) for s in sections))
        return dict(zip(sections, results))

    async def save_product(self, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("POST", "api/save-product/", json_data=payload)
        return data

    async def edit_product(self, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("POST", "api/edit-product/", json_data=payload)
        return data

    async def delete_products(self, ids: List[str]) -> Optional[Any]:
        data, _ = await self._request("DELETE", "api/delete-product/", json_data={"ids": ids, "confirm": True})
        return data

    async def link_product_subcategory(self, product_id: str, subcategory_id: str) -> Dict:
        data, _ = await self._request(
            "POST", "api/link-product-subcategory/",
            json_data={"product_id": product_id, "subcategory_id": subcategory_id, "replace": False},
        )
        return data if isinstance(data, dict) else {}

    async def unlink_product_subcategory(self, product_id: str, subcategory_ids: List[str]) -> Dict:
        data, _ = await self._request(
            "POST", "api/unlink-product-subcategory/",
            json_data={"product_id": product_id, "subcategory_ids": subcategory_ids},
        )
        return data if isinstance(data, dict) else {}

    async def set_product_thumbnail(self, product_id: str, image_id: str) -> Dict:
        data, _ = await self._request(
            "POST", "api/set-product-thumbnail/",
            json_data={"product_id": product_id, "image_id": image_id},
        )
        result = data if isinstance(data, dict) else {}
        if not result.get("success"):
            raise CatalogAPIError(result.get("error") or "Не удалось назначить миниатюру", status_code=400, details=result)
        return result

    # --- Блог ---

    async def get_blogs(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-all-blogs/", params={"all": 1})
        return as_list(data, "results", "data")

    async def get_blog(self, blog_id: str) -> Optional[Dict]:
        try:
            data, _ = await self._request("GET", "api/show-specific-blog", params={"blog_id": blog_id})
        except CatalogAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return data if isinstance(data, dict) else None

    async def save_blog(self, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("POST", "api/save-blog/", json_data=payload)
        return data

    async def edit_blog(self, blog_id: str, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("PUT", f"api/edit-blog/{blog_id}/", json_data=payload)
        return data

    async def delete_blogs(self, ids: List[str]) -> Optional[Any]:
        data, _ = await self._request("DELETE", "api/delete-blogs/", json_data={"ids": ids})
        return data

    # --- Отзывы ---

    async def get_testimonials(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-testimonials/", params={"all": 1})
        return as_list(data)

    async def save_testimonial(self, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("POST", "api/save-testimonials", json_data=payload)
        return data

    async def edit_testimonial(self, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("PUT", "api/edit-testimonials", json_data=payload)
        return data

    async def delete_testimonial(self, testimonial_id: str) -> Optional[Any]:
        data, _ = await self._request("DELETE", "api/edit-testimonials/", params={"id": testimonial_id})
        return data

    # --- Заявки на обратный звонок ---

    async def get_callbacks(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-all-callback/")
        return as_list(data)

    async def get_callback(self, callback_id: str) -> Optional[Dict]:
        try:
            data, _ = await self._request("GET", "api/show-specific-callback/", params={"id": callback_id})
        except CatalogAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return data if isinstance(data, dict) else None

    async def save_callback(self, payload: Dict) -> Dict:
        data, _ = await self._request("POST", "api/save-callback/", json_data=payload)
        return data if isinstance(data, dict) else {}

    async def edit_callback(self, payload: Dict) -> Dict:
        data, _ = await self._request("POST", "api/edit-callback/", json_data=payload)
        return data if isinstance(data, dict) else {}

    async def delete_callback(self, callback_id: str) -> Optional[Any]:
        data, _ = await self._request("POST", "api/delete-callback/", json_data={"id": callback_id})
        return data

    # --- Уведомления ---

    async def get_notifications(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/notifications/")
        return as_list(data)

    async def update_notification(self, notification_id: str, status: str = "read") -> Optional[Any]:
        data, _ = await self._request(
            "POST", "api/notification-update",
            json_data={"notification_id": notification_id, "status": status},
        )
        return data

    async def mark_notifications_read_batch(self, ids: List[str]) -> Optional[Any]:
        data, _ = await self._request("POST", "api/notifications/mark-read-batch", json_data={"ids": ids})
        return data

    async def edit_product_comment(self, comment_id: str, status: str) -> Optional[Any]:
        data, _ = await self._request(
            "POST", "api/edit-product-comment/",
            json_data={"comment_id": comment_id, "status": status},
        )
        return data

    # --- Медиатека ---

    async def get_images(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-all-images/")
        return as_list(data, "images", "results")

    async def save_image(self, image: str, alt_text: str = "", linked_table: Optional[str] = None) -> Dict:
        """Загружает изображение (base64 data URL) через save-image."""
        payload = {"image": image, "alt_text": alt_text, "linked_table": linked_table}
        data, _ = await self._request("POST", "api/save-image/", json_data={k: v for k, v in payload.items() if v is not None})
        result = data if isinstance(data, dict) else {}
        if not result.get("url"):
            raise CatalogAPIError("Бэкенд не вернул URL изображения", status_code=502, details=data)
        return result

    async def edit_image(self, payload: Dict) -> Optional[Any]:
        data, _ = await self._request("PUT", "api/edit-image/", json_data=payload)
        return data

    async def delete_image(self, image_id: str) -> Optional[Any]:
        data, _ = await self._request("POST", "api/delete-image/", json_data={"image_id": image_id})
        return data

    # --- Администраторы ---

    async def get_admins(self) -> List[Dict]:
        data, _ = await self._request("GET", "api/show-admin/")
        return as_list(data, "admins")
