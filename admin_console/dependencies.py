# admin_console/dependencies.py
import hmac
import logging
from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from admin_console.core.config import settings
from admin_console.services.catalog_api import CatalogAPIService

logger = logging.getLogger(__name__)

# Консоль присылает ключ администратора в X-Admin-API-Key
admin_key_header = APIKeyHeader(name="X-Admin-API-Key", auto_error=False)


async def verify_admin_api_key(api_key: str = Security(admin_key_header)):
    """
    Пускает к /admin/... только запросы консоли.
    Без ADMIN_API_KEY в настройках все админские эндпоинты отвечают 503.
    """
    expected = settings.ADMIN_API_KEY
    if not expected:
        logger.critical("ADMIN_API_KEY is empty, rejecting console request.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Админ-консоль не настроена на сервере."
        )
    if not api_key or not hmac.compare_digest(api_key.encode(), expected.encode()):
        logger.warning("Console request with a wrong or missing admin key.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Неверный ключ администратора."
        )
    return True


async def get_catalog_service(request: Request) -> CatalogAPIService:
    service = getattr(request.app.state, 'catalog_service', None)
    if not isinstance(service, CatalogAPIService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Сервис каталога недоступен."
        )
    return service
