# admin_console/services/access_guard.py
import logging
from typing import Iterable, List, Optional, Sequence, Set

from admin_console.models.session import AdminAccount, SessionCheckRequest, SessionCheckResponse
from admin_console.services.catalog_api import CatalogAPIService, CatalogAPIError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"

# Подписи страниц из access_pages -> путь в консоли
LABEL_TO_PATH = {
    "Dashboard": "/admin/dashboard",
    "Products Section": "/admin/products",
    "Blog View": "/admin/blogView",
    "Blog": "/admin/blogView",
    "Settings": "/admin/settings",
    "First Carousel": "/admin/first-carousel",
    "Media Library": "/admin/media-library",
    "Notifications": "/admin/notifications",
    "Testimonials": "/admin/testimonials",
    "Second Carousel": "/admin/second-carousel",
    "Hero Banner": "/admin/hero-banner",
    "Manage Categories": "/admin/manage-categories",
    "Orders": "/admin/orders",
    "Inventory": "/admin/inventory",
    "Google Settings": "/admin/G-Settings",
    "Google Analytics": "/admin/G-Analytics",
    "New Account": "/admin/new-account",
    "Navbar": "/admin/navbar",
    "Attributes": "/admin/attributes",
    "Event Call Back": "/admin/event-callback",
    "Recently Deleted": "/admin/recently-deleted",
    "User View": "/home",
}
_LABEL_TO_PATH_LOWER = {label.lower(): path for label, path in LABEL_TO_PATH.items()}


def normalize_path(path: Optional[str]) -> str:
    if not path:
        return "/"
    return path.rstrip("/") or "/"


def is_allowed_path(path: str, allowed_prefixes: Iterable[str]) -> bool:
    """Путь разрешён, если совпадает с префиксом или вложен в него."""
    current = normalize_path(path)
    for prefix in allowed_prefixes:
        base = normalize_path(prefix)
        if current == base or current.startswith(base + "/"):
            return True
    return False


def normalize_permissions(perms: Optional[Sequence[str]]) -> List[str]:
    """Та же нормализация, что и в боковом меню: «Blog View» сворачивается в «Blog»."""
    seen = dict.fromkeys((p or "").strip() for p in (perms or []))
    if "Blog" in seen:
        seen["Blog View"] = None
    return [p for p in seen if p != "Blog View"]


def same_set_ci(a: Iterable[str], b: Iterable[str]) -> bool:
    return {x.strip().lower() for x in a} == {x.strip().lower() for x in b}


def resolve_allowed_paths(labels: Iterable[str]) -> Set[str]:
    allowed: Set[str] = set()
    for raw in labels:
        key = str(raw or "").strip().lower()
        if not key:
            continue
        path = _LABEL_TO_PATH_LOWER.get(key)
        if path:
            allowed.add(path)
        if key in ("blog", "blog view"):
            allowed.update({"/admin/blog", "/admin/blogView"})
    return allowed


async def revalidate(service: CatalogAPIService, admin_id: Optional[str], local_perms: Sequence[str]) -> Optional[str]:
    """
    Сверяет локальную сессию с show-admin.
    Возвращает причину разлогина или None, если сессия в порядке.
    Временные ошибки бэкенда сессию не ломают.
    """
    if not admin_id:
        return "no_session"
    try:
        rows = await service.get_admins()
    except CatalogAPIError as e:
        logger.warning(f"Admin revalidation skipped, catalog backend error: {e.message}")
        return None

    me = next((r for r in rows if isinstance(r, dict) and str(r.get("admin_id")) == str(admin_id)), None)
    if me is None:
        logger.info(f"Admin {admin_id} no longer exists, session revoked.")
        return "deleted"

    account = AdminAccount(
        admin_id=str(me.get("admin_id")),
        admin_name=me.get("admin_name") or "",
        access_pages=[str(p) for p in (me.get("access_pages") or [])],
    )
    if not same_set_ci(normalize_permissions(local_perms), normalize_permissions(account.access_pages)):
        logger.info(f"Permissions changed for admin {admin_id}, session revoked.")
        return "permissions_changed"
    return None


async def check_session(service: CatalogAPIService, request: SessionCheckRequest) -> SessionCheckResponse:
    if normalize_path(request.path) == LOGIN_PATH:
        return SessionCheckResponse(authorized=True)

    reason = await revalidate(service, request.admin_id, request.access_pages)
    if reason:
        return SessionCheckResponse(authorized=False, reason=reason, redirect_to=LOGIN_PATH)

    allowed = sorted(resolve_allowed_paths(request.access_pages))
    if not allowed:
        return SessionCheckResponse(authorized=False, reason="no_pages", redirect_to=LOGIN_PATH)
    if not is_allowed_path(request.path, allowed):
        return SessionCheckResponse(authorized=False, reason="forbidden", redirect_to=LOGIN_PATH, allowed_paths=allowed)
    return SessionCheckResponse(authorized=True, allowed_paths=allowed)
