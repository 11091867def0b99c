# admin_console/utils/media.py
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

_RISKY_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\[\]]')
_TAG_RE = re.compile(r'<[^>]*>')
_BLOCK_CLOSE_RE = re.compile(r'</(p|div|br|li|h[1-6])>', re.IGNORECASE)
_WS_RE = re.compile(r'\s+')


def absolute_media_url(url: Optional[str], base_url: str) -> Optional[str]:
    """
    Приводит ссылку на изображение к абсолютному виду.
    "/media/x.png" и "media/x.png" склеиваются с базовым URL бэкенда,
    абсолютные http(s)-ссылки и data URL возвращаются как есть.
    """
    if not url:
        return None
    url = str(url).strip()
    if not url:
        return None
    lowered = url.lower()
    if lowered.startswith(("http://", "https://", "data:")):
        return url
    base = base_url.rstrip('/')
    return f"{base}/{url.lstrip('/')}"


def is_api_path(url: str, base_url: str) -> bool:
    """True, если ссылка указывает на /api/ бэкенда (туда прикрепляется ключ)."""
    try:
        path = urlparse(urljoin(base_url.rstrip('/') + '/', url)).path
    except ValueError:
        return False
    return path.startswith('/api/')


def is_data_url(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.startswith("data:image/")


def is_http_url(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(re.match(r'^https?://', value, re.IGNORECASE))


def png_download_name(alt: Optional[str], max_length: int = 80) -> str:
    """Имя файла для скачивания: AltText.png без опасных символов."""
    base = _RISKY_FILENAME_CHARS.sub('', alt or 'image')
    base = _WS_RE.sub(' ', base).strip()[:max_length].strip()
    return f"{base or 'image'}.png"


def strip_html(html: Optional[str]) -> str:
    """Грубое HTML -> текст, для описаний опций и проверки обязательных полей."""
    text = _BLOCK_CLOSE_RE.sub(' ', html or '')
    text = _TAG_RE.sub(' ', text)
    text = (text.replace('&nbsp;', ' ').replace('&lt;', '<')
                .replace('&gt;', '>').replace('&amp;', '&'))
    return _WS_RE.sub(' ', text).strip()


def slugify(name: Optional[str]) -> str:
    slug = _WS_RE.sub('-', (name or '').strip().lower())
    return re.sub(r'[^a-z0-9-]', '', slug)
