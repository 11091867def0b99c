# admin_console/utils/dates.py
from datetime import datetime, timezone
from typing import Any, Optional


def parse_iso(value: Any) -> Optional[datetime]:
    """ISO-строка бэкенда -> aware datetime (без зоны считаем UTC). Мусор -> None."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
