# admin_console/utils/selection.py
from typing import Callable, Iterable, List, Sequence, Tuple, TypeVar, Any

T = TypeVar('T')


def row_id(row: Any) -> str:
    """id строки таблицы: атрибут или ключ словаря."""
    if isinstance(row, dict):
        return str(row.get("id", ""))
    return str(getattr(row, "id", ""))


def toggle_one(selected: Sequence[str], item_id: str) -> List[str]:
    if item_id in selected:
        return [x for x in selected if x != item_id]
    return [*selected, item_id]


def all_selected(visible_ids: Sequence[str], selected: Iterable[str]) -> bool:
    chosen = set(selected)
    return bool(visible_ids) and all(i in chosen for i in visible_ids)


def toggle_all(visible_ids: Sequence[str], selected: Iterable[str]) -> List[str]:
    """Все видимые строки уже выбраны -> снять выбор, иначе выбрать все видимые."""
    return [] if all_selected(visible_ids, selected) else list(visible_ids)


def remove_rows(rows: Sequence[T], deleted_ids: Iterable[str], key: Callable[[T], str] = row_id) -> Tuple[List[T], List[str]]:
    """
    Убирает удалённые строки из списка.
    Возвращает (оставшиеся строки, новый выбор); выбор после удаления всегда пуст.
    """
    gone = {str(i) for i in deleted_ids}
    return [r for r in rows if key(r) not in gone], []
