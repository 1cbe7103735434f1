"""Ordering of sibling items as the qTest UI shows them.

qTest does not guarantee an ``order`` field on every object type, so siblings
are sorted by the first of these that every item carries as a number:

    order -> pid (position) -> id

and otherwise by case-sensitive name.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

ORDER_FIELDS = ("order", "pid", "id")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def ordering_field(items: List[Dict[str, Any]]) -> Optional[str]:
    """The field the items will be sorted by, ``None`` meaning by name."""
    for name in ORDER_FIELDS:
        if all(_is_number(item.get(name)) for item in items):
            return name
    return None


def sort_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = list(items)
    if not out:
        return out
    key = ordering_field(out)
    if key is not None:
        return sorted(out, key=lambda item: item[key])
    return sorted(out, key=lambda item: str(item.get("name") or ""))
