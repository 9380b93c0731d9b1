# In-memory filtering for the request and user lists.
from typing import Any, Dict, Iterable, List

from models import RequestStatus

ALL_TAB = "all"


def _text(value) -> str:
    return str(value).lower() if value is not None else ""


def _embedded(row: Dict[str, Any], relation: str, field: str) -> str:
    related = row.get(relation) or {}
    return _text(related.get(field))


def filter_requests(requests: Iterable[Dict[str, Any]], query: str = "", tab: str = ALL_TAB) -> List[Dict[str, Any]]:
    """
    Narrow a list of scrap_requests rows.

    Matches `query` case-insensitively against the item name, requester name,
    requester phone and request id, then keeps only rows whose status equals
    `tab` unless `tab` is "all".
    """
    filtered = list(requests)

    if query:
        q = query.lower()
        filtered = [
            request for request in filtered
            if q in _embedded(request, "scrap_items", "name")
            or q in _embedded(request, "profiles", "name")
            or q in _embedded(request, "profiles", "phone")
            or q in _text(request.get("id"))
        ]

    tab = tab.value if isinstance(tab, RequestStatus) else tab
    if tab and tab != ALL_TAB:
        filtered = [request for request in filtered if request.get("status") == tab]

    return filtered


def filter_users(users: Iterable[Dict[str, Any]], query: str = "") -> List[Dict[str, Any]]:
    users = list(users)
    if not query:
        return users
    q = query.lower()
    return [
        user for user in users
        if q in _text(user.get("name")) or q in _text(user.get("email")) or q in _text(user.get("phone"))
    ]


def count_by_status(rows: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    counts = {status.value: 0 for status in RequestStatus}
    total = 0
    for row in rows:
        total += 1
        status = row.get("status")
        if status in counts:
            counts[status] += 1
    counts["total"] = total
    return counts
