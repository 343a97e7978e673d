"""
Filtering, sorting and aggregation over fetched requests.

The store only evaluates equality predicates, so list pages, the dashboard
and reports all narrow and order results here. Every function is pure and
returns a new list.
"""
import calendar
import math
from datetime import datetime, timedelta
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from app.requests.domain.errors import InvalidRequest
from app.requests.domain.models import (
    Department,
    Priority,
    Request,
    RequestPredicates,
    RequestStatus,
)
from app.requests.domain.policy import in_scope

SORT_ASC = "asc"
SORT_DESC = "desc"

DEFAULT_SORT_KEY = "created_at"
DEFAULT_SORT_DIRECTION = SORT_DESC

RECENT_LIMIT = 5

SORTABLE_FIELDS = frozenset(
    {
        "id",
        "created_at",
        "updated_at",
        "restaurant_id",
        "status",
        "priority",
        "department",
        "category",
        "location",
        "assigned_to",
        "estimated_delivery_date",
        "actual_delivery_date",
        "estimated_completion_date",
        "actual_completion_date",
    }
)

# Enumerated fields sort by declaration order, not lexically.
_ENUM_ORDER = {
    "status": [status.value for status in RequestStatus],
    "priority": [priority.value for priority in Priority],
    "department": [department.value for department in Department],
}

_SECONDS_PER_DAY = 24 * 60 * 60


def filter_by_scope(requests: Iterable[Request], scope: str) -> List[Request]:
    return [request for request in requests if in_scope(request, scope)]


def _search_haystack(request: Request) -> List[str]:
    fields = [
        request.id,
        getattr(request, "description", None),
        getattr(request, "location", None),
        request.comments,
    ]
    fields.extend(item.name for item in getattr(request, "items", ()))
    return [value.lower() for value in fields if value]


def filter_by_predicates(
    requests: Iterable[Request], predicates: RequestPredicates
) -> List[Request]:
    result = list(requests)

    if predicates.search_term:
        needle = predicates.search_term.lower()
        result = [
            request
            for request in result
            if any(needle in value for value in _search_haystack(request))
        ]

    if predicates.status:
        result = [request for request in result if request.status == predicates.status]

    if predicates.priority:
        result = [request for request in result if request.priority == predicates.priority]

    if predicates.category:
        result = [request for request in result if request.category == predicates.category]

    # A half-open range is ignored, both bounds are inclusive.
    if predicates.start and predicates.end:
        result = [
            request
            for request in result
            if predicates.start <= request.created_at <= predicates.end
        ]

    return result


def _sort_value(request: Request, key: str):
    value = getattr(request, key, None)
    if value is None:
        return None
    order = _ENUM_ORDER.get(key)
    if order is not None:
        return order.index(value) if value in order else len(order)
    return value


def sort_by(
    requests: Iterable[Request],
    key: str = DEFAULT_SORT_KEY,
    direction: str = DEFAULT_SORT_DIRECTION,
) -> List[Request]:
    """Stable sort on ``key``; missing values count as the smallest."""
    if key not in SORTABLE_FIELDS:
        raise InvalidRequest(f"Tri impossible sur le champ « {key} »")
    if direction not in (SORT_ASC, SORT_DESC):
        raise InvalidRequest("Le sens du tri doit être « asc » ou « desc »")

    def sort_key(request: Request):
        value = _sort_value(request, key)
        return (value is not None, value if value is not None else 0)

    # sorted() keeps ties in input order even with reverse=True.
    return sorted(requests, key=sort_key, reverse=direction == SORT_DESC)


def top_n(requests: Sequence[Request], n: int = RECENT_LIMIT) -> List[Request]:
    return list(requests[: max(0, n)])


def group_count(
    requests: Iterable[Request], key_fn: Callable[[Request], Hashable]
) -> Dict[Hashable, int]:
    counts: Dict[Hashable, int] = {}
    for request in requests:
        key = key_fn(request)
        counts[key] = counts.get(key, 0) + 1
    return counts


def _resolved_at(request: Request) -> Optional[datetime]:
    return getattr(request, "actual_completion_date", None) or getattr(
        request, "actual_delivery_date", None
    )


def average_resolution_days(requests: Iterable[Request]) -> float:
    """Mean of whole days (rounded up) between creation and completion."""
    durations = []
    for request in requests:
        resolved_at = _resolved_at(request)
        if request.status != RequestStatus.COMPLETED or resolved_at is None:
            continue
        elapsed = abs((resolved_at - request.created_at).total_seconds())
        durations.append(math.ceil(elapsed / _SECONDS_PER_DAY))

    if not durations:
        return 0
    return sum(durations) / len(durations)


def _months_back(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def report_window(period: str, now: datetime) -> Tuple[datetime, datetime]:
    """Start and end of a named reporting period ending at ``now``."""
    if period == "day":
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elif period == "week":
        start = now - timedelta(days=7)
    elif period == "month":
        start = _months_back(now, 1)
    elif period == "year":
        start = _months_back(now, 12)
    else:
        raise InvalidRequest(f"Période inconnue : {period}")
    return start, now
