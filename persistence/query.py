from __future__ import annotations

from typing import Any, Iterable, Mapping

from .records import OrderBy, SelectOptions

_MISSING = object()


def values_equal(left: Any, right: Any) -> bool:
    # bool is subclass of int in Python; JSON keeps them distinct.
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


def matches(record: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    """
    Exact-match AND over every filter key. A record lacking a filtered field never matches.
    """
    for key, expected in filters.items():
        actual = record.get(key, _MISSING)
        if actual is _MISSING or not values_equal(actual, expected):
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    # Numbers before strings before anything else; each group compared naturally.
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, repr(value))


def order_records(records: list[dict[str, Any]], order_by: OrderBy) -> list[dict[str, Any]]:
    """
    Stable sort on one field. Records without the field (or with null) go last either way.
    """
    present = [r for r in records if r.get(order_by.field) is not None]
    absent = [r for r in records if r.get(order_by.field) is None]
    # sorted(reverse=True) keeps ties in their original order, so descending is stable too.
    present = sorted(present, key=lambda r: _sort_key(r[order_by.field]), reverse=not order_by.ascending)
    return present + absent


def run_query(records: Iterable[dict[str, Any]], options: SelectOptions) -> list[dict[str, Any]]:
    """
    Filter, then order, then limit. Returns references into `records`; callers copy.
    """
    results = [r for r in records if matches(r, options.filters)] if options.filters else list(records)
    if options.order_by is not None:
        results = order_records(results, options.order_by)
    if options.limit is not None:
        results = results[: options.limit]
    return results
