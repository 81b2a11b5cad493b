"""Loosely-typed upstream JSON to canonical fields, via key fallback chains."""
from datetime import datetime, timezone
from typing import Any

_MISSING = object()


def _lookup(item: Any, path: str) -> Any:
    value = item
    for key in path.split("."):
        if not isinstance(value, dict):
            return _MISSING
        value = value.get(key, _MISSING)
        if value is _MISSING:
            return _MISSING
    return value


def first_present(item: Any, *paths: str, default: Any = None) -> Any:
    """
    Return the first non-empty value among dotted key paths.

    >>> first_present({"poster": {"medium": "m.jpg"}}, "coverImage", "poster.large", "poster.medium")
    'm.jpg'
    """
    for path in paths:
        value = _lookup(item, path)
        if value is _MISSING or value is None or value == "":
            continue
        return value
    return default


def to_float(value: Any, default: float | None = None) -> float | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_str(value: Any, default: str | None = None) -> str | None:
    if value is None:
        return default
    return str(value)


def epoch_to_display(seconds: Any) -> tuple[int | None, str]:
    """Unix seconds -> (epoch milliseconds, ISO date) for lastUpdated fields."""
    value = to_float(seconds)
    if not value:
        return None, ""
    moment = datetime.fromtimestamp(value, tz=timezone.utc)
    return int(value * 1000), moment.date().isoformat()


def iso_to_display(value: Any) -> tuple[int | None, str]:
    if not value:
        return None, ""
    try:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None, str(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000), moment.date().isoformat()
