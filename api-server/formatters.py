from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

_ARRAY_KEY_HINTS = {
    "rows",
    "images",
    "product_ids",
    "customs",
    "results",
}


class _OmitType:
    pass


_OMIT = _OmitType()


def _to_plain(value: Any) -> Any:
    if value is None:
        return None

    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)

    if isinstance(value, Mapping):
        return dict(value)

    # asyncpg.Record exposes items() but is not a Mapping
    if hasattr(value, "items") and callable(value.items):
        return dict(value.items())

    if isinstance(value, (set, tuple)):
        return list(value)

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    return value


def _normalize(value: Any, key: str | None, array_keys: set[str]) -> Any:
    value = _to_plain(value)

    if value is None:
        if key and key in array_keys:
            return []
        return _OMIT

    if isinstance(value, Mapping):
        output: dict[str, Any] = {}
        for child_key, child_value in value.items():
            normalized = _normalize(child_value, str(child_key), array_keys)
            if normalized is _OMIT:
                continue
            output[str(child_key)] = normalized
        return output

    if isinstance(value, list):
        normalized_list = []
        for item in value:
            normalized_item = _normalize(item, None, array_keys)
            if normalized_item is _OMIT:
                continue
            normalized_list.append(normalized_item)
        return normalized_list

    if isinstance(value, Decimal):
        return float(value)

    return value


def format_payload(payload: Any, array_keys: set[str] | None = None) -> Any:
    """Normalizes service results for JSON responses.

    Invariants:
    - numeric columns (Decimal) become floats
    - dates and times are ISO strings
    - keys with None values are omitted
    - array-like keys are never null
    """

    merged_array_keys = set(_ARRAY_KEY_HINTS)
    if array_keys:
        merged_array_keys.update(array_keys)

    normalized = _normalize(payload, None, merged_array_keys)
    return {} if normalized is _OMIT else normalized


__all__ = ["format_payload"]
