from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Sequence


@dataclass(frozen=True)
class PriceRecord:
    id: Any
    price: Any

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PriceRecord":
        return cls(id=row["id"], price=row["price"])


def _id_key(value: Any) -> Decimal | None:
    # "3", 3 and 3.0 name the same product; anything non-numeric matches nothing.
    if value is None or isinstance(value, bool):
        return None
    try:
        key = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not key.is_finite():
        return None
    return key


def total_price(requested_ids: Sequence[Any], records: Iterable[PriceRecord]) -> Any:
    """Sums the price of every requested id.

    Duplicate ids are counted once per occurrence. Ids without a record, and
    records without a price, contribute 0.
    """
    prices: dict[Decimal, Any] = {}
    for record in records:
        key = _id_key(record.id)
        if key is not None:
            prices.setdefault(key, record.price)

    total: Any = 0
    for requested_id in requested_ids:
        key = _id_key(requested_id)
        price = prices.get(key) if key is not None else None
        total += price or 0
    return total


__all__ = ["PriceRecord", "total_price"]
