from __future__ import annotations

import logging
from typing import Any, Sequence

from db import Database
from errors import InternalServiceError, NotFoundError, ServiceError
from pricing import total_price
from services.products import ProductService

_LOGGER = logging.getLogger("shopfront.api.customs")

INITIAL_STATUS = "created"
_CUSTOM_COLUMNS = "id, user_id, product_ids, address, city, status, total_price"


class CustomOrderService:
    """Build-to-order bundles priced from the current catalog."""

    def __init__(self, db: Database, products: ProductService) -> None:
        self._db = db
        self._products = products

    async def create(
        self,
        user_id: int,
        product_ids: Sequence[int],
        address: str,
        city: str,
    ) -> dict[str, Any]:
        requested = list(product_ids)
        try:
            records = await self._products.get_prices_by_ids(list(dict.fromkeys(requested)))
            total = total_price(requested, records)
            rows = await self._db.query(
                f"""
                INSERT INTO custom (user_id, product_ids, address, city, status, total_price)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {_CUSTOM_COLUMNS}
                """,
                [user_id, requested, address, city, INITIAL_STATUS, total],
            )
        except ServiceError:
            raise
        except Exception as exc:
            _LOGGER.exception("custom_create_failed", extra={"user_id": user_id})
            raise InternalServiceError() from exc

        custom = dict(rows[0])
        _LOGGER.info(
            "custom_created",
            extra={"custom_id": custom.get("id"), "user_id": user_id, "item_count": len(requested)},
        )
        return custom

    async def list_by_user(self, user_id: int) -> list[dict[str, Any]]:
        try:
            rows = await self._db.query(
                f"SELECT {_CUSTOM_COLUMNS} FROM custom WHERE user_id = $1 ORDER BY id",
                [user_id],
            )
        except Exception as exc:
            _LOGGER.exception("custom_list_failed", extra={"user_id": user_id})
            raise InternalServiceError() from exc
        return [dict(row) for row in rows]

    async def update_status(self, custom_id: int, status: str) -> dict[str, Any]:
        # Any status string is accepted; transitions are the caller's concern.
        try:
            rows = await self._db.query(
                f"UPDATE custom SET status = $1 WHERE id = $2 RETURNING {_CUSTOM_COLUMNS}",
                [status, custom_id],
            )
        except Exception as exc:
            _LOGGER.exception("custom_status_update_failed", extra={"custom_id": custom_id})
            raise InternalServiceError() from exc
        if not rows:
            raise NotFoundError(f"Unknown custom order: {custom_id}")
        return dict(rows[0])


__all__ = ["CustomOrderService", "INITIAL_STATUS"]
