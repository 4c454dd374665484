from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from db import Connection, Database
from errors import InternalServiceError, NotFoundError, ServiceError
from pricing import PriceRecord
from query_builder import PRODUCT_COLUMNS, PRODUCT_FROM, FilterParams, build_query_plan
from services.lookups import BrandService, CategoryService, LogService, UserService

_LOGGER = logging.getLogger("shopfront.api.products")


class ProductService:
    """Catalog reads (filtered search, lookups) and the audited write path."""

    def __init__(
        self,
        db: Database,
        brands: BrandService,
        categories: CategoryService,
        users: UserService,
        logs: LogService,
    ) -> None:
        self._db = db
        self._brands = brands
        self._categories = categories
        self._users = users
        self._logs = logs

    async def search(self, params: FilterParams) -> dict[str, Any]:
        plan = build_query_plan(params)
        try:
            rows, count_rows = await asyncio.gather(
                self._db.query(plan.data_sql(), plan.values),
                self._db.query(plan.count_sql(), plan.values),
            )
        except Exception as exc:
            _LOGGER.exception(
                "product_search_failed",
                extra={"where": plan.where_clause, "value_count": len(plan.values)},
            )
            raise InternalServiceError() from exc

        total_count = int(count_rows[0]["total_count"]) if count_rows else 0
        return {"rows": [dict(row) for row in rows], "totalCount": total_count}

    async def get_prices_by_ids(self, product_ids: Sequence[int]) -> list[PriceRecord]:
        if not product_ids:
            return []
        try:
            rows = await self._db.query(
                "SELECT price, id FROM product WHERE id = ANY($1)",
                [list(product_ids)],
            )
        except Exception as exc:
            _LOGGER.exception("product_price_lookup_failed", extra={"product_ids": list(product_ids)})
            raise InternalServiceError() from exc
        return [PriceRecord.from_row(row) for row in rows]

    async def get_by_id(self, product_id: int) -> dict[str, Any] | None:
        try:
            rows = await self._db.query(
                f"SELECT {PRODUCT_COLUMNS} FROM {PRODUCT_FROM} WHERE p.id = $1",
                [product_id],
            )
        except Exception as exc:
            _LOGGER.exception("product_lookup_failed", extra={"product_id": product_id})
            raise InternalServiceError() from exc
        if not rows:
            return None
        return dict(rows[0])

    async def create(
        self,
        title: str,
        images: list[str],
        rating: float,
        price: float,
        brand: str,
        category: str,
        user_id: int,
    ) -> dict[str, Any]:
        try:
            brand_id = await self._brands.find_id_by_name(brand)
            category_id = await self._categories.find_id_by_name(category)
            async with self._db.transaction() as tx:
                rows = await tx.query(
                    """
                    INSERT INTO product (title, images, rating, price, brand_id, category_id)
                    VALUES ($1, $2, $3, $4, $5, $6)
                    RETURNING id, title, images, rating, price, brand_id, category_id
                    """,
                    [title, images, rating, price, brand_id, category_id],
                )
                product = dict(rows[0])
                await self._log_change(tx, "add", user_id, product["title"])
        except ServiceError:
            raise
        except Exception as exc:
            _LOGGER.exception("product_create_failed", extra={"title": title, "user_id": user_id})
            raise InternalServiceError() from exc

        return {**product, "brand": brand, "category": category}

    async def update(
        self,
        product_id: int,
        title: str,
        images: list[str],
        rating: float,
        price: float,
        brand: str,
        category: str,
    ) -> dict[str, Any]:
        try:
            brand_id = await self._brands.find_id_by_name(brand)
            category_id = await self._categories.find_id_by_name(category)
            rows = await self._db.query(
                """
                UPDATE product
                SET title = $1, images = $2, rating = $3, price = $4, brand_id = $5, category_id = $6
                WHERE id = $7
                RETURNING id, title, images, rating, price, brand_id, category_id
                """,
                [title, images, rating, price, brand_id, category_id, product_id],
            )
        except ServiceError:
            raise
        except Exception as exc:
            _LOGGER.exception("product_update_failed", extra={"product_id": product_id})
            raise InternalServiceError() from exc

        if not rows:
            raise NotFoundError(f"Unknown product: {product_id}")
        return {**dict(rows[0]), "brand": brand, "category": category}

    async def delete(self, product_id: int, user_id: int) -> dict[str, Any]:
        try:
            async with self._db.transaction() as tx:
                rows = await tx.query(
                    """
                    DELETE FROM product WHERE id = $1
                    RETURNING id, title, images, rating, price, brand_id, category_id
                    """,
                    [product_id],
                )
                if not rows:
                    raise NotFoundError(f"Unknown product: {product_id}")
                product = dict(rows[0])
                await self._log_change(tx, "remove", user_id, product["title"])
        except ServiceError:
            raise
        except Exception as exc:
            _LOGGER.exception("product_delete_failed", extra={"product_id": product_id})
            raise InternalServiceError() from exc

        return product

    async def _log_change(self, tx: Connection, action: str, user_id: int, title: str) -> None:
        # Shares the write transaction: a failed audit entry rolls the change back.
        user = await self._users.get_by_id(user_id, executor=tx)
        if user is None:
            raise NotFoundError(f"Unknown user: {user_id}")
        await self._logs.create_log(action, user["id"], title, executor=tx)


__all__ = ["ProductService"]
