from __future__ import annotations

import logging
from typing import Any

from db import Connection, Database
from errors import NotFoundError

_LOGGER = logging.getLogger("shopfront.api.lookups")

Executor = Database | Connection


class BrandService:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def find_id_by_name(self, name: str) -> int:
        rows = await self._db.query("SELECT id FROM brand WHERE name = $1", [name])
        if not rows:
            raise NotFoundError(f"Unknown brand: {name}")
        return int(rows[0]["id"])


class CategoryService:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def find_id_by_name(self, name: str) -> int:
        rows = await self._db.query("SELECT id FROM category WHERE name = $1", [name])
        if not rows:
            raise NotFoundError(f"Unknown category: {name}")
        return int(rows[0]["id"])


class UserService:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_by_id(self, user_id: int, executor: Executor | None = None) -> dict[str, Any] | None:
        rows = await (executor or self._db).query(
            "SELECT id, name, email, role FROM users WHERE id = $1",
            [user_id],
        )
        if not rows:
            return None
        return dict(rows[0])


class LogService:
    """Audit trail for catalog changes."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def create_log(
        self, action: str, user_id: int, product_title: str, executor: Executor | None = None
    ) -> None:
        await (executor or self._db).query(
            "INSERT INTO log (action, user_id, product_title) VALUES ($1, $2, $3)",
            [action, user_id, product_title],
        )
        _LOGGER.info(
            "catalog_change",
            extra={"action": action, "user_id": user_id, "product_title": product_title},
        )


__all__ = ["BrandService", "CategoryService", "UserService", "LogService"]
