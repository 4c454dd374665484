"""
Shared fixtures: an in-memory stand-in for the query primitive.
"""

import os
import sys
from contextlib import asynccontextmanager
from typing import Any, Callable, Sequence

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from services import build_services


class FakeDatabase:
    """Records every (sql, values) call and answers from registered handlers.

    Handlers are matched by SQL substring in registration order. A handler is a
    list of rows, an exception instance to raise, or a callable(sql, values).
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[Any]]] = []
        self._handlers: list[tuple[str, Any]] = []
        self.transactions: list[str] = []

    def on(self, fragment: str, result: Any) -> "FakeDatabase":
        self._handlers.append((fragment, result))
        return self

    def calls_matching(self, fragment: str) -> list[tuple[str, list[Any]]]:
        return [call for call in self.calls if fragment in call[0]]

    async def query(self, sql: str, values: Sequence[Any] = ()) -> list[Any]:
        self.calls.append((sql, list(values)))
        for fragment, result in self._handlers:
            if fragment not in sql:
                continue
            if isinstance(result, BaseException):
                raise result
            if callable(result):
                return result(sql, list(values))
            return result
        return []

    @asynccontextmanager
    async def transaction(self):
        try:
            yield self
        except BaseException:
            self.transactions.append("rollback")
            raise
        self.transactions.append("commit")

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None


USER_ROW = {"id": 7, "name": "Ana", "email": "ana@example.com", "role": "client"}


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def services(fake_db):
    return build_services(fake_db)
