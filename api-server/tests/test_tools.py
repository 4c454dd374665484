"""
Tests for the MCP tool functions, called directly.
"""

from decimal import Decimal

import pytest
from fastmcp import FastMCP

import tools.context as tools_context
from conftest import USER_ROW
from errors import NotFoundError, UnauthorizedError
from tools.context import get_user_id, reset_user_id, set_user_id
from tools.registry import register_tools


@pytest.fixture
def tools(services):
    return register_tools(FastMCP(name="test"), services)


def test_registered_tool_names(tools):
    assert set(tools) == {
        "search_products",
        "get_product",
        "create_custom_order",
        "list_custom_orders",
        "update_custom_status",
    }


@pytest.mark.asyncio
async def test_search_normalizes_name_lists(tools, fake_db):
    fake_db.on("COUNT(p.id)", [{"total_count": 0}])

    await tools["search_products"](brand=["Acme", " "], category="Shoes", page=2, limit=10)

    (data_sql, values), = fake_db.calls_matching("SELECT p.id")
    assert values == ["Acme", "Shoes"]
    assert data_sql.endswith("LIMIT 10 OFFSET 10")


@pytest.mark.asyncio
async def test_get_product_formats_prices(tools, fake_db):
    fake_db.on("WHERE p.id = $1", [{"id": 3, "title": "Cap", "price": Decimal("12.30"), "rating": None}])

    product = await tools["get_product"](product_id="3")

    assert product == {"id": 3, "title": "Cap", "price": 12.3}
    assert fake_db.calls[0][1] == [3]


@pytest.mark.asyncio
async def test_get_product_unknown(tools):
    with pytest.raises(NotFoundError):
        await tools["get_product"](product_id=1)


@pytest.mark.asyncio
@pytest.mark.parametrize("page, limit", [(-1, 5), (2, -5), (0, 10), (1, 0)])
async def test_search_rejects_page_bounds_below_one(tools, fake_db, page, limit):
    with pytest.raises(ValueError):
        await tools["search_products"](page=page, limit=limit)

    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_search_coerces_numeric_strings(tools, fake_db):
    fake_db.on("COUNT(p.id)", [{"total_count": 0}])

    await tools["search_products"](price_gte="10", price_lte="20.5", page="3", limit="4")

    (data_sql, values), = fake_db.calls_matching("SELECT p.id")
    assert values == [10.0, 20.5]
    assert data_sql.endswith("LIMIT 4 OFFSET 8")


@pytest.mark.asyncio
async def test_search_rejects_non_numeric_price(tools, fake_db):
    with pytest.raises(ValueError):
        await tools["search_products"](price_gte="cheap")

    assert fake_db.calls == []


@pytest.mark.asyncio
async def test_custom_order_needs_user(tools):
    assert get_user_id() is None
    with pytest.raises(UnauthorizedError):
        await tools["create_custom_order"](product_ids=[1], address="a", city="b")


@pytest.mark.asyncio
async def test_custom_order_for_unknown_user(tools, fake_db):
    token = set_user_id(999)
    try:
        with pytest.raises(UnauthorizedError):
            await tools["create_custom_order"](product_ids=[1], address="a", city="b")
    finally:
        reset_user_id(token)

    assert fake_db.calls_matching("INSERT INTO custom") == []


@pytest.mark.asyncio
async def test_status_update_needs_known_user(tools, fake_db):
    token = set_user_id(999)
    try:
        with pytest.raises(UnauthorizedError):
            await tools["update_custom_status"](custom_id=1, status="shipped")
    finally:
        reset_user_id(token)

    assert fake_db.calls_matching("UPDATE custom") == []


@pytest.mark.asyncio
async def test_user_header_from_mcp_transport(tools, fake_db, monkeypatch):
    # Calls over the mounted MCP transport carry identity only in the HTTP headers.
    monkeypatch.setattr(tools_context, "get_http_headers", lambda: {"x-user-id": "7"})
    fake_db.on("FROM users", [USER_ROW])
    fake_db.on("FROM custom", [{"id": 2, "user_id": 7}])

    result = await tools["list_custom_orders"]()

    assert result == {"customs": [{"id": 2, "user_id": 7}], "count": 1}
    (_, values), = fake_db.calls_matching("FROM custom")
    assert values == [7]


@pytest.mark.asyncio
async def test_malformed_user_header_is_unauthorized(tools, monkeypatch):
    monkeypatch.setattr(tools_context, "get_http_headers", lambda: {"x-user-id": "seven"})

    with pytest.raises(UnauthorizedError):
        await tools["list_custom_orders"]()


@pytest.mark.asyncio
async def test_custom_order_coerces_ids(tools, fake_db):
    fake_db.on("FROM users", [{**USER_ROW, "id": 9}])
    fake_db.on("ANY($1)", [{"id": 4, "price": Decimal("1.5")}])
    fake_db.on("INSERT INTO custom", lambda sql, values: [{"id": 1, "user_id": values[0], "total_price": values[5]}])

    token = set_user_id(9)
    try:
        custom = await tools["create_custom_order"](product_ids=["4", 4], address="a", city="b")
    finally:
        reset_user_id(token)

    assert custom == {"id": 1, "user_id": 9, "total_price": 3.0}
    (_, lookup_values), = fake_db.calls_matching("ANY($1)")
    assert lookup_values == [[4]]


@pytest.mark.asyncio
async def test_custom_order_rejects_bad_ids(tools, fake_db):
    fake_db.on("FROM users", [{**USER_ROW, "id": 9}])

    token = set_user_id(9)
    try:
        with pytest.raises(ValueError):
            await tools["create_custom_order"](product_ids=["four"], address="a", city="b")
        with pytest.raises(TypeError):
            await tools["create_custom_order"](product_ids="4", address="a", city="b")
    finally:
        reset_user_id(token)
