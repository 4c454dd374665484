from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from fastmcp import FastMCP

from errors import NotFoundError, UnauthorizedError
from formatters import format_payload
from query_builder import FilterParams
from services import Services
from tools.context import require_user_id

ToolInvoker = Callable[..., Awaitable[dict[str, Any] | list[dict[str, Any]]]]

_LOGGER = logging.getLogger("shopfront.api.tools")


def _as_names(value: Any) -> str | list[str] | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value if str(item).strip()]
    text = str(value)
    return text if text.strip() else None


def _as_int_list(values: Any) -> list[int]:
    if not isinstance(values, (list, tuple)):
        raise TypeError("product_ids must be a list of product ids")
    return [int(value) for value in values]


def _as_price(value: Any, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    return float(value)


def _as_page_bound(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive integer")
    bound = int(value)
    if bound < 1:
        raise ValueError(f"{name} must be at least 1")
    return bound


def register_tools(mcp: FastMCP, services: Services) -> dict[str, ToolInvoker]:
    async def _acting_user_id() -> int:
        user_id = require_user_id()
        if await services.users.get_by_id(user_id) is None:
            raise UnauthorizedError()
        return user_id

    async def _search_products(
        q: str | None = None,
        brand: str | list[str] | None = None,
        category: str | list[str] | None = None,
        price_gte: float | None = None,
        price_lte: float | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params = FilterParams(
            q=q,
            brand=_as_names(brand),
            category=_as_names(category),
            price_gte=_as_price(price_gte, "price_gte"),
            price_lte=_as_price(price_lte, "price_lte"),
            page=_as_page_bound(page, "page"),
            limit=_as_page_bound(limit, "limit"),
        )
        result = await services.products.search(params)
        _LOGGER.info(
            "search_products",
            extra={"q": q, "row_count": len(result["rows"]), "total_count": result["totalCount"]},
        )
        return format_payload(result)

    async def _get_product(product_id: int) -> dict[str, Any]:
        product = await services.products.get_by_id(int(product_id))
        if product is None:
            raise NotFoundError(f"Unknown product: {product_id}")
        return format_payload(product)

    async def _create_custom_order(product_ids: list[int], address: str, city: str) -> dict[str, Any]:
        custom = await services.customs.create(
            user_id=await _acting_user_id(),
            product_ids=_as_int_list(product_ids),
            address=address,
            city=city,
        )
        return format_payload(custom)

    async def _list_custom_orders() -> dict[str, Any]:
        customs = await services.customs.list_by_user(await _acting_user_id())
        return format_payload({"customs": customs, "count": len(customs)})

    async def _update_custom_status(custom_id: int, status: str) -> dict[str, Any]:
        await _acting_user_id()
        custom = await services.customs.update_status(int(custom_id), str(status))
        return format_payload(custom)

    mcp.tool(
        name="search_products",
        description="Filter the catalog by text, brand, category and price range. page + limit paginate.",
    )(_search_products)
    mcp.tool(name="get_product", description="Get one product by id.")(_get_product)
    mcp.tool(
        name="create_custom_order",
        description="Price a bundle of product ids (duplicates count) and save it as a custom order.",
    )(_create_custom_order)
    mcp.tool(name="list_custom_orders", description="List the caller's custom orders.")(_list_custom_orders)
    mcp.tool(name="update_custom_status", description="Set the status of a custom order.")(
        _update_custom_status
    )

    tool_map: dict[str, ToolInvoker] = {
        "search_products": _search_products,
        "get_product": _get_product,
        "create_custom_order": _create_custom_order,
        "list_custom_orders": _list_custom_orders,
        "update_custom_status": _update_custom_status,
    }
    return tool_map


__all__ = ["register_tools", "ToolInvoker"]
