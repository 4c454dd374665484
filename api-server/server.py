from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastmcp import FastMCP

from config import Settings, configure_logging
from db import Database
from errors import InternalServiceError, NotFoundError, UnauthorizedError
from formatters import format_payload
from query_builder import FilterParams
from schemas import CustomIn, CustomStatusIn, ProductIn
from services import Services, build_services
from tools import register_tools
from tools.context import reset_user_id, set_user_id

load_dotenv()

_LOGGER = logging.getLogger("shopfront.api.server")

router = APIRouter()


def get_services(request: Request) -> Services:
    return request.app.state.services


async def current_user(
    x_user_id: int | None = Header(default=None),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    # Identity is issued upstream; this only checks the user still exists.
    if x_user_id is None:
        raise UnauthorizedError()
    user = await services.users.get_by_id(x_user_id)
    if user is None:
        raise UnauthorizedError()
    return user


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    return {
        "ok": True,
        "service": "shopfront-api",
        "db_ready": bool(getattr(request.app.state, "db_ready", False)),
        "tools": sorted(request.app.state.tool_invokers),
        "db_error": getattr(request.app.state, "db_error", ""),
    }


@router.get("/products")
async def search_products(
    q: str | None = Query(default=None),
    brand: list[str] | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    price_gte: float | None = Query(default=None),
    price_lte: float | None = Query(default=None),
    page: int | None = Query(default=None, ge=1),
    limit: int | None = Query(default=None, ge=1),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    params = FilterParams(
        q=q,
        brand=brand,
        category=category,
        price_gte=price_gte,
        price_lte=price_lte,
        page=page,
        limit=limit,
    )
    return format_payload(await services.products.search(params))


@router.get("/products/{product_id}")
async def get_product(product_id: int, services: Services = Depends(get_services)) -> dict[str, Any]:
    product = await services.products.get_by_id(product_id)
    if product is None:
        raise NotFoundError(f"Unknown product: {product_id}")
    return format_payload(product)


@router.post("/products", status_code=201)
async def create_product(
    body: ProductIn,
    user: dict[str, Any] = Depends(current_user),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    product = await services.products.create(
        title=body.title,
        images=body.images,
        rating=body.rating,
        price=body.price,
        brand=body.brand,
        category=body.category,
        user_id=user["id"],
    )
    return format_payload(product)


@router.put("/products/{product_id}")
async def update_product(
    product_id: int,
    body: ProductIn,
    _user: dict[str, Any] = Depends(current_user),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    product = await services.products.update(
        product_id,
        title=body.title,
        images=body.images,
        rating=body.rating,
        price=body.price,
        brand=body.brand,
        category=body.category,
    )
    return format_payload(product)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: int,
    user: dict[str, Any] = Depends(current_user),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return format_payload(await services.products.delete(product_id, user["id"]))


@router.post("/customs")
async def create_custom(
    body: CustomIn,
    user: dict[str, Any] = Depends(current_user),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    custom = await services.customs.create(
        user_id=user["id"],
        product_ids=body.product_ids,
        address=body.address,
        city=body.city,
    )
    return format_payload(custom)


@router.get("/customs")
async def list_customs(
    user: dict[str, Any] = Depends(current_user),
    services: Services = Depends(get_services),
) -> list[dict[str, Any]]:
    return format_payload(await services.customs.list_by_user(user["id"]))


@router.patch("/customs/{custom_id}/status")
async def update_custom_status(
    custom_id: int,
    body: CustomStatusIn,
    _user: dict[str, Any] = Depends(current_user),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    return format_payload(await services.customs.update_status(custom_id, body.status))


@router.post("/mcp/tool/{tool}")
async def invoke_tool(
    tool: str,
    request: Request,
    x_user_id: int | None = Header(default=None),
) -> dict[str, Any]:
    invoker = request.app.state.tool_invokers.get(tool)
    if not invoker:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool}")

    payload = await request.json() if request.headers.get("content-type", "").startswith("application/json") else {}
    if not isinstance(payload, dict):
        payload = {}

    arguments = payload.get("arguments", payload)
    if not isinstance(arguments, dict):
        raise HTTPException(status_code=400, detail="Tool arguments must be a JSON object")

    token = set_user_id(x_user_id)
    try:
        result = await invoker(**arguments)
        if isinstance(result, dict):
            return result
        return {"results": result}
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        reset_user_id(token)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InternalServiceError)
    async def _internal(_request: Request, exc: InternalServiceError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"message": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(UnauthorizedError)
    async def _unauthorized(_request: Request, exc: UnauthorizedError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"error": str(exc)})


def create_app(database: Database | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    database = database or Database.from_settings(settings)
    services = build_services(database)

    mcp = FastMCP(name="shopfront-api")
    tool_invokers = register_tools(mcp, services) if settings.mcp_tools_enabled else {}
    mcp_app = mcp.http_app(path="/sse", transport="streamable-http")

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        # The streamable transport needs its own lifespan for the session manager.
        async with mcp_app.lifespan(mcp_app):
            db_ready = False
            db_error = ""
            try:
                await database.connect()
                db_ready = True
            except Exception as exc:
                _LOGGER.error("database_connect_failed", extra={"error": str(exc)})
                db_error = str(exc)
            _app.state.db_ready = db_ready
            _app.state.db_error = db_error
            try:
                yield
            finally:
                if db_ready:
                    await database.close()

    app = FastAPI(title="Shopfront API", lifespan=lifespan)
    app.state.services = services
    app.state.tool_invokers = tool_invokers
    _register_error_handlers(app)
    app.include_router(router)
    app.mount("/mcp", mcp_app)
    return app


app = create_app()


__all__ = ["app", "create_app"]
