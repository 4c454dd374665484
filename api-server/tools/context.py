from __future__ import annotations

from contextvars import ContextVar, Token

from fastmcp.server.dependencies import get_http_headers

from errors import UnauthorizedError

_user_id_var: ContextVar[int | None] = ContextVar("user_id", default=None)

USER_ID_HEADER = "x-user-id"


def set_user_id(user_id: int | None) -> Token:
    return _user_id_var.set(user_id)


def reset_user_id(token: Token) -> None:
    _user_id_var.reset(token)


def get_user_id() -> int | None:
    user_id = _user_id_var.get()
    if user_id is not None:
        return user_id
    # Calls arriving over the MCP transport carry the header on the HTTP request.
    raw = get_http_headers().get(USER_ID_HEADER)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise UnauthorizedError() from None


def require_user_id() -> int:
    user_id = get_user_id()
    if user_id is None:
        raise UnauthorizedError()
    return user_id


__all__ = ["set_user_id", "reset_user_id", "get_user_id", "require_user_id", "USER_ID_HEADER"]
