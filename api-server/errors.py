from __future__ import annotations


class ServiceError(RuntimeError):
    pass


class InternalServiceError(ServiceError):
    """Storage failure surfaced to callers without the query detail."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


class NotFoundError(ServiceError):
    pass


class UnauthorizedError(ServiceError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


__all__ = ["ServiceError", "InternalServiceError", "NotFoundError", "UnauthorizedError"]
