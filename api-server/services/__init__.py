from __future__ import annotations

from dataclasses import dataclass

from db import Database
from services.customs import CustomOrderService
from services.lookups import BrandService, CategoryService, LogService, UserService
from services.products import ProductService


@dataclass(frozen=True)
class Services:
    products: ProductService
    customs: CustomOrderService
    users: UserService


def build_services(db: Database) -> Services:
    users = UserService(db)
    products = ProductService(
        db,
        brands=BrandService(db),
        categories=CategoryService(db),
        users=users,
        logs=LogService(db),
    )
    return Services(
        products=products,
        customs=CustomOrderService(db, products),
        users=users,
    )


__all__ = ["Services", "build_services"]
