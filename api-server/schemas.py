from __future__ import annotations

from pydantic import BaseModel, Field


class ProductIn(BaseModel):
    title: str = Field(min_length=1)
    images: list[str] = Field(default_factory=list)
    rating: float = 0
    price: float = Field(ge=0)
    brand: str = Field(min_length=1)
    category: str = Field(min_length=1)


class CustomIn(BaseModel):
    product_ids: list[int] = Field(alias="productIds")
    address: str
    city: str

    model_config = {"populate_by_name": True}


class CustomStatusIn(BaseModel):
    status: str


__all__ = ["ProductIn", "CustomIn", "CustomStatusIn"]
