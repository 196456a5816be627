from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

SKU_PATTERN = r"^[a-z]+-[a-z]+-[a-z]+$"


class ProductNotFoundError(LookupError):
    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class ProductIn(BaseModel):
    """Request body for creating or replacing a product."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=3, max_length=50)
    description: str = ""
    price: float = Field(gt=0)
    sku: str = Field(pattern=SKU_PATTERN)


class Product(BaseModel):
    """Catalog item; `price` is denominated in the catalog base currency."""

    id: int = Field(ge=1)
    name: str = Field(min_length=3, max_length=50)
    description: str = ""
    price: float = Field(gt=0)
    sku: str = Field(pattern=SKU_PATTERN)
    created_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), exclude=True)
    updated_on: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), exclude=True)


__all__ = ["Product", "ProductIn", "ProductNotFoundError", "SKU_PATTERN"]
