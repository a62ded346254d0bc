import json
from datetime import datetime

from pydantic import BaseModel, field_validator

from storefront.schemas.inventory import InventoryOut


class SizeSpec(BaseModel):
    name: str
    stock: int = 0


class ColorSpec(BaseModel):
    name: str
    code: str = ""


class ProductCreate(BaseModel):
    name: str = ""
    description: str = ""
    category: str = ""
    price: float = 0.0
    original_price: float = 0.0
    currency: str = "USD"  # currency of price/original_price in this request
    weight: float = 0.0
    images: list[str] = []
    sizes: list[SizeSpec] = []
    colors: list[ColorSpec] = []
    is_new: bool = False
    is_featured: bool = False


class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    category: str | None = None
    price: float | None = None
    original_price: float | None = None
    currency: str = "USD"
    weight: float | None = None
    images: list[str] | None = None
    sizes: list[SizeSpec] | None = None
    colors: list[ColorSpec] | None = None
    is_new: bool | None = None
    is_featured: bool | None = None


class ProductOut(BaseModel):
    id: str
    name: str
    description: str
    category: str
    price: float
    original_price: float
    currency: str = "USD"
    weight: float
    images: list[str] = []
    sizes: list[SizeSpec] = []
    colors: list[ColorSpec] = []
    is_new: bool
    is_featured: bool
    display_order: int
    stock: int
    inventory: list[InventoryOut] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("images", "sizes", "colors", mode="before")
    @classmethod
    def parse_json(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v
