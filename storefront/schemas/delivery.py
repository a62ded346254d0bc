import json
from datetime import datetime

from pydantic import BaseModel, field_validator

from storefront.models.delivery_company import PriceCalculation


class Credentials(BaseModel):
    login: str = ""
    password: str = ""
    api_key: str = ""
    database: str = ""


class DeliveryCompanyCreate(BaseModel):
    name: str
    code: str
    api_url: str
    credentials: Credentials = Credentials()
    is_active: bool = True
    supported_regions: list[str] = []
    price_calculation: PriceCalculation = PriceCalculation.FIXED
    base_price: float = 0.0


class DeliveryCompanyUpdate(BaseModel):
    name: str | None = None
    code: str | None = None
    api_url: str | None = None
    credentials: Credentials | None = None
    is_active: bool | None = None
    supported_regions: list[str] | None = None
    price_calculation: PriceCalculation | None = None
    base_price: float | None = None


class DeliveryCompanyOut(BaseModel):
    id: str
    name: str
    code: str
    api_url: str
    is_active: bool
    supported_regions: list[str] = []
    price_calculation: str
    base_price: float
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("supported_regions", mode="before")
    @classmethod
    def parse_regions(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v


class DeliveryOrderRequest(BaseModel):
    order_id: str
    company_id: str


class DeliveryResult(BaseModel):
    success: bool
    tracking_number: str | None = None
    status: str = "pending"
    message: str | None = None


class DeliveryFeeOut(BaseModel):
    fee: float


class DeliveryStatusOut(BaseModel):
    order_id: str
    order_number: str
    company_name: str
    order_status: str
    tracking_number: str = ""
    delivery_status: str = ""
    last_update: datetime | None = None
