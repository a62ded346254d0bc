import json
from datetime import datetime

from pydantic import BaseModel, field_validator

from storefront.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: str
    quantity: int = 1
    size: str = ""
    color: str = ""


class ShippingAddressInput(BaseModel):
    street: str = ""
    city: str = ""
    country: str = ""
    latitude: str = ""
    longitude: str = ""


class CustomerInfoInput(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    mobile: str = ""
    secondary_mobile: str = ""


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = []
    shipping_address: ShippingAddressInput = ShippingAddressInput()
    customer_info: CustomerInfoInput = CustomerInfoInput()
    payment_method: str = ""
    currency: str = "USD"


class OrderStatusUpdate(BaseModel):
    # Plain str so unknown values reach the service and fail as InvalidArgument
    status: str
    note: str = ""


class OrderItemOut(BaseModel):
    id: str
    product_id: str
    inventory_id: str = ""
    size: str = ""
    color: str = ""
    name: str
    image: str = ""
    quantity: int
    price: float

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: str
    order_number: str
    items: list[OrderItemOut]
    total_amount: float
    currency: str
    exchange_rate: float
    customer_name: str
    customer_email: str
    customer_mobile: str
    ship_street: str
    ship_city: str
    ship_country: str
    payment_method: str
    payment_status: str
    status: OrderStatus
    status_history: list[dict] = []
    delivery_company_id: str = ""
    tracking_number: str = ""
    delivery_status: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("status_history", mode="before")
    @classmethod
    def parse_status_history(cls, v):
        if isinstance(v, str):
            return json.loads(v) if v else []
        return v
