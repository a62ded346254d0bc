import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, DateTime, Enum, Float, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class PriceCalculation(str, PyEnum):
    FIXED = "fixed"
    WEIGHT = "weight"
    DISTANCE = "distance"


class DeliveryCompany(Base):
    __tablename__ = "delivery_companies"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    code: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)  # e.g. ARAMEX
    api_url: Mapped[str] = mapped_column(String, nullable=False)

    # JSON {login, password, api_key, database}; never returned by the API
    credentials: Mapped[str] = mapped_column(Text, default="{}")

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    supported_regions: Mapped[str] = mapped_column(Text, default="[]")
    price_calculation: Mapped[str] = mapped_column(
        Enum(PriceCalculation, values_callable=lambda x: [e.value for e in x]),
        default=PriceCalculation.FIXED,
    )
    base_price: Mapped[float] = mapped_column(Float, default=0.0)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
