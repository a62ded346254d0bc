from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class StoreSettings(Base):
    """Single-row table with the storefront's public details."""

    __tablename__ = "store_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    name: Mapped[str] = mapped_column(String, default="Eva Curves Fashion Store")
    email: Mapped[str] = mapped_column(String, default="contact@evacurves.com")
    phone: Mapped[str] = mapped_column(String, default="+1 (555) 123-4567")
    address: Mapped[str] = mapped_column(String, default="123 Fashion Street, NY 10001")
    currency: Mapped[str] = mapped_column(String, default="USD")
    timezone: Mapped[str] = mapped_column(String, default="UTC-5")
    logo: Mapped[str | None] = mapped_column(String, nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
