import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.database import Base

LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String, default="", index=True)

    # Stored in settings.BASE_CURRENCY
    price: Mapped[float] = mapped_column(Float, default=0.0)
    original_price: Mapped[float] = mapped_column(Float, default=0.0)
    weight: Mapped[float] = mapped_column(Float, default=0.0)

    images: Mapped[str] = mapped_column(Text, default="[]")  # JSON list of URLs
    sizes: Mapped[str] = mapped_column(Text, default="[]")  # JSON list of {name, stock}
    colors: Mapped[str] = mapped_column(Text, default="[]")  # JSON list of {name, code}

    is_new: Mapped[bool] = mapped_column(Boolean, default=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)

    # Sum of the inventory rows; written only by StockAggregator
    stock: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    inventory: Mapped[list["InventoryEntry"]] = relationship(
        "InventoryEntry",
        viewonly=True,
        order_by=lambda: [InventoryEntry.size, InventoryEntry.color],
    )


class InventoryEntry(Base):
    """Stock of one (size, color) variant of a product."""

    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "size", "color", name="uq_inventory_variant"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id: Mapped[str] = mapped_column(String, ForeignKey("products.id"), nullable=False, index=True)
    size: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=5)
    location: Mapped[str] = mapped_column(String, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    product: Mapped["Product"] = relationship("Product")

    @property
    def status(self) -> str:
        return LOW_STOCK if self.quantity <= self.low_stock_threshold else IN_STOCK

    @property
    def product_name(self) -> str:
        return self.product.name if self.product else ""
