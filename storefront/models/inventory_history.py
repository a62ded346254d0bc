import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront.database import Base


class HistoryType(str, PyEnum):
    INCREASE = "increase"
    DECREASE = "decrease"
    UPDATE = "update"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InventoryHistory(Base):
    """Append-only audit trail of inventory changes.

    ``quantity`` is always the magnitude of the change; the direction is
    carried by ``type``. ``product_id`` has no foreign key so the trail
    survives product deletion.
    """

    __tablename__ = "inventory_history"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    product_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    inventory_id: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str] = mapped_column(
        Enum(HistoryType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reason: Mapped[str] = mapped_column(Text, default="")
    reference_id: Mapped[str] = mapped_column(String, default="")  # order id, batch id, ...
    actor_id: Mapped[str | None] = mapped_column(String, nullable=True)
    # Microsecond resolution so entries written in one request keep their order
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, index=True)
