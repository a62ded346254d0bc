import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from storefront.errors import Conflict, InvalidArgument, NotFound
from storefront.models.product import InventoryEntry, Product

logger = logging.getLogger(__name__)


class VariantLedger:
    """Data access for per-variant stock rows.

    Quantity writes go through conditional UPDATE statements so concurrent
    writers cannot drive a row negative or silently overwrite each other.
    None of these methods commit; the caller owns the transaction.
    """

    def __init__(self, cas_retries: int = 3):
        self.cas_retries = cas_retries

    def get_for_product(self, db: Session, product_id: str) -> list[InventoryEntry]:
        stmt = (
            select(InventoryEntry)
            .where(InventoryEntry.product_id == product_id)
            .order_by(InventoryEntry.size, InventoryEntry.color)
        )
        return list(db.scalars(stmt))

    def get(self, db: Session, product_id: str, size: str, color: str) -> InventoryEntry | None:
        stmt = select(InventoryEntry).where(
            InventoryEntry.product_id == product_id,
            InventoryEntry.size == size,
            InventoryEntry.color == color,
        )
        return db.scalars(stmt).first()

    def get_by_id(self, db: Session, entry_id: str) -> InventoryEntry | None:
        return db.get(InventoryEntry, entry_id)

    def list_all(self, db: Session) -> list[InventoryEntry]:
        stmt = (
            select(InventoryEntry)
            .join(Product, InventoryEntry.product_id == Product.id)
            .order_by(Product.name, Product.id, InventoryEntry.size, InventoryEntry.color)
        )
        return list(db.scalars(stmt))

    def list_low_stock(self, db: Session) -> list[InventoryEntry]:
        stmt = (
            select(InventoryEntry)
            .where(InventoryEntry.quantity <= InventoryEntry.low_stock_threshold)
            .order_by(InventoryEntry.quantity, InventoryEntry.product_id, InventoryEntry.size, InventoryEntry.color)
        )
        return list(db.scalars(stmt))

    def upsert(
        self,
        db: Session,
        product_id: str,
        size: str,
        color: str,
        quantity: int,
        threshold: int,
        location: str,
    ) -> InventoryEntry:
        if quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")
        entry = self.get(db, product_id, size, color)
        if entry is None:
            entry = InventoryEntry(
                product_id=product_id,
                size=size,
                color=color,
                quantity=quantity,
                low_stock_threshold=threshold,
                location=location,
            )
            db.add(entry)
        else:
            entry.quantity = quantity
            entry.low_stock_threshold = threshold
            entry.location = location
        db.flush()
        return entry

    def set_quantity(self, db: Session, entry_id: str, quantity: int) -> tuple[InventoryEntry, int]:
        """Overwrite a row's quantity. Returns the entry and the quantity it replaced."""
        if quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")
        db.flush()
        for _ in range(self.cas_retries):
            seen = db.scalar(select(InventoryEntry.quantity).where(InventoryEntry.id == entry_id))
            if seen is None:
                raise NotFound("Inventory record not found")
            result = db.execute(
                update(InventoryEntry)
                .where(InventoryEntry.id == entry_id, InventoryEntry.quantity == seen)
                .values(quantity=quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return self._reload(db, entry_id), seen
            logger.info("Quantity of %s changed underneath us, retrying", entry_id)
        raise Conflict("Inventory record is being modified concurrently, try again")

    def reserve(self, db: Session, entry_id: str, quantity: int) -> int:
        """Take ``quantity`` units out of a row. Returns the remaining quantity."""
        if quantity <= 0:
            raise InvalidArgument("Reserved quantity must be positive")
        db.flush()
        result = db.execute(
            update(InventoryEntry)
            .where(InventoryEntry.id == entry_id, InventoryEntry.quantity >= quantity)
            .values(quantity=InventoryEntry.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise Conflict("Stock was taken by another order, try again")
        return self._reload(db, entry_id).quantity

    def release(self, db: Session, entry_id: str, quantity: int) -> int:
        """Put ``quantity`` units back. Returns the new quantity."""
        if quantity <= 0:
            raise InvalidArgument("Released quantity must be positive")
        db.flush()
        result = db.execute(
            update(InventoryEntry)
            .where(InventoryEntry.id == entry_id)
            .values(quantity=InventoryEntry.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound("Inventory record not found")
        return self._reload(db, entry_id).quantity

    def delete_all_for_product(self, db: Session, product_id: str) -> int:
        db.flush()
        ids = list(db.scalars(select(InventoryEntry.id).where(InventoryEntry.product_id == product_id)))
        if not ids:
            return 0
        db.execute(
            delete(InventoryEntry)
            .where(InventoryEntry.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        # Drop stale copies without loading them
        for entry_id in ids:
            entry = db.identity_map.get(db.identity_key(InventoryEntry, entry_id))
            if entry is not None:
                db.expunge(entry)
        return len(ids)

    def _reload(self, db: Session, entry_id: str) -> InventoryEntry:
        entry = db.get(InventoryEntry, entry_id)
        db.refresh(entry)
        return entry
