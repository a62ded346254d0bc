import logging

from sqlalchemy.orm import Session

from storefront.database import transaction
from storefront.errors import Conflict, InvalidArgument, NotFound, StorageError
from storefront.models.inventory_history import HistoryType
from storefront.models.product import InventoryEntry, Product
from storefront.schemas.inventory import BulkItemFailure, BulkUpdateItem, BulkUpdateResult, InventoryCreate
from storefront.services.aggregator import StockAggregator
from storefront.services.history import HistoryLog
from storefront.services.ledger import VariantLedger

logger = logging.getLogger(__name__)


class InventoryService:
    """Admin-facing inventory operations.

    Each write changes the ledger, recomputes the product aggregate and
    appends history inside one transaction.
    """

    def __init__(
        self,
        ledger: VariantLedger,
        history: HistoryLog,
        aggregator: StockAggregator,
        default_threshold: int = 5,
        default_location: str = "Main Warehouse",
        batch_size: int = 100,
    ):
        self.ledger = ledger
        self.history = history
        self.aggregator = aggregator
        self.default_threshold = default_threshold
        self.default_location = default_location
        self.batch_size = max(1, batch_size)

    def get_all_inventory(self, db: Session) -> list[InventoryEntry]:
        return self.ledger.list_all(db)

    def get_product_inventory(self, db: Session, product_id: str) -> list[InventoryEntry]:
        return self.ledger.get_for_product(db, product_id)

    def get_low_stock_items(self, db: Session) -> list[InventoryEntry]:
        return self.ledger.list_low_stock(db)

    def add_inventory(self, db: Session, data: InventoryCreate, actor_id: str) -> InventoryEntry:
        if data.quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")
        if not data.size.strip() or not data.color.strip():
            raise InvalidArgument("Size and color are required")

        with transaction(db):
            if db.get(Product, data.product_id) is None:
                raise NotFound(f"Product not found: {data.product_id}")
            if self.ledger.get(db, data.product_id, data.size, data.color) is not None:
                raise Conflict(f"Inventory for {data.size}/{data.color} already exists")
            entry = self.ledger.upsert(
                db,
                data.product_id,
                data.size,
                data.color,
                data.quantity,
                data.low_stock_threshold if data.low_stock_threshold is not None else self.default_threshold,
                data.location or self.default_location,
            )
            self.aggregator.recompute(db, data.product_id)
            self.history.append(
                db,
                data.product_id,
                HistoryType.INCREASE,
                entry.quantity,
                "Initial stock",
                actor_id,
                inventory_id=entry.id,
                balance_after=entry.quantity,
            )
        db.refresh(entry)
        return entry

    def update_inventory(self, db: Session, entry_id: str, new_quantity: int, actor_id: str) -> InventoryEntry:
        if new_quantity < 0:
            raise InvalidArgument("Quantity cannot be negative")

        with transaction(db):
            entry, previous = self.ledger.set_quantity(db, entry_id, new_quantity)
            self.aggregator.recompute(db, entry.product_id)
            self.history.record_change(
                db,
                entry.product_id,
                previous,
                new_quantity,
                "Manual update",
                actor_id,
                kind=HistoryType.UPDATE,
                inventory_id=entry.id,
            )
        logger.info("Inventory %s set %d -> %d by %s", entry_id, previous, new_quantity, actor_id)
        db.refresh(entry)
        return entry

    def bulk_update_inventory(self, db: Session, items: list[BulkUpdateItem], actor_id: str) -> BulkUpdateResult:
        result = BulkUpdateResult()
        for start in range(0, len(items), self.batch_size):
            batch = items[start:start + self.batch_size]
            try:
                self._apply_batch(db, batch, actor_id, result)
            except StorageError as exc:
                # The batch was rolled back as a whole; later batches still run
                logger.error("Bulk inventory batch of %d items failed: %s", len(batch), exc.message)
                result.failed.extend(
                    BulkItemFailure(item_id=item.id, kind=exc.kind, message=exc.message) for item in batch
                )
        logger.info(
            "Bulk inventory update by %s: %d updated, %d failed",
            actor_id, len(result.updated), len(result.failed),
        )
        return result

    def _apply_batch(self, db: Session, batch: list[BulkUpdateItem], actor_id: str, result: BulkUpdateResult) -> None:
        updated: list[str] = []
        failed: list[BulkItemFailure] = []
        touched: set[str] = set()

        with transaction(db):
            for item in batch:
                try:
                    entry, previous = self.ledger.set_quantity(db, item.id, item.quantity)
                except (InvalidArgument, NotFound, Conflict) as exc:
                    failed.append(BulkItemFailure(item_id=item.id, kind=exc.kind, message=exc.message))
                    continue
                self.history.record_change(
                    db,
                    entry.product_id,
                    previous,
                    item.quantity,
                    "Bulk update",
                    actor_id,
                    kind=HistoryType.UPDATE,
                    inventory_id=entry.id,
                )
                updated.append(item.id)
                touched.add(entry.product_id)

            # After every item of the batch has landed
            for product_id in sorted(touched):
                self.aggregator.recompute(db, product_id)

        result.updated.extend(updated)
        result.failed.extend(failed)
