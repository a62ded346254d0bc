from sqlalchemy.orm import Session

from storefront.models.inventory_history import HistoryType
from storefront.models.product import Product
from storefront.schemas.product import ColorSpec, SizeSpec
from storefront.services.history import HistoryLog
from storefront.services.ledger import VariantLedger


class VariantReconciler:
    """Brings a product's inventory rows in line with its size/color matrix.

    Every size is stocked in every color with the size's stock. Combinations
    dropped from the matrix keep their row but are zeroed out. The caller
    recomputes the product aggregate and commits.
    """

    def __init__(self, ledger: VariantLedger, history: HistoryLog, default_threshold: int, default_location: str):
        self.ledger = ledger
        self.history = history
        self.default_threshold = default_threshold
        self.default_location = default_location

    def reconcile(
        self,
        db: Session,
        product: Product,
        sizes: list[SizeSpec],
        colors: list[ColorSpec],
        actor_id: str | None,
    ) -> None:
        existing = {(e.size, e.color): e for e in self.ledger.get_for_product(db, product.id)}
        desired = {(size.name, color.name): size.stock for size in sizes for color in colors}

        for (size, color), stock in desired.items():
            entry = existing.get((size, color))
            if entry is None:
                entry = self.ledger.upsert(
                    db, product.id, size, color, stock, self.default_threshold, self.default_location
                )
                self.history.append(
                    db,
                    product.id,
                    HistoryType.INCREASE,
                    stock,
                    "New size/color added",
                    actor_id,
                    inventory_id=entry.id,
                    balance_after=stock,
                )
            elif entry.quantity != stock:
                entry, previous = self.ledger.set_quantity(db, entry.id, stock)
                self.history.record_change(
                    db, product.id, previous, stock, "Stock update", actor_id, inventory_id=entry.id
                )

        for key, entry in existing.items():
            if key in desired or entry.quantity == 0:
                continue
            entry, previous = self.ledger.set_quantity(db, entry.id, 0)
            self.history.record_change(
                db, product.id, previous, 0, "Size/color removed", actor_id, inventory_id=entry.id
            )
