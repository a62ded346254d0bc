from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.errors import InvalidArgument
from storefront.models.inventory_history import HistoryType, InventoryHistory


class HistoryLog:
    """Append-only writer/reader for InventoryHistory rows."""

    def append(
        self,
        db: Session,
        product_id: str,
        kind: HistoryType | str,
        quantity: int,
        reason: str,
        actor_id: str | None,
        inventory_id: str | None = None,
        balance_after: int | None = None,
        reference_id: str = "",
    ) -> InventoryHistory:
        try:
            history_type = HistoryType(kind)
        except ValueError:
            raise InvalidArgument(f"Unknown history type: {kind}") from None
        if quantity < 0:
            raise InvalidArgument("History quantity must be a non-negative magnitude")
        entry = InventoryHistory(
            product_id=product_id,
            inventory_id=inventory_id,
            type=history_type,
            quantity=quantity,
            balance_after=balance_after,
            reason=reason,
            reference_id=reference_id,
            actor_id=actor_id,
        )
        db.add(entry)
        return entry

    def record_change(
        self,
        db: Session,
        product_id: str,
        before: int,
        after: int,
        reason: str,
        actor_id: str | None,
        kind: HistoryType | None = None,
        inventory_id: str | None = None,
        reference_id: str = "",
    ) -> InventoryHistory | None:
        """Log the move from ``before`` to ``after``; no-op when nothing changed."""
        if before == after:
            return None
        if kind is None:
            kind = HistoryType.INCREASE if after > before else HistoryType.DECREASE
        return self.append(
            db,
            product_id,
            kind,
            abs(after - before),
            reason,
            actor_id,
            inventory_id=inventory_id,
            balance_after=after,
            reference_id=reference_id,
        )

    def query_by_product(self, db: Session, product_id: str) -> list[InventoryHistory]:
        db.flush()
        stmt = (
            select(InventoryHistory)
            .where(InventoryHistory.product_id == product_id)
            .order_by(InventoryHistory.created_at, InventoryHistory.id)
        )
        return list(db.scalars(stmt))
