from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from storefront.errors import NotFound
from storefront.models.product import InventoryEntry, Product


class StockAggregator:
    """Keeps Product.stock equal to the sum of the product's inventory rows.

    The product row is locked before summing, so a writer to another variant
    of the same product waits and then sums over committed rows. Callers
    touching several products recompute them in sorted id order.
    """

    def recompute(self, db: Session, product_id: str) -> int:
        # Pending inventory rows must be visible to the SUM below
        db.flush()
        locked = db.execute(
            select(Product.id).where(Product.id == product_id).with_for_update()
        ).first()
        if locked is None:
            raise NotFound(f"Product not found: {product_id}")

        total = (
            select(func.coalesce(func.sum(InventoryEntry.quantity), 0))
            .where(InventoryEntry.product_id == product_id)
            .scalar_subquery()
        )
        db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=total)
            .execution_options(synchronize_session=False)
        )

        product = db.identity_map.get(db.identity_key(Product, product_id))
        if product is not None:
            db.expire(product, ["stock"])
        return db.scalar(select(Product.stock).where(Product.id == product_id))
