import json
import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.currency import convert
from storefront.database import transaction
from storefront.errors import InvalidArgument, NotFound
from storefront.models.inventory_history import HistoryType
from storefront.models.product import Product
from storefront.schemas.product import ColorSpec, ProductCreate, ProductOut, ProductUpdate, SizeSpec
from storefront.services.aggregator import StockAggregator
from storefront.services.history import HistoryLog
from storefront.services.ledger import VariantLedger
from storefront.services.reconciler import VariantReconciler

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def validate_sizes(sizes: list[SizeSpec]) -> list[str]:
    errors = []
    if not sizes:
        return ["At least one size is required"]
    seen = set()
    for index, size in enumerate(sizes, start=1):
        if not size.name.strip():
            errors.append(f"Size name is required for size #{index}")
        elif size.name in seen:
            errors.append(f"Duplicate size: {size.name}")
        seen.add(size.name)
        if size.stock < 0:
            errors.append(f"Invalid stock quantity for {size.name or f'size #{index}'}")
    return errors


def validate_colors(colors: list[ColorSpec]) -> list[str]:
    errors = []
    if not colors:
        return ["At least one color is required"]
    seen = set()
    for index, color in enumerate(colors, start=1):
        if not color.name.strip():
            errors.append(f"Color name is required for color #{index}")
        elif color.name in seen:
            errors.append(f"Duplicate color: {color.name}")
        seen.add(color.name)
        if not HEX_COLOR.match(color.code or ""):
            errors.append(f"Invalid color code for {color.name or f'color #{index}'}")
    return errors


def validate_product_data(data: ProductCreate) -> list[str]:
    errors = []
    if not data.name.strip():
        errors.append("Product name is required")
    if not data.description.strip():
        errors.append("Product description is required")
    if data.price <= 0:
        errors.append("Valid price is required")
    if not data.category:
        errors.append("Category is required")
    if not data.images:
        errors.append("At least one product image is required")
    errors.extend(validate_colors(data.colors))
    errors.extend(validate_sizes(data.sizes))
    return errors


class ProductService:
    def __init__(
        self,
        ledger: VariantLedger,
        history: HistoryLog,
        aggregator: StockAggregator,
        reconciler: VariantReconciler,
        base_currency: str = "USD",
        default_threshold: int = 5,
        default_location: str = "Main Warehouse",
    ):
        self.ledger = ledger
        self.history = history
        self.aggregator = aggregator
        self.reconciler = reconciler
        self.base_currency = base_currency
        self.default_threshold = default_threshold
        self.default_location = default_location

    def get_product(self, db: Session, product_id: str) -> Product:
        product = db.get(Product, product_id)
        if product is None:
            raise NotFound("Product not found")
        return product

    def list_products(self, db: Session, category: str | None = None) -> list[Product]:
        stmt = select(Product)
        if category:
            stmt = stmt.where(Product.category == category)
        stmt = stmt.order_by(Product.is_featured.desc(), Product.display_order, Product.created_at.desc())
        return list(db.scalars(stmt))

    def to_out(self, product: Product, currency: str | None = None) -> ProductOut:
        """Serialize with prices shown in ``currency``."""
        out = ProductOut.model_validate(product)
        currency = currency or self.base_currency
        if currency == self.base_currency:
            return out.model_copy(update={"currency": currency})
        return out.model_copy(update={
            "currency": currency,
            "price": convert(product.price, self.base_currency, currency),
            "original_price": convert(product.original_price, self.base_currency, currency),
        })

    def create_product(self, db: Session, data: ProductCreate, actor_id: str) -> Product:
        errors = validate_product_data(data)
        if errors:
            raise InvalidArgument("Invalid product data", errors=errors)
        price = convert(data.price, data.currency, self.base_currency)
        original_price = convert(data.original_price, data.currency, self.base_currency)

        with transaction(db):
            product = Product(
                name=data.name,
                description=data.description,
                category=data.category,
                price=price,
                original_price=original_price,
                weight=data.weight,
                images=json.dumps(data.images),
                sizes=json.dumps([s.model_dump() for s in data.sizes]),
                colors=json.dumps([c.model_dump() for c in data.colors]),
                is_new=data.is_new,
                is_featured=data.is_featured,
                display_order=self._next_featured_position(db) if data.is_featured else 0,
                stock=0,
            )
            db.add(product)
            db.flush()

            for size in data.sizes:
                for color in data.colors:
                    entry = self.ledger.upsert(
                        db, product.id, size.name, color.name, size.stock,
                        self.default_threshold, self.default_location,
                    )
                    self.history.append(
                        db,
                        product.id,
                        HistoryType.INCREASE,
                        size.stock,
                        "Initial stock",
                        actor_id,
                        inventory_id=entry.id,
                        balance_after=size.stock,
                    )
            self.aggregator.recompute(db, product.id)

        db.refresh(product)
        logger.info("Created product %s with %d variants", product.id, len(data.sizes) * len(data.colors))
        return product

    def update_product(self, db: Session, product_id: str, data: ProductUpdate, actor_id: str) -> Product:
        update_data = data.model_dump(exclude_unset=True, exclude={"sizes", "colors", "currency"})
        errors = []
        if "name" in update_data and not (update_data["name"] or "").strip():
            errors.append("Product name is required")
        if "price" in update_data and (update_data["price"] is None or update_data["price"] <= 0):
            errors.append("Valid price is required")
        if "images" in update_data and not update_data["images"]:
            errors.append("At least one product image is required")
        if data.sizes is not None:
            errors.extend(validate_sizes(data.sizes))
        if data.colors is not None:
            errors.extend(validate_colors(data.colors))
        if errors:
            raise InvalidArgument("Invalid product data", errors=errors)

        for field in ("price", "original_price"):
            if update_data.get(field) is not None:
                update_data[field] = convert(update_data[field], data.currency, self.base_currency)
        if "images" in update_data:
            update_data["images"] = json.dumps(update_data["images"])

        with transaction(db):
            product = self.get_product(db, product_id)
            if update_data.get("is_featured") and not product.is_featured:
                product.display_order = self._next_featured_position(db)
            for field, value in update_data.items():
                if value is not None:
                    setattr(product, field, value)

            if data.sizes is not None or data.colors is not None:
                sizes = data.sizes if data.sizes is not None else [SizeSpec(**s) for s in json.loads(product.sizes)]
                colors = data.colors if data.colors is not None else [ColorSpec(**c) for c in json.loads(product.colors)]
                product.sizes = json.dumps([s.model_dump() for s in sizes])
                product.colors = json.dumps([c.model_dump() for c in colors])
                self.reconciler.reconcile(db, product, sizes, colors, actor_id)
                self.aggregator.recompute(db, product.id)

        db.refresh(product)
        return product

    def delete_product(self, db: Session, product_id: str, actor_id: str) -> None:
        with transaction(db):
            product = self.get_product(db, product_id)
            stock = self.aggregator.recompute(db, product.id)
            removed = self.ledger.delete_all_for_product(db, product.id)
            db.delete(product)
            self.history.append(
                db,
                product_id,
                HistoryType.DECREASE,
                stock,
                "Product deleted",
                actor_id,
                balance_after=0,
            )
        logger.info("Deleted product %s with %d inventory rows", product_id, removed)

    def get_history(self, db: Session, product_id: str):
        return self.history.query_by_product(db, product_id)

    def _next_featured_position(self, db: Session) -> int:
        return db.scalar(select(func.count()).select_from(Product).where(Product.is_featured.is_(True))) or 0
