import json
import logging
import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.currency import SUPPORTED_CURRENCIES, exchange_rate
from storefront.database import transaction
from storefront.errors import Conflict, InsufficientStock, InvalidArgument, NotFound
from storefront.models.inventory_history import HistoryType
from storefront.models.order import (
    SHIPPING_COUNTRIES,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from storefront.models.product import InventoryEntry, Product
from storefront.schemas.order import OrderCreate, OrderItemCreate
from storefront.services.aggregator import StockAggregator
from storefront.services.history import HistoryLog
from storefront.services.ledger import VariantLedger

logger = logging.getLogger(__name__)

MOBILE_PATTERN = re.compile(r"^\+[0-9]{1,4}[0-9]{9,10}$")

ALLOWED_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Orders whose stock is still held and that no partner has picked up yet
DISPATCHABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


def _generate_order_number() -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    short = uuid.uuid4().hex[:6].upper()
    return f"ORD-{ts}-{short}"


def _add_status_history(order: Order, status: str, note: str = "") -> None:
    history = json.loads(order.status_history) if order.status_history else []
    history.append({
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "note": note,
    })
    order.status_history = json.dumps(history)


def validate_order_data(data: OrderCreate) -> None:
    if not data.items:
        raise InvalidArgument("Order must contain at least one item")

    customer = data.customer_info
    if not customer.email.strip() or not customer.mobile.strip():
        raise InvalidArgument("Customer email and mobile number are required")
    if not customer.first_name.strip() or not customer.last_name.strip():
        raise InvalidArgument("Customer first and last name are required")
    if not MOBILE_PATTERN.match(customer.mobile):
        raise InvalidArgument("Invalid mobile number format")
    if customer.secondary_mobile and not MOBILE_PATTERN.match(customer.secondary_mobile):
        raise InvalidArgument("Invalid secondary mobile number format")

    address = data.shipping_address
    if not address.street.strip() or not address.city.strip() or not address.country.strip():
        raise InvalidArgument("Complete shipping address is required")
    if address.country not in SHIPPING_COUNTRIES:
        raise InvalidArgument(f"Shipping to {address.country} is not supported")

    if data.currency not in SUPPORTED_CURRENCIES:
        raise InvalidArgument("Invalid currency")
    if data.payment_method not in {m.value for m in PaymentMethod}:
        raise InvalidArgument("Invalid payment method")

    for item in data.items:
        if item.quantity < 1:
            raise InvalidArgument("Item quantity must be at least 1")


class OrderService:
    """Checkout and the order status workflow.

    Checkout validates every line against the ledger before anything is
    written, then reserves stock, logs history, recomputes aggregates and
    saves the order in a single transaction.
    """

    def __init__(self, ledger: VariantLedger, history: HistoryLog, aggregator: StockAggregator, base_currency: str = "USD"):
        self.ledger = ledger
        self.history = history
        self.aggregator = aggregator
        self.base_currency = base_currency

    def create_order(self, db: Session, data: OrderCreate) -> Order:
        validate_order_data(data)
        rate = exchange_rate(self.base_currency, data.currency)
        lines, needed = self._resolve_items(db, data.items)

        with transaction(db):
            order = Order(
                order_number=_generate_order_number(),
                customer_first_name=data.customer_info.first_name,
                customer_last_name=data.customer_info.last_name,
                customer_email=data.customer_info.email,
                customer_mobile=data.customer_info.mobile,
                customer_secondary_mobile=data.customer_info.secondary_mobile,
                ship_street=data.shipping_address.street,
                ship_city=data.shipping_address.city,
                ship_country=data.shipping_address.country,
                ship_latitude=data.shipping_address.latitude,
                ship_longitude=data.shipping_address.longitude,
                currency=data.currency,
                exchange_rate=rate,
                payment_method=PaymentMethod(data.payment_method),
                payment_status=(
                    PaymentStatus.PENDING if data.payment_method == PaymentMethod.COD.value
                    else PaymentStatus.COMPLETED
                ),
                status=OrderStatus.PENDING,
            )
            db.add(order)
            db.flush()

            total = 0.0
            for item, product, entry in lines:
                # Frozen at checkout, never recomputed from the product
                unit_price = round(product.price * rate, 2)
                total += unit_price * item.quantity
                images = json.loads(product.images) if product.images else []
                order.items.append(OrderItem(
                    product_id=product.id,
                    inventory_id=entry.id,
                    size=entry.size,
                    color=entry.color,
                    name=product.name,
                    image=images[0] if images else "",
                    quantity=item.quantity,
                    price=unit_price,
                ))

            touched: set[str] = set()
            for entry_id, (product_id, quantity) in sorted(needed.items()):
                remaining = self.ledger.reserve(db, entry_id, quantity)
                self.history.append(
                    db,
                    product_id,
                    HistoryType.DECREASE,
                    quantity,
                    f"Order {order.order_number}",
                    None,
                    inventory_id=entry_id,
                    balance_after=remaining,
                    reference_id=order.id,
                )
                touched.add(product_id)
            for product_id in sorted(touched):
                self.aggregator.recompute(db, product_id)

            order.total_amount = round(total, 2)
            _add_status_history(order, OrderStatus.PENDING.value, "Order created")

        db.refresh(order)
        logger.info("Order %s placed: %d lines, %.2f %s", order.order_number, len(lines), order.total_amount, order.currency)
        return order

    def _resolve_items(self, db: Session, items: list[OrderItemCreate]):
        """Match every line to its inventory row and check availability.

        Lines hitting the same row are summed before the check. Read-only.
        """
        lines = []
        needed: dict[str, tuple[str, int]] = {}
        for item in items:
            product = db.get(Product, item.product_id)
            if product is None:
                raise NotFound(f"Product not found: {item.product_id}")
            entry = self._find_entry(db, product, item)
            _, already = needed.get(entry.id, (product.id, 0))
            wanted = already + item.quantity
            if entry.quantity < wanted:
                raise InsufficientStock(product.id, product.name, entry.quantity, wanted)
            needed[entry.id] = (product.id, wanted)
            lines.append((item, product, entry))
        return lines, needed

    def _find_entry(self, db: Session, product: Product, item: OrderItemCreate) -> InventoryEntry:
        if item.size and item.color:
            entry = self.ledger.get(db, product.id, item.size, item.color)
            if entry is None:
                raise NotFound(f"{product.name} is not available in {item.size}/{item.color}")
            return entry

        candidates = [
            e for e in self.ledger.get_for_product(db, product.id)
            if (not item.size or e.size == item.size) and (not item.color or e.color == item.color)
        ]
        if not candidates:
            raise NotFound(f"No inventory for {product.name}")
        if len(candidates) > 1:
            raise InvalidArgument(f"Size and color are required for {product.name}")
        return candidates[0]

    def get_order(self, db: Session, order_id: str) -> Order:
        order = db.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    def get_order_by_number(self, db: Session, order_number: str) -> Order:
        order = db.scalars(select(Order).where(Order.order_number == order_number)).first()
        if order is None:
            raise NotFound("Order not found")
        return order

    def list_orders(
        self, db: Session, skip: int = 0, limit: int = 100, status: OrderStatus | None = None
    ) -> list[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return list(db.scalars(stmt))

    def update_order_status(
        self, db: Session, order_id: str, new_status: str, note: str = "", actor_id: str | None = None
    ) -> Order:
        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise InvalidArgument(f"Unknown order status: {new_status}") from None

        with transaction(db):
            order = self.get_order(db, order_id)
            current = OrderStatus(order.status)
            if status not in ALLOWED_TRANSITIONS[current]:
                raise InvalidArgument(f"Cannot move order from {current.value} to {status.value}")
            if status == OrderStatus.CANCELLED:
                self._release_stock(db, order, actor_id)
            order.status = status
            _add_status_history(order, status.value, note)

        db.refresh(order)
        logger.info("Order %s moved %s -> %s", order.order_number, current.value, status.value)
        return order

    def record_dispatch(
        self, db: Session, order_id: str, company_id: str, tracking_number: str, delivery_status: str
    ) -> Order:
        """Store the partner's tracking details; a pending order starts processing."""
        with transaction(db):
            order = self.get_order(db, order_id)
            if OrderStatus(order.status) not in DISPATCHABLE_STATUSES:
                raise Conflict(
                    f"Order {order.order_number} is {OrderStatus(order.status).value} and cannot be dispatched"
                )
            order.delivery_company_id = company_id
            order.tracking_number = tracking_number
            order.delivery_status = delivery_status
            if OrderStatus(order.status) == OrderStatus.PENDING:
                order.status = OrderStatus.PROCESSING
                _add_status_history(order, OrderStatus.PROCESSING.value, f"Sent to delivery ({tracking_number})")
        db.refresh(order)
        return order

    def _release_stock(self, db: Session, order: Order, actor_id: str | None) -> None:
        returned: dict[str, tuple[str, int]] = {}
        for item in order.items:
            product_id, quantity = returned.get(item.inventory_id, (item.product_id, 0))
            returned[item.inventory_id] = (product_id, quantity + item.quantity)

        touched: set[str] = set()
        for entry_id, (product_id, quantity) in sorted(returned.items(), key=lambda kv: kv[0] or ""):
            if not entry_id or self.ledger.get_by_id(db, entry_id) is None:
                logger.warning("Order %s: inventory %s no longer exists, %d units not returned",
                               order.order_number, entry_id, quantity)
                continue
            balance = self.ledger.release(db, entry_id, quantity)
            self.history.append(
                db,
                product_id,
                HistoryType.INCREASE,
                quantity,
                f"Order {order.order_number} cancelled",
                actor_id,
                inventory_id=entry_id,
                balance_after=balance,
                reference_id=order.id,
            )
            touched.add(product_id)
        for product_id in sorted(touched):
            self.aggregator.recompute(db, product_id)
