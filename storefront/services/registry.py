from dataclasses import dataclass

import httpx

from storefront.config import Settings
from storefront.services.aggregator import StockAggregator
from storefront.services.delivery_service import DeliveryService
from storefront.services.history import HistoryLog
from storefront.services.inventory_service import InventoryService
from storefront.services.ledger import VariantLedger
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService
from storefront.services.reconciler import VariantReconciler


@dataclass
class Services:
    ledger: VariantLedger
    history: HistoryLog
    aggregator: StockAggregator
    inventory: InventoryService
    products: ProductService
    orders: OrderService
    delivery: DeliveryService


def build_services(config: Settings, delivery_transport: httpx.BaseTransport | None = None) -> Services:
    """Wire the service graph. Called once at startup; handlers share the result."""
    ledger = VariantLedger(cas_retries=config.STOCK_CAS_RETRIES)
    history = HistoryLog()
    aggregator = StockAggregator()
    reconciler = VariantReconciler(
        ledger, history, config.DEFAULT_LOW_STOCK_THRESHOLD, config.DEFAULT_INVENTORY_LOCATION
    )
    orders = OrderService(ledger, history, aggregator, base_currency=config.BASE_CURRENCY)
    return Services(
        ledger=ledger,
        history=history,
        aggregator=aggregator,
        inventory=InventoryService(
            ledger,
            history,
            aggregator,
            default_threshold=config.DEFAULT_LOW_STOCK_THRESHOLD,
            default_location=config.DEFAULT_INVENTORY_LOCATION,
            batch_size=config.BULK_UPDATE_BATCH_SIZE,
        ),
        products=ProductService(
            ledger,
            history,
            aggregator,
            reconciler,
            base_currency=config.BASE_CURRENCY,
            default_threshold=config.DEFAULT_LOW_STOCK_THRESHOLD,
            default_location=config.DEFAULT_INVENTORY_LOCATION,
        ),
        orders=orders,
        delivery=DeliveryService(orders, timeout=config.DELIVERY_TIMEOUT_SECONDS, transport=delivery_transport),
    )
