"""Builders shared by the test modules."""

from sqlalchemy.orm import Session

from storefront.models.product import InventoryEntry, Product
from storefront.schemas.order import CustomerInfoInput, OrderCreate, OrderItemCreate, ShippingAddressInput
from storefront.schemas.product import ColorSpec, ProductCreate, SizeSpec
from storefront.services.registry import Services

COLOR_CODES = {"red": "#FF0000", "blue": "#0000FF", "black": "#000000", "white": "#FFFFFF"}


def product_data(
    sizes: list[tuple[str, int]] | None = None,
    colors: list[str] | None = None,
    **overrides,
) -> ProductCreate:
    sizes = sizes if sizes is not None else [("S", 3), ("M", 5)]
    colors = colors if colors is not None else ["red"]
    fields = {
        "name": "Linen Dress",
        "description": "Summer linen dress",
        "category": "dresses",
        "price": 40.0,
        "original_price": 50.0,
        "weight": 0.5,
        "images": ["https://cdn.example.com/dress.jpg"],
        "sizes": [SizeSpec(name=name, stock=stock) for name, stock in sizes],
        "colors": [ColorSpec(name=name, code=COLOR_CODES.get(name, "#123456")) for name in colors],
    }
    fields.update(overrides)
    return ProductCreate(**fields)


def make_product(services: Services, db: Session, **kwargs) -> Product:
    return services.products.create_product(db, product_data(**kwargs), "admin-1")


def make_bare_product(db: Session, name: str = "Scarf", price: float = 10.0) -> Product:
    """A product without inventory rows; tests add the rows they need."""
    product = Product(name=name, price=price, images='["https://cdn.example.com/x.jpg"]')
    db.add(product)
    db.commit()
    return product


def add_entry(db: Session, product: Product, size: str, color: str, quantity: int) -> InventoryEntry:
    entry = InventoryEntry(product_id=product.id, size=size, color=color, quantity=quantity, location="Main Warehouse")
    db.add(entry)
    db.commit()
    return entry


def order_data(items: list[tuple[str, str, str, int]], currency: str = "USD", payment_method: str = "cod") -> OrderCreate:
    return OrderCreate(
        items=[
            OrderItemCreate(product_id=product_id, size=size, color=color, quantity=quantity)
            for product_id, size, color, quantity in items
        ],
        shipping_address=ShippingAddressInput(street="12 Rainbow St", city="Amman", country="JO"),
        customer_info=CustomerInfoInput(
            first_name="Lina",
            last_name="Haddad",
            email="lina@example.com",
            mobile="+962791234567",
        ),
        payment_method=payment_method,
        currency=currency,
    )
