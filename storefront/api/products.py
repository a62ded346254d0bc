from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor_id, get_services
from storefront.database import get_db
from storefront.schemas.inventory import HistoryOut
from storefront.schemas.product import ProductCreate, ProductOut, ProductUpdate
from storefront.services.registry import Services

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductOut])
def list_products(
    currency: str = "USD",
    category: str | None = None,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    products = services.products.list_products(db, category=category)
    return [services.products.to_out(p, currency) for p in products]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: str,
    currency: str = "USD",
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.products.to_out(services.products.get_product(db, product_id), currency)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    return services.products.to_out(services.products.create_product(db, data, actor_id))


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    return services.products.to_out(services.products.update_product(db, product_id, data, actor_id))


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    services.products.delete_product(db, product_id, actor_id)
    return {"message": "Product deleted successfully"}


@router.get("/{product_id}/history", response_model=list[HistoryOut], dependencies=[Depends(get_actor_id)])
def product_history(product_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.products.get_history(db, product_id)
