from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor_id, get_services
from storefront.database import get_db
from storefront.models.order import OrderStatus
from storefront.schemas.order import OrderCreate, OrderOut, OrderStatusUpdate
from storefront.services.registry import Services

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", status_code=201)
def create_order(data: OrderCreate, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    order = services.orders.create_order(db, data)
    return {
        "message": "Order created successfully",
        "order": {
            "id": order.id,
            "order_number": order.order_number,
            "total_amount": order.total_amount,
            "currency": order.currency,
            "status": order.status,
        },
    }


@router.get("", response_model=list[OrderOut], dependencies=[Depends(get_actor_id)])
def list_orders(
    skip: int = 0,
    limit: int = 100,
    status: OrderStatus | None = None,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.orders.list_orders(db, skip=skip, limit=limit, status=status)


@router.get("/by-number/{order_number}", response_model=OrderOut, dependencies=[Depends(get_actor_id)])
def get_order_by_number(order_number: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.orders.get_order_by_number(db, order_number)


@router.get("/{order_id}", response_model=OrderOut, dependencies=[Depends(get_actor_id)])
def get_order(order_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.orders.get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: str,
    data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    return services.orders.update_order_status(db, order_id, data.status, data.note, actor_id=actor_id)
