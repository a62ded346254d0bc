from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor_id, get_services
from storefront.database import get_db
from storefront.schemas.delivery import (
    DeliveryCompanyCreate,
    DeliveryCompanyOut,
    DeliveryCompanyUpdate,
    DeliveryFeeOut,
    DeliveryOrderRequest,
    DeliveryStatusOut,
)
from storefront.services.registry import Services

router = APIRouter(prefix="/delivery", tags=["Delivery"], dependencies=[Depends(get_actor_id)])


@router.get("/companies", response_model=list[DeliveryCompanyOut])
def list_companies(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.delivery.list_companies(db)


@router.post("/companies", response_model=DeliveryCompanyOut, status_code=201)
def create_company(data: DeliveryCompanyCreate, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.delivery.create_company(db, data)


@router.put("/companies/{company_id}", response_model=DeliveryCompanyOut)
def update_company(
    company_id: str,
    data: DeliveryCompanyUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.delivery.update_company(db, company_id, data)


@router.delete("/companies/{company_id}")
def delete_company(company_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    services.delivery.delete_company(db, company_id)
    return {"message": "Delivery company deleted successfully"}


@router.post("/order")
def send_order(data: DeliveryOrderRequest, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    result = services.delivery.send_order(db, data.order_id, data.company_id)
    return {
        "message": "Order sent to delivery service successfully",
        "delivery_details": result.model_dump(),
        "order_status": services.orders.get_order(db, data.order_id).status,
    }


@router.post("/calculate-fee", response_model=DeliveryFeeOut)
def calculate_fee(data: DeliveryOrderRequest, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return DeliveryFeeOut(fee=services.delivery.calculate_fee(db, data.order_id, data.company_id))


@router.get("/status/{order_id}/{company_id}", response_model=DeliveryStatusOut)
def get_delivery_status(
    order_id: str,
    company_id: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    return services.delivery.get_delivery_status(db, order_id, company_id)
