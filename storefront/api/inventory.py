from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor_id, get_services
from storefront.database import get_db
from storefront.schemas.inventory import (
    BulkUpdateRequest,
    BulkUpdateResult,
    InventoryCreate,
    InventoryOut,
    InventoryUpdate,
)
from storefront.services.registry import Services

router = APIRouter(prefix="/inventory", tags=["Inventory"], dependencies=[Depends(get_actor_id)])


@router.get("", response_model=list[InventoryOut])
def list_inventory(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.inventory.get_all_inventory(db)


@router.get("/low-stock", response_model=list[InventoryOut])
def low_stock(db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.inventory.get_low_stock_items(db)


@router.get("/product/{product_id}", response_model=list[InventoryOut])
def product_inventory(product_id: str, db: Session = Depends(get_db), services: Services = Depends(get_services)):
    return services.inventory.get_product_inventory(db, product_id)


@router.post("", response_model=InventoryOut, status_code=201)
def add_inventory(
    data: InventoryCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    return services.inventory.add_inventory(db, data, actor_id)


@router.put("/{entry_id}", response_model=InventoryOut)
def update_inventory(
    entry_id: str,
    data: InventoryUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    return services.inventory.update_inventory(db, entry_id, data.quantity, actor_id)


@router.post("/bulk")
def bulk_update(
    data: BulkUpdateRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    actor_id: str = Depends(get_actor_id),
):
    result: BulkUpdateResult = services.inventory.bulk_update_inventory(db, data.items, actor_id)
    return {
        "success": result.success,
        "message": "Inventory updated successfully" if result.success else "Some items could not be updated",
        "updated": result.updated,
        "failed": [f.model_dump() for f in result.failed],
    }
