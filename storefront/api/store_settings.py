from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor_id
from storefront.database import get_db
from storefront.schemas.store_settings import StoreSettingsOut, StoreSettingsUpdate
from storefront.services import store_settings_service

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=StoreSettingsOut)
def get_settings(db: Session = Depends(get_db)):
    return store_settings_service.get_settings(db)


@router.put("", response_model=StoreSettingsOut, dependencies=[Depends(get_actor_id)])
def update_settings(data: StoreSettingsUpdate, db: Session = Depends(get_db)):
    return store_settings_service.update_settings(db, data)
