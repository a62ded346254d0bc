from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_actor_id
from storefront.database import get_db
from storefront.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementOut,
    AnnouncementReorder,
    AnnouncementUpdate,
)
from storefront.services import announcement_service

router = APIRouter(prefix="/announcements", tags=["Announcements"])


@router.get("/active", response_model=list[AnnouncementOut])
def active_announcements(db: Session = Depends(get_db)):
    return announcement_service.list_announcements(db, active_only=True)


@router.get("", response_model=list[AnnouncementOut], dependencies=[Depends(get_actor_id)])
def list_announcements(db: Session = Depends(get_db)):
    return announcement_service.list_announcements(db)


@router.post("", response_model=AnnouncementOut, status_code=201, dependencies=[Depends(get_actor_id)])
def create_announcement(data: AnnouncementCreate, db: Session = Depends(get_db)):
    return announcement_service.create_announcement(db, data)


# Registered before /{announcement_id} so "reorder" is not taken for an id
@router.put("/reorder", response_model=list[AnnouncementOut], dependencies=[Depends(get_actor_id)])
def reorder_announcements(data: AnnouncementReorder, db: Session = Depends(get_db)):
    return announcement_service.reorder_announcements(db, data.announcements)


@router.put("/{announcement_id}", response_model=AnnouncementOut, dependencies=[Depends(get_actor_id)])
def update_announcement(announcement_id: str, data: AnnouncementUpdate, db: Session = Depends(get_db)):
    return announcement_service.update_announcement(db, announcement_id, data)


@router.delete("/{announcement_id}", dependencies=[Depends(get_actor_id)])
def delete_announcement(announcement_id: str, db: Session = Depends(get_db)):
    announcement_service.delete_announcement(db, announcement_id)
    return {"message": "Announcement deleted successfully"}
