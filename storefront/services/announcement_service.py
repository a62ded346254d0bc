from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.database import transaction
from storefront.errors import InvalidArgument, NotFound
from storefront.models.announcement import Announcement
from storefront.schemas.announcement import AnnouncementCreate, AnnouncementPosition, AnnouncementUpdate


def list_announcements(db: Session, active_only: bool = False) -> list[Announcement]:
    stmt = select(Announcement)
    if active_only:
        stmt = stmt.where(Announcement.is_active.is_(True))
    return list(db.scalars(stmt.order_by(Announcement.display_order, Announcement.created_at)))


def get_announcement(db: Session, announcement_id: str) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFound("Announcement not found")
    return announcement


def create_announcement(db: Session, data: AnnouncementCreate) -> Announcement:
    if not data.text.strip():
        raise InvalidArgument("Announcement text is required")
    with transaction(db):
        position = db.scalar(select(func.count()).select_from(Announcement)) or 0
        announcement = Announcement(
            text=data.text.strip(),
            link=data.link,
            is_active=data.is_active,
            display_order=position,
        )
        db.add(announcement)
    db.refresh(announcement)
    return announcement


def update_announcement(db: Session, announcement_id: str, data: AnnouncementUpdate) -> Announcement:
    update_data = data.model_dump(exclude_unset=True)
    if "text" in update_data and not (update_data["text"] or "").strip():
        raise InvalidArgument("Announcement text is required")
    with transaction(db):
        announcement = get_announcement(db, announcement_id)
        for field, value in update_data.items():
            if value is not None:
                setattr(announcement, field, value)
    db.refresh(announcement)
    return announcement


def delete_announcement(db: Session, announcement_id: str) -> None:
    with transaction(db):
        db.delete(get_announcement(db, announcement_id))


def reorder_announcements(db: Session, positions: list[AnnouncementPosition]) -> list[Announcement]:
    with transaction(db):
        for position in positions:
            get_announcement(db, position.id).display_order = position.order
    return list_announcements(db)
