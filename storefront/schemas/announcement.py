from datetime import datetime

from pydantic import BaseModel


class AnnouncementCreate(BaseModel):
    text: str
    link: str = ""
    is_active: bool = True


class AnnouncementUpdate(BaseModel):
    text: str | None = None
    link: str | None = None
    is_active: bool | None = None


class AnnouncementPosition(BaseModel):
    id: str
    order: int


class AnnouncementReorder(BaseModel):
    announcements: list[AnnouncementPosition]


class AnnouncementOut(BaseModel):
    id: str
    text: str
    link: str
    is_active: bool
    display_order: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
