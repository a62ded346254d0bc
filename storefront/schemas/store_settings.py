from datetime import datetime

from pydantic import BaseModel


class StoreSettingsUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    currency: str | None = None
    timezone: str | None = None
    logo: str | None = None


class StoreSettingsOut(BaseModel):
    name: str
    email: str
    phone: str
    address: str
    currency: str
    timezone: str
    logo: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
