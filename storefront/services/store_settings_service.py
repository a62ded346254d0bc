import logging

from sqlalchemy.orm import Session

from storefront.currency import SUPPORTED_CURRENCIES
from storefront.database import transaction
from storefront.errors import InvalidArgument
from storefront.models.store_settings import StoreSettings
from storefront.schemas.store_settings import StoreSettingsUpdate

logger = logging.getLogger(__name__)


def get_settings(db: Session) -> StoreSettings:
    """Return the settings row, creating it with defaults on first use."""
    row = db.get(StoreSettings, 1)
    if row is None:
        with transaction(db):
            row = StoreSettings(id=1)
            db.add(row)
        db.refresh(row)
        logger.info("Default store settings created")
    return row


def update_settings(db: Session, data: StoreSettingsUpdate) -> StoreSettings:
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("currency") is not None and update_data["currency"] not in SUPPORTED_CURRENCIES:
        raise InvalidArgument("Invalid currency")
    for field in ("name", "email", "currency", "timezone"):
        if field in update_data and not (update_data[field] or "").strip():
            raise InvalidArgument(f"{field} cannot be empty")

    row = get_settings(db)
    with transaction(db):
        for field, value in update_data.items():
            setattr(row, field, value)
    db.refresh(row)
    return row
