from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class InventoryCreate(BaseModel):
    product_id: str
    size: str
    color: str
    quantity: int = 0
    low_stock_threshold: int | None = None  # None = settings default
    location: str | None = None


class InventoryUpdate(BaseModel):
    quantity: int


class BulkUpdateItem(BaseModel):
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    quantity: int


class BulkUpdateRequest(BaseModel):
    items: list[BulkUpdateItem]


class BulkItemFailure(BaseModel):
    item_id: str
    kind: str
    message: str


class BulkUpdateResult(BaseModel):
    updated: list[str] = []
    failed: list[BulkItemFailure] = []

    @property
    def success(self) -> bool:
        return not self.failed


class InventoryOut(BaseModel):
    id: str
    product_id: str
    product_name: str = ""
    size: str
    color: str
    quantity: int
    low_stock_threshold: int
    location: str
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class HistoryOut(BaseModel):
    id: str
    product_id: str
    inventory_id: str | None = None
    type: str
    quantity: int
    balance_after: int | None = None
    reason: str
    reference_id: str = ""
    actor_id: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
