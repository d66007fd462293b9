from datetime import datetime

from pydantic import BaseModel, Field


class TimeSlotOut(BaseModel):
    day_of_week: str
    start_time: str
    end_time: str
    label: str

    model_config = {"from_attributes": True}


class TimeSlotCatalogOut(BaseModel):
    version: int
    slot_count: int
    policy: dict
    generated_at: datetime | None = None
    slots: list[TimeSlotOut] = Field(default_factory=list)


class SlotValidationRequest(BaseModel):
    day_of_week: str
    start_time: str
    end_time: str


class SlotValidationOut(BaseModel):
    valid: bool
    rule: str | None = None
    message: str | None = None
