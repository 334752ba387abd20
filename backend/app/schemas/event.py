"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_serializer, field_validator

EventStatus = Literal["upcoming", "ongoing", "finished"]

CategoryName = Annotated[str, Field(min_length=1, max_length=100)]
FeeAmount = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]


class EventCreate(BaseModel):
    """Full field set for creating an event or replacing one on update."""

    name: str = Field(..., min_length=1, max_length=255)
    event_date: date
    event_time: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    distance: Optional[Decimal] = Field(None, ge=0, max_digits=8, decimal_places=2)
    categories: list[CategoryName] = Field(..., min_length=1)
    registration_fees: dict[str, FeeAmount] = Field(default_factory=dict)
    description: Optional[str] = None
    status: EventStatus
    is_leg: bool = False
    leg_number: Optional[int] = Field(None, ge=0)
    parent_event_id: Optional[int] = Field(None, ge=1)

    @field_validator("registration_fees", mode="before")
    @classmethod
    def null_fees_mean_none(cls, value):
        return {} if value is None else value

    @field_validator("registration_fees")
    @classmethod
    def fees_match_categories(cls, fees: dict[str, Decimal], info: ValidationInfo) -> dict[str, Decimal]:
        categories = info.data.get("categories")
        if categories is None:
            # categories already failed validation and is reported on its own
            return fees
        unknown = sorted(set(fees) - set(categories))
        if unknown:
            raise ValueError(f"Fees given for categories not on this event: {', '.join(unknown)}")
        return fees


class EventUpdate(EventCreate):
    pass


class EventDescriptionUpdate(BaseModel):
    description: Optional[str] = None

    model_config = {"extra": "forbid"}


class EventResponse(BaseModel):
    id: int
    name: str
    event_date: date
    event_time: str
    location: str
    distance: Optional[Decimal]
    categories: list[str]
    registration_fees: dict[str, Decimal]
    description: Optional[str]
    status: str
    is_leg: bool
    leg_number: Optional[int]
    parent_event_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("categories", mode="before")
    @classmethod
    def null_categories(cls, value):
        return [] if value is None else value

    @field_validator("registration_fees", mode="before")
    @classmethod
    def null_fees(cls, value):
        return {} if value is None else value

    # Amounts go over the wire as JSON numbers, not strings
    @field_serializer("distance")
    def serialize_distance(self, distance: Optional[Decimal]) -> Optional[float]:
        return float(distance) if distance is not None else None

    @field_serializer("registration_fees")
    def serialize_fees(self, fees: dict[str, Decimal]) -> dict[str, float]:
        return {category: float(amount) for category, amount in fees.items()}
