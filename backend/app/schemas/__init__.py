from app.schemas.event import (
    EventCreate,
    EventDescriptionUpdate,
    EventResponse,
    EventStatus,
    EventUpdate,
)

__all__ = [
    "EventCreate", "EventUpdate", "EventDescriptionUpdate",
    "EventResponse", "EventStatus",
]
