from app.models.event import Event, EVENT_STATUSES

__all__ = ["Event", "EVENT_STATUSES"]
