"""
Unit tests for event schemas and validation error formatting.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.core.errors import format_validation_errors
from app.db.types import DecimalMap
from app.schemas.event import EventCreate, EventResponse
from app.services.event_service import is_description_patch


def _payload(**overrides) -> dict:
    payload = {
        "name": "Harbor Half",
        "event_date": "2025-10-12",
        "event_time": "05:30",
        "location": "Harbor Front",
        "categories": ["10K", "Half Marathon"],
        "registration_fees": {"10K": "25.50", "Half Marathon": 40},
        "status": "upcoming",
    }
    payload.update(overrides)
    return payload


def test_create_defaults():
    event = EventCreate.model_validate(_payload())
    assert event.event_date == date(2025, 10, 12)
    assert event.registration_fees == {"10K": Decimal("25.50"), "Half Marathon": Decimal("40")}
    assert event.is_leg is False
    assert event.leg_number is None
    assert event.parent_event_id is None
    assert event.description is None


def test_null_fees_become_empty_map():
    event = EventCreate.model_validate(_payload(registration_fees=None))
    assert event.registration_fees == {}


def test_fees_may_cover_a_subset_of_categories():
    event = EventCreate.model_validate(_payload(registration_fees={"10K": 10}))
    assert list(event.registration_fees) == ["10K"]


def test_fee_keys_must_be_categories():
    with pytest.raises(ValidationError) as exc_info:
        EventCreate.model_validate(_payload(registration_fees={"Ultra": 90}))
    assert "registration_fees" in format_validation_errors(exc_info.value.errors())


def test_fee_precision_limited_to_cents():
    with pytest.raises(ValidationError):
        EventCreate.model_validate(_payload(registration_fees={"10K": "10.005"}))


def test_negative_leg_number_rejected():
    with pytest.raises(ValidationError):
        EventCreate.model_validate(_payload(leg_number=-1))


def test_blank_category_rejected():
    with pytest.raises(ValidationError) as exc_info:
        EventCreate.model_validate(_payload(categories=[""], registration_fees={}))
    assert "categories.0" in format_validation_errors(exc_info.value.errors())


def test_response_serializes_amounts_as_numbers():
    now = datetime(2025, 1, 1, 12, 0, 0)
    response = EventResponse(
        id=7,
        name="Harbor Half",
        event_date=date(2025, 10, 12),
        event_time="05:30",
        location="Harbor Front",
        distance=Decimal("21.10"),
        categories=["Half Marathon"],
        registration_fees={"Half Marathon": Decimal("40.00")},
        description=None,
        status="upcoming",
        is_leg=False,
        leg_number=None,
        parent_event_id=None,
        created_at=now,
        updated_at=now,
    )
    data = response.model_dump(mode="json")
    assert data["distance"] == 21.1
    assert data["registration_fees"] == {"Half Marathon": 40.0}
    assert data["event_date"] == "2025-10-12"


def test_response_tolerates_null_structured_columns():
    now = datetime(2025, 1, 1, 12, 0, 0)
    response = EventResponse.model_validate({
        "id": 1, "name": "Old row", "event_date": "2020-01-01", "event_time": "07:00",
        "location": "Somewhere", "distance": None, "categories": None,
        "registration_fees": None, "description": None, "status": "finished",
        "is_leg": False, "leg_number": None, "parent_event_id": None,
        "created_at": now, "updated_at": now,
    })
    assert response.categories == []
    assert response.registration_fees == {}


def test_format_validation_errors_strips_location_prefix():
    errors = [
        {"loc": ("body", "name"), "msg": "Field required"},
        {"loc": ("body", "registration_fees", "5K"), "msg": "Input should be greater than or equal to 0"},
        {"loc": ("body", "name"), "msg": "second message"},
        {"loc": ("body",), "msg": "Field required"},
    ]
    assert format_validation_errors(errors) == {
        "name": ["Field required", "second message"],
        "registration_fees.5K": ["Input should be greater than or equal to 0"],
        "body": ["Field required"],
    }


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"description": "x"}, True),
        ({"description": None}, True),
        ({"description": "x", "name": "y"}, False),
        ({"name": "y"}, False),
        ({}, False),
    ],
)
def test_is_description_patch(payload, expected):
    assert is_description_patch(payload) is expected


def test_decimal_map_rounds_to_cents():
    column_type = DecimalMap()
    stored = column_type.process_bind_param({"5K": Decimal("20"), "10K": Decimal("25.499")}, None)
    assert stored == {"5K": 20.0, "10K": 25.5}
    loaded = column_type.process_result_value(stored, None)
    assert loaded == {"5K": Decimal("20.00"), "10K": Decimal("25.50")}
