"""Tests for event projection."""

import pytest

from amplitude_bq.etl.projector import ProjectedRow, project, serialize_blob
from amplitude_bq.schemas.raw_event import RawEvent

from conftest import event_dict


def _event(**overrides) -> RawEvent:
    return RawEvent.model_validate(event_dict(**overrides))


@pytest.mark.parametrize("user_id", ["", None])
def test_events_without_user_id_are_skipped(user_id):
    assert project(_event(user_id=user_id)) is None


def test_projects_five_columns_in_order():
    row = project(_event(
        user_id="user-42",
        event_type="purchase",
        event_time="2024-01-01 12:34:56.789000",
        event_properties={"amount": 9.5, "currency": "EUR"},
        user_properties={"plan": "pro"},
    ))

    assert row == ProjectedRow(
        event_time="2024-01-01 12:34:56.789000",
        event_type="purchase",
        user_id="user-42",
        event_properties='{"amount":9.5,"currency":"EUR"}',
        user_properties='{"plan":"pro"}',
    )
    assert row.as_list() == [
        "2024-01-01 12:34:56.789000",
        "purchase",
        "user-42",
        '{"amount":9.5,"currency":"EUR"}',
        '{"plan":"pro"}',
    ]


def test_absent_blob_projects_to_empty_text():
    data = event_dict()
    del data["user_properties"]

    row = project(RawEvent.model_validate(data))

    assert row.user_properties == ""


def test_null_blob_projects_to_null_text():
    row = project(_event(event_properties=None))

    assert row.event_properties == "null"


def test_non_ascii_text_is_preserved():
    row = project(_event(event_properties={"city": "München"}))

    assert row.event_properties == '{"city":"München"}'


def test_other_fields_are_ignored():
    a = project(_event(country="Germany", platform="Web"))
    b = project(_event(country="France", platform="iOS"))

    assert a == b


def test_serialize_blob_is_compact():
    assert serialize_blob({"a": [1, 2], "b": {"c": True}}) == '{"a":[1,2],"b":{"c":true}}'
