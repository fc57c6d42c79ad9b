"""
Tests for webhook payload normalization
"""
import pytest

from batchcode.exceptions import MalformedPayload
from batchcode.services.normalizer import (
    CanonicalEvent,
    Challenge,
    EventType,
    NotApplicable,
    VendorSchema,
    detect_schema,
    normalize_event,
    normalize_payload,
)


class TestFlattenedSchema:
    """Current Monday.com payload shape"""

    def test_create_pulse_normalizes_to_create_item(self):
        payload = {
            "event": {
                "type": "create_pulse",
                "pulseId": 123,
                "pulseName": "Widget",
                "boardId": 456,
                "groupId": "g1",
            }
        }

        event = normalize_payload(payload)

        assert isinstance(event, CanonicalEvent)
        assert event.type == EventType.CREATE_ITEM
        assert event.item_id == "123"
        assert event.item_name == "Widget"
        assert event.board_id == "456"
        assert event.group_id == "g1"
        assert event.column_values == []

    def test_item_name_field_is_accepted(self):
        payload = {"event": {"type": "create_pulse", "pulseId": 1, "item_name": "Crate", "boardId": 2}}

        event = normalize_payload(payload)

        assert event.item_name == "Crate"

    def test_column_values_mapping_becomes_list(self):
        payload = {
            "event": {
                "type": "create_pulse",
                "pulseId": 1,
                "boardId": 2,
                "columnValues": {"status": {"label": "Done", "text": "Done"}, "text0": "abc"},
            }
        }

        event = normalize_payload(payload)

        columns = {column.column_id: column for column in event.column_values}
        assert columns["status"].text == "Done"
        assert columns["text0"].value == "abc"

    @pytest.mark.parametrize("vendor_type", ["update_column_value", "change_column_value", "update_name"])
    def test_update_events_map_to_update_item(self, vendor_type):
        payload = {"event": {"type": vendor_type, "pulseId": 9, "boardId": 8}}

        event = normalize_payload(payload)

        assert event.type == EventType.UPDATE_ITEM


class TestLegacySchema:
    """Explicit data.* payload shape"""

    def test_legacy_fields(self):
        payload = {
            "event": {
                "type": "create_item",
                "data": {
                    "item_id": "77",
                    "board_id": "88",
                    "group_id": "topics",
                    "item_name": "Pallet",
                    "column_values": [{"column_id": "text0", "value": "x", "text": "x"}],
                }
            }
        }

        event = normalize_payload(payload)

        assert event.type == EventType.CREATE_ITEM
        assert event.item_id == "77"
        assert event.board_id == "88"
        assert event.group_id == "topics"
        assert event.item_name == "Pallet"
        assert event.column_values[0].column_id == "text0"

    def test_legacy_fields_win_over_flattened(self):
        payload = {
            "event": {
                "type": "create_item",
                "pulseId": 1,
                "pulseName": "Flat name",
                "boardId": 2,
                "data": {"item_id": "10", "board_id": "20", "item_name": "Legacy name"},
            }
        }

        event = normalize_payload(payload)

        assert event.item_id == "10"
        assert event.board_id == "20"
        assert event.item_name == "Legacy name"

    def test_flattened_fields_fill_legacy_gaps(self):
        payload = {
            "event": {
                "type": "create_item",
                "pulseName": "Flat name",
                "groupId": "g2",
                "data": {"item_id": "10", "board_id": "20"},
            }
        }

        event = normalize_payload(payload)

        assert event.item_name == "Flat name"
        assert event.group_id == "g2"


class TestNotApplicable:
    """Events the service does not act on"""

    def test_unrecognized_event_type(self):
        payload = {"event": {"type": "create_update", "pulseId": 5, "boardId": 6}}

        result = normalize_payload(payload)

        assert isinstance(result, NotApplicable)
        assert result.event_type == "create_update"
        assert result.item_id == "5"

    def test_missing_event_type(self):
        result = normalize_payload({"event": {"pulseId": 5}})

        assert isinstance(result, NotApplicable)
        assert result.event_type == "unknown"


class TestChallenge:
    """Webhook registration handshake"""

    def test_challenge_is_returned_verbatim(self):
        result = normalize_payload({"challenge": "3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P"})

        assert result == Challenge(token="3eZbrw1aBm2rZgRNFdxV2595E9CY3gmdALWMmHkvFXO7tYXAYM8P")

    def test_challenge_wins_over_invalid_event(self):
        result = normalize_payload({"challenge": "abc", "event": {"type": "create_item", "data": {}}})

        assert isinstance(result, Challenge)
        assert result.token == "abc"


class TestMalformed:
    """Structurally invalid payloads"""

    @pytest.mark.parametrize("payload", [{}, {"event": None}, {"event": "create_item"}, [], "x"])
    def test_missing_event_section(self, payload):
        with pytest.raises(MalformedPayload):
            normalize_payload(payload)

    def test_recognized_event_without_item_id(self):
        payload = {"event": {"type": "create_item", "data": {"board_id": "1"}}}

        with pytest.raises(MalformedPayload) as exc_info:
            normalize_payload(payload)

        assert exc_info.value.details["missing"] == ["item_id"]


def test_every_vendor_schema_is_handled():
    events = {
        VendorSchema.LEGACY: {"type": "create_item", "data": {"item_id": "1", "board_id": "2"}},
        VendorSchema.FLATTENED: {"type": "create_pulse", "pulseId": "1", "boardId": "2"},
    }
    assert set(events) == set(VendorSchema)

    for schema, event in events.items():
        assert detect_schema(event) == schema
        assert normalize_event(event, EventType.CREATE_ITEM).item_id == "1"
