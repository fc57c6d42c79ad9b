"""
Webhook payload normalization.

Monday.com delivers item events in two shapes:

- legacy: ``{"event": {"type": "create_item", "data": {"item_id": ..., ...}}}``
- flattened: ``{"event": {"type": "create_pulse", "pulseId": ..., "pulseName": ...}}``

Both are mapped onto one CanonicalEvent. A payload with a ``challenge`` is a
webhook registration handshake and is returned as a Challenge before
anything else is looked at.
"""
import enum
from dataclasses import dataclass
from typing import Any, assert_never

from pydantic import BaseModel

from batchcode.exceptions import MalformedPayload


class EventType(str, enum.Enum):
    """Canonical event types."""
    CREATE_ITEM = "create_item"
    UPDATE_ITEM = "update_item"


class VendorSchema(str, enum.Enum):
    """Payload shapes Monday.com has used for item events."""
    LEGACY = "legacy"
    FLATTENED = "flattened"


# Vendor event type -> canonical type; anything missing is not applicable
EVENT_TYPES: dict[str, EventType] = {
    "create_item": EventType.CREATE_ITEM,
    "create_pulse": EventType.CREATE_ITEM,
    "update_item": EventType.UPDATE_ITEM,
    "update_column_value": EventType.UPDATE_ITEM,
    "change_column_value": EventType.UPDATE_ITEM,
    "change_specific_column_value": EventType.UPDATE_ITEM,
    "update_name": EventType.UPDATE_ITEM,
    "change_name": EventType.UPDATE_ITEM,
}


class ColumnValue(BaseModel):
    column_id: str
    value: Any = None
    text: str | None = None


class CanonicalEvent(BaseModel):
    """Item event independent of the vendor payload shape."""
    type: EventType
    item_id: str
    item_name: str | None = None
    board_id: str
    group_id: str | None = None
    column_values: list[ColumnValue] = []


@dataclass(frozen=True)
class Challenge:
    token: Any


@dataclass(frozen=True)
class NotApplicable:
    event_type: str
    reason: str
    item_id: str | None = None


NormalizedPayload = Challenge | NotApplicable | CanonicalEvent


def _as_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def detect_schema(event: dict) -> VendorSchema:
    if isinstance(event.get("data"), dict):
        return VendorSchema.LEGACY
    return VendorSchema.FLATTENED


def raw_event_type(payload: Any) -> str:
    """Best-effort event type for logging, before validation."""
    if isinstance(payload, dict) and isinstance(payload.get("event"), dict):
        event_type = payload["event"].get("type")
        if event_type:
            return str(event_type)
    return "unknown"


def raw_item_id(event: dict) -> str | None:
    data = event.get("data") if isinstance(event.get("data"), dict) else {}
    return _as_id(_first(data.get("item_id"), event.get("pulseId"), event.get("itemId")))


def _columns(raw: Any) -> list[ColumnValue]:
    # flattened payloads key values by column id, legacy ones send a list
    if isinstance(raw, dict):
        entries = [
            (column_id, value, value.get("text") if isinstance(value, dict) else None)
            for column_id, value in raw.items()
        ]
    elif isinstance(raw, list):
        entries = [
            (column.get("column_id"), column.get("value"), column.get("text"))
            for column in raw
            if isinstance(column, dict)
        ]
    else:
        return []
    return [
        ColumnValue(column_id=str(column_id), value=value, text=None if text is None else str(text))
        for column_id, value, text in entries
        if column_id is not None
    ]


def _flattened_fields(event: dict) -> dict[str, Any]:
    return {
        "item_id": _first(event.get("pulseId"), event.get("itemId"), event.get("item_id")),
        "item_name": _first(event.get("pulseName"), event.get("item_name"), event.get("itemName")),
        "board_id": _first(event.get("boardId"), event.get("board_id")),
        "group_id": _first(event.get("groupId"), event.get("group_id")),
        "column_values": _columns(event.get("columnValues")),
    }


def _normalize_flattened(event: dict, event_type: EventType) -> CanonicalEvent:
    return _build(event_type, **_flattened_fields(event))


def _normalize_legacy(event: dict, event_type: EventType) -> CanonicalEvent:
    """Explicit data.* fields win; flattened fields fill the gaps."""
    data = event["data"]
    fields = _flattened_fields(event)
    for key in ("item_id", "item_name", "board_id", "group_id"):
        fields[key] = _first(data.get(key), fields[key])
    if data.get("column_values") is not None:
        fields["column_values"] = _columns(data["column_values"])
    return _build(event_type, **fields)


def _build(event_type: EventType, *, item_id, item_name, board_id, group_id, column_values) -> CanonicalEvent:
    item_id = _as_id(item_id)
    board_id = _as_id(board_id)
    missing = [name for name, value in (("item_id", item_id), ("board_id", board_id)) if value is None]
    if missing:
        raise MalformedPayload(
            f"Event {event_type.value} is missing {', '.join(missing)}",
            details={"missing": missing}
        )
    return CanonicalEvent(
        type=event_type,
        item_id=item_id,
        item_name=None if item_name is None else str(item_name),
        board_id=board_id,
        group_id=_as_id(group_id),
        column_values=column_values,
    )


def normalize_event(event: dict, event_type: EventType) -> CanonicalEvent:
    schema = detect_schema(event)
    match schema:
        case VendorSchema.LEGACY:
            return _normalize_legacy(event, event_type)
        case VendorSchema.FLATTENED:
            return _normalize_flattened(event, event_type)
        case _:
            assert_never(schema)


def normalize_payload(payload: Any) -> NormalizedPayload:
    """
    Map a raw webhook body onto a Challenge, a NotApplicable or a CanonicalEvent.

    Raises MalformedPayload when there is no event section, or when a
    recognized event lacks its item or board id.
    """
    if isinstance(payload, dict) and payload.get("challenge") is not None:
        return Challenge(token=payload["challenge"])

    if not isinstance(payload, dict) or not isinstance(payload.get("event"), dict):
        raise MalformedPayload("No event data in webhook payload")

    event = payload["event"]
    vendor_type = event.get("type")
    event_type = EVENT_TYPES.get(vendor_type) if isinstance(vendor_type, str) else None
    if event_type is None:
        return NotApplicable(
            event_type=raw_event_type(payload),
            reason="Event type not processed",
            item_id=raw_item_id(event),
        )

    return normalize_event(event, event_type)
