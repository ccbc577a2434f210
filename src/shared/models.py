"""
Shared data models and validation schemas for the Fleet Status API.

This module contains the stored Record representation, the caller-facing
Event, and the JSON schema used to validate event payloads before decoding.
"""

import base64
import binascii
import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Any, Optional, List
import jsonschema
from jsonschema import ValidationError
from boto3.dynamodb.types import Binary

from shared.errors import EventDecodeError

# JSON Schema for a stored event document
EVENT_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {
            "type": "integer",
            "description": "Event identifier, tied to the source record id"
        },
        "time": {
            "type": "integer",
            "description": "Unix timestamp of when the event occurred"
        },
        "src": {
            "type": "string",
            "description": "Event origin, e.g. device address"
        },
        "dest": {
            "type": "string",
            "description": "Event target, e.g. logical topic"
        },
        "partner_ids": {
            "type": ["array", "null"],
            "items": {"type": "string"},
            "description": "Owning partners/tenants in order"
        },
        "transaction_uuid": {
            "type": "string"
        },
        "payload": {
            "type": ["string", "null"],
            "pattern": "^[A-Za-z0-9+/]*={0,2}$",
            "description": "Base64 encoded raw event content"
        },
        "details": {
            "type": ["object", "null"]
        }
    }
}


@dataclass(frozen=True)
class Record:
    """
    A stored observation for a device.

    Records whose death date is not strictly in the future are expired,
    including records with an unset (zero) death date.
    """
    id: int = 0
    device_id: str = ''
    birth_date: int = 0
    death_date: int = 0
    data: bytes = b''

    def is_expired(self, now: float) -> bool:
        """Check whether the record must no longer be served."""
        return self.death_date <= now

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'Record':
        """
        Create a Record from a raw DynamoDB item.

        Args:
            item: DynamoDB item as returned by the boto3 resource API

        Returns:
            Record instance
        """
        return cls(
            id=_to_int(item.get('record_id', 0)),
            device_id=item.get('device_id', ''),
            birth_date=_to_int(item.get('birth_date', 0)),
            death_date=_to_int(item.get('death_date', 0)),
            data=_to_bytes(item.get('data', b''))
        )


@dataclass(frozen=True)
class Event:
    """
    Decoded, caller-facing representation of a device's last known state.
    """
    id: int = 0
    time: int = 0
    source: str = ''
    destination: str = ''
    partner_ids: List[str] = field(default_factory=list)
    transaction_uuid: str = ''
    payload: bytes = b''
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        """Create Event from dictionary with validation."""
        try:
            jsonschema.validate(data, EVENT_SCHEMA)
        except ValidationError as e:
            raise EventDecodeError(f"Invalid event format: {e.message}")
        except RecursionError:
            raise EventDecodeError("Event document is nested too deeply")

        encoded_payload = data.get('payload') or ''
        try:
            payload = base64.b64decode(encoded_payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EventDecodeError(f"Invalid base64 payload: {e}")

        return cls(
            id=int(data.get('id', 0)),
            time=int(data.get('time', 0)),
            source=data.get('src', ''),
            destination=data.get('dest', ''),
            partner_ids=list(data.get('partner_ids') or []),
            transaction_uuid=data.get('transaction_uuid', ''),
            payload=payload,
            details=dict(data.get('details') or {})
        )

    @classmethod
    def from_json(cls, raw: bytes) -> 'Event':
        """
        Decode stored record data into an Event.

        Args:
            raw: JSON document as bytes or str

        Returns:
            Decoded Event

        Raises:
            EventDecodeError: If the data is not a valid event document
        """
        try:
            data = json.loads(raw, parse_constant=_reject_constant, parse_float=_parse_finite_float)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            raise EventDecodeError(f"Malformed event JSON: {e}")
        except RecursionError:
            raise EventDecodeError("Event JSON is nested too deeply")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary in canonical field order."""
        result = {
            'id': self.id,
            'time': self.time,
            'src': self.source,
            'dest': self.destination,
            'partner_ids': list(self.partner_ids)
        }
        if self.transaction_uuid:
            result['transaction_uuid'] = self.transaction_uuid
        if self.payload:
            result['payload'] = base64.b64encode(self.payload).decode('ascii')
        if self.details:
            result['details'] = dict(self.details)
        return result

    def to_json(self) -> bytes:
        """Canonical byte encoding used as the HTTP response body."""
        return json.dumps(self.to_dict(), separators=(',', ':'), allow_nan=False).encode('utf-8')


def encode_events(events: List[Event]) -> bytes:
    """Encode a list of events as a JSON array of canonical event objects."""
    return json.dumps([event.to_dict() for event in events], separators=(',', ':'), allow_nan=False).encode('utf-8')


def _to_int(value: Any) -> int:
    if isinstance(value, Decimal):
        return int(value)
    return int(value or 0)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, Binary):
        return bytes(value.value)
    if isinstance(value, str):
        return value.encode('utf-8')
    if value is None:
        return b''
    return bytes(value)


def _reject_constant(name: str) -> float:
    raise EventDecodeError(f"Non-standard JSON constant: {name}")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise EventDecodeError(f"Number out of range: {text}")
    return value
