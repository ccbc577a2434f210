"""
Unit tests for Fleet Status API data models.
"""

import base64
import json
import pytest
from decimal import Decimal
from boto3.dynamodb.types import Binary

from shared.errors import EventDecodeError
from shared.models import Event, Record, encode_events


class TestEventDecoding:
    """Test decoding stored record data into events."""

    def test_from_json_full_document(self):
        """Test decoding a complete event document."""
        raw = json.dumps({
            'id': 1234,
            'time': 567890974,
            'src': 'test source',
            'dest': '/test/online',
            'partner_ids': ['test1', 'test2'],
            'transaction_uuid': 'abc-123',
            'payload': base64.b64encode(b'{"up-time": "16m46.6s"}').decode('ascii'),
            'details': {'boot-time': 1550000000}
        }).encode('utf-8')

        event = Event.from_json(raw)

        assert event.id == 1234
        assert event.time == 567890974
        assert event.source == 'test source'
        assert event.destination == '/test/online'
        assert event.partner_ids == ['test1', 'test2']
        assert event.transaction_uuid == 'abc-123'
        assert event.payload == b'{"up-time": "16m46.6s"}'
        assert event.details == {'boot-time': 1550000000}

    def test_from_json_missing_fields_use_defaults(self):
        """Test that absent fields decode to zero values."""
        event = Event.from_json(b'{"id": 7}')

        assert event == Event(id=7)

    def test_from_json_null_collections(self):
        """Test that null partner ids, payload and details are accepted."""
        event = Event.from_json(b'{"partner_ids": null, "payload": null, "details": null}')

        assert event.partner_ids == []
        assert event.payload == b''
        assert event.details == {}

    @pytest.mark.parametrize('raw', [
        b'""',
        b'[]',
        b'42',
        b'not json',
        b'{"id": "1234"}',
        b'{"id": true}',
        b'{"partner_ids": "test1"}',
        b'{"partner_ids": [1, 2]}',
        b'{"payload": "***"}',
        b'{"payload": "abc"}',
        b'',
        b'\xff\xfe',
        b'{"details": {"x": NaN}}',
        b'{"details": {"x": Infinity}}',
        b'{"details": {"x": -Infinity}}',
        b'{"details": {"x": 1e999}}',
    ])
    def test_from_json_invalid(self, raw):
        """Test that malformed documents raise EventDecodeError."""
        with pytest.raises(EventDecodeError):
            Event.from_json(raw)

    def test_from_json_deeply_nested(self):
        """Test that nesting beyond the parser's recursion limit is a decode error."""
        raw = b'{"details": {"a": ' + b'[' * 100000 + b']' * 100000 + b'}}'

        with pytest.raises(EventDecodeError):
            Event.from_json(raw)

    def test_from_json_finite_floats_allowed(self):
        """Test that ordinary floats in details still decode."""
        event = Event.from_json(b'{"details": {"voltage": 3.25, "drift": -1.5e-3}}')

        assert event.details == {'voltage': 3.25, 'drift': -1.5e-3}

    def test_event_decode_error_is_value_error(self):
        """Test that decode errors can be handled as ValueError."""
        with pytest.raises(ValueError):
            Event.from_json(b'""')


class TestEventEncoding:
    """Test canonical event encoding."""

    def test_to_json_is_compact_in_field_order(self):
        """Test canonical encoding layout."""
        event = Event(id=1, time=2, source='s', destination='d', partner_ids=['p'], payload=b'hi')

        assert event.to_json() == b'{"id":1,"time":2,"src":"s","dest":"d","partner_ids":["p"],"payload":"aGk="}'

    def test_to_json_omits_empty_optional_fields(self):
        """Test that empty transaction uuid, payload and details are omitted."""
        data = json.loads(Event(id=1).to_json())

        assert data == {'id': 1, 'time': 0, 'src': '', 'dest': '', 'partner_ids': []}

    def test_round_trip_reproduces_event(self, good_event):
        """Test that decoding the canonical encoding reproduces the event."""
        assert Event.from_json(good_event.to_json()) == good_event

    def test_to_json_rejects_non_finite_numbers(self):
        """Test that the canonical encoding never emits NaN or Infinity."""
        with pytest.raises(ValueError):
            Event(id=1, details={'x': float('nan')}).to_json()
        with pytest.raises(ValueError):
            encode_events([Event(id=1, details={'x': float('inf')})])

    def test_encode_events(self, good_event):
        """Test encoding a list of events as a JSON array."""
        encoded = encode_events([good_event, Event(id=2)])

        data = json.loads(encoded)
        assert [item['id'] for item in data] == [1234, 2]
        assert data[0] == json.loads(good_event.to_json())


class TestRecord:
    """Test stored record model."""

    def test_is_expired(self):
        """Test expiry boundaries."""
        record = Record(death_date=1000)

        assert record.is_expired(1001)
        assert record.is_expired(1000)
        assert not record.is_expired(999)

    def test_unset_death_date_is_expired(self):
        """Test that a zero death date is treated as expired."""
        assert Record().is_expired(1)

    def test_from_item_converts_dynamodb_types(self):
        """Test conversion of Decimal numbers and Binary payloads."""
        item = {
            'device_id': 'mac:112233445566',
            'record_id': Decimal('1234'),
            'birth_date': Decimal('1550000000'),
            'death_date': Decimal('1650000000'),
            'data': Binary(b'{"id": 1234}')
        }

        record = Record.from_item(item)

        assert record == Record(
            id=1234,
            device_id='mac:112233445566',
            birth_date=1550000000,
            death_date=1650000000,
            data=b'{"id": 1234}'
        )

    def test_from_item_string_data_and_missing_fields(self):
        """Test that string data is encoded and missing fields default."""
        record = Record.from_item({'device_id': 'mac:112233445566', 'data': '{"id": 1}'})

        assert record.id == 0
        assert record.death_date == 0
        assert record.data == b'{"id": 1}'
