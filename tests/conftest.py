"""
Pytest configuration and shared fixtures for Fleet Status API tests.
"""

import pytest
import json
import os
import sys
import time
from typing import Dict, Any
from unittest.mock import Mock

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

# Set test environment variables
os.environ['DATA_TABLE_NAME'] = 'test-fleet-device-records'
os.environ['GET_LIMIT'] = '5'
os.environ['CLOUDWATCH_NAMESPACE'] = 'Test/FleetStatusAPI'
os.environ['METRICS_ENABLED'] = 'false'
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

from shared.models import Event, Record

DEVICE_ID = 'mac:48f7c0d79024'

@pytest.fixture
def good_event() -> Event:
    """Sample online event for a device."""
    return Event(
        id=1234,
        time=567890974,
        source='test source',
        destination='/test/online',
        partner_ids=['test1', 'test2'],
        payload=json.dumps({
            'id': DEVICE_ID,
            'ts': '2019-02-14T21:19:02.614191735Z',
            'bytes-sent': 0,
            'messages-sent': 1,
            'bytes-received': 0,
            'messages-received': 0,
            'connected-at': '2018-11-22T21:19:02.614191735Z',
            'up-time': '16m46.6s',
            'reason-for-close': 'ping miss'
        }).encode('utf-8')
    )

@pytest.fixture
def future_time() -> int:
    """Death date roughly a month in the future."""
    return int(time.time()) + 50000 * 60

@pytest.fixture
def previous_time() -> int:
    """Death date in the past (2019-02-13T21:19:02Z)."""
    return 1550092742

@pytest.fixture
def good_record(good_event, future_time) -> Record:
    """Unexpired record holding the good event."""
    return Record(id=1234, device_id=DEVICE_ID, death_date=future_time, data=good_event.to_json())

@pytest.fixture
def bad_record(future_time) -> Record:
    """Unexpired record whose data is a JSON string rather than an event."""
    return Record(id=99, device_id=DEVICE_ID, death_date=future_time, data=json.dumps('').encode('utf-8'))

@pytest.fixture
def status_event() -> Dict[str, Any]:
    """Sample API Gateway event for the status endpoint."""
    return {
        "httpMethod": "GET",
        "path": f"/{DEVICE_ID}/status",
        "queryStringParameters": None,
        "pathParameters": {"deviceID": DEVICE_ID},
        "headers": {
            "Accept": "application/json"
        },
        "requestContext": {"requestId": "test-request-id"},
        "body": None,
        "isBase64Encoded": False
    }

@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.function_name = "test-function"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-function"
    context.memory_limit_in_mb = 512
    context.get_remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id"
    return context

@pytest.fixture
def mock_record_source():
    """Mock record source returning no records by default."""
    source = Mock()
    source.get_records.return_value = []
    return source
