"""
Event resolution for device status requests.

Selects the newest unexpired record for a device and decodes it into an
Event. Empty results, fully expired results and undecodable records all
surface as the same "No events found" error; undecodable records are
additionally counted on the unmarshal failure counter.
"""

import logging
import time
from typing import Callable, List, Optional

from shared.errors import EventDecodeError, NoEventsFoundError, QueryFailedError
from shared.metrics import Measures
from shared.models import Event, Record
from shared.record_source import RecordSource

logger = logging.getLogger(__name__)


class EventResolver:
    """Turns record source results into a classified outcome."""

    def __init__(self, record_source: RecordSource, measures: Measures,
                 clock: Callable[[], float] = time.time):
        self.record_source = record_source
        self.measures = measures
        self.clock = clock

    def _get_records(self, device_id: str, limit: int, deadline: Optional[float]) -> List[Record]:
        if not device_id:
            raise NoEventsFoundError(device_id)

        try:
            records = self.record_source.get_records(device_id, limit, deadline=deadline)
        except Exception as e:
            logger.error(
                f"Failed to get records for device {device_id}",
                extra={'device_id': device_id, 'error': str(e), 'error_type': type(e).__name__}
            )
            raise QueryFailedError(device_id, e) from e

        if not records:
            logger.info(f"No records found for device {device_id}", extra={'device_id': device_id})
            raise NoEventsFoundError(device_id)

        return records

    def _decode(self, record: Record) -> Event:
        try:
            return Event.from_json(record.data)
        except EventDecodeError as e:
            self.measures.unmarshal_failure.inc()
            logger.error(
                f"Failed to decode event from record {record.id}",
                extra={'device_id': record.device_id, 'record_id': record.id, 'error': str(e)}
            )
            raise

    def resolve(self, device_id: str, limit: int, deadline: Optional[float] = None) -> Event:
        """
        Resolve the last known event for a device.

        Args:
            device_id: Device identifier
            limit: Maximum number of candidate records to fetch
            deadline: Absolute Unix time passed through to the record source

        Returns:
            The decoded event of the newest unexpired record

        Raises:
            NoEventsFoundError: No usable record exists (404)
            QueryFailedError: The record source failed (500)
        """
        records = self._get_records(device_id, limit, deadline)

        now = self.clock()
        selected = next((record for record in records if not record.is_expired(now)), None)
        if selected is None:
            logger.info(f"All records expired for device {device_id}", extra={'device_id': device_id})
            raise NoEventsFoundError(device_id)

        try:
            return self._decode(selected)
        except EventDecodeError:
            raise NoEventsFoundError(device_id)

    def resolve_all(self, device_id: str, limit: int, deadline: Optional[float] = None) -> List[Event]:
        """
        Resolve every decodable unexpired event among the fetched records.

        Records that fail to decode are counted and skipped.

        Raises:
            NoEventsFoundError: No usable record exists (404)
            QueryFailedError: The record source failed (500)
        """
        records = self._get_records(device_id, limit, deadline)

        now = self.clock()
        events = []
        for record in records:
            if record.is_expired(now):
                continue
            try:
                events.append(self._decode(record))
            except EventDecodeError:
                continue

        if not events:
            raise NoEventsFoundError(device_id)
        return events
