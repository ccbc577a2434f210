"""
Metrics for the Fleet Status API.

Counters are process-wide and may be incremented from many request threads,
so increments are serialized with a lock. Each increment is optionally
forwarded to a publisher such as CloudWatch.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional
import boto3

logger = logging.getLogger(__name__)

UNMARSHAL_FAILURE_COUNTER = 'unmarshal_failure_count'

Publisher = Callable[[str, float], None]


class Counter:
    """Monotonically increasing counter with atomic increments."""

    def __init__(self, name: str, publisher: Optional[Publisher] = None):
        self.name = name
        self._publisher = publisher
        self._value = 0.0
        self._lock = threading.Lock()

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def inc(self, amount: float = 1.0) -> None:
        """
        Increment the counter.

        Args:
            amount: Non-negative increment

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError("Counter increments must be non-negative")

        with self._lock:
            self._value += amount

        if self._publisher is not None:
            self._publisher(self.name, amount)


class Measures:
    """Bundle of the counters used by the event resolver."""

    def __init__(self, publisher: Optional[Publisher] = None):
        self.unmarshal_failure = Counter(UNMARSHAL_FAILURE_COUNTER, publisher)

    def snapshot(self) -> Dict[str, float]:
        """Current counter values keyed by metric name."""
        return {self.unmarshal_failure.name: self.unmarshal_failure.value}


class CloudWatchPublisher:
    """Publishes counter increments to CloudWatch."""

    def __init__(self, namespace: str, dimensions: Dict[str, str] = None):
        self.namespace = namespace
        self.dimensions = dimensions or {}
        self._client = None
        self._client_lock = threading.Lock()

    def _get_client(self):
        """Get CloudWatch client with lazy initialization."""
        with self._client_lock:
            if self._client is None:
                try:
                    self._client = boto3.client('cloudwatch')
                except Exception as e:
                    logger.warning(f"Failed to initialize CloudWatch client: {e}")
                    self._client = None
            return self._client

    def __call__(self, metric_name: str, value: float) -> None:
        """
        Publish a single metric datum.

        Publishing failures are logged and never propagate to the caller.
        """
        try:
            cw_client = self._get_client()
            if cw_client is None:
                logger.debug(f"CloudWatch client not available, skipping metric: {metric_name} = {value}")
                return

            metric_data = {
                'MetricName': metric_name,
                'Value': value,
                'Unit': 'Count',
                'Timestamp': time.time()
            }

            if self.dimensions:
                metric_data['Dimensions'] = [
                    {'Name': key, 'Value': dim_value} for key, dim_value in self.dimensions.items()
                ]

            cw_client.put_metric_data(
                Namespace=self.namespace,
                MetricData=[metric_data]
            )

            logger.debug(f"Published CloudWatch metric: {metric_name} = {value}")

        except Exception as e:
            logger.warning(f"Failed to publish CloudWatch metric {metric_name}: {e}")
