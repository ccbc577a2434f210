"""
Fleet Status API Lambda Function

This function handles GET requests for the last known status of a device,
returning the newest unexpired event stored for it.
"""

import json
import logging
import time
import traceback
from typing import Dict, Any, Optional

# Import shared modules
from shared.config import Config
from shared.errors import StatusError, NO_EVENTS_FOUND_MESSAGE
from shared.metrics import Measures, CloudWatchPublisher
from shared.models import encode_events
from shared.record_source import DynamoRecordSource
from shared.resolver import EventResolver
from shared.utils import (
    create_api_response,
    create_error_response,
    get_correlation_id,
    log_request,
    log_response,
    parse_api_gateway_event
)

# Configure structured logging
logger = logging.getLogger()
logger.setLevel(Config().log_level)

class StructuredFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno
        }

        for attribute in ('correlation_id', 'request_id', 'device_id'):
            if hasattr(record, attribute):
                log_entry[attribute] = getattr(record, attribute)

        return json.dumps(log_entry, default=str)

# Set up structured logging
handler = logging.StreamHandler()
handler.setFormatter(StructuredFormatter())
logger.handlers = [handler]


def get_deadline(context: Any) -> Optional[float]:
    """
    Compute the absolute deadline for this invocation from the Lambda context.

    Returns:
        Unix time at which Lambda will stop the invocation, or None without a context
    """
    if context is None or not hasattr(context, 'get_remaining_time_in_millis'):
        return None
    return time.time() + context.get_remaining_time_in_millis() / 1000.0


class StatusHandler:
    """Handles device status requests."""

    def __init__(self, resolver: EventResolver, get_limit: int):
        """
        Initialize status handler.

        Args:
            resolver: Event resolver used to look up device events
            get_limit: Number of candidate records fetched per request
        """
        self.resolver = resolver
        self.get_limit = get_limit

    def handle_request(self, event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        """
        Handle a device status request.

        Args:
            event: API Gateway event
            context: Lambda context

        Returns:
            API Gateway response
        """
        correlation_id = get_correlation_id()
        start_time = time.time()
        request = parse_api_gateway_event(event)
        log_request(correlation_id, request['method'], request['path'])

        response = self._dispatch(request, context, correlation_id)

        processing_time = (time.time() - start_time) * 1000  # milliseconds
        logger.info(
            "Status request processed",
            extra={
                'correlation_id': correlation_id,
                'request_id': request['request_id'],
                'status_code': response['statusCode'],
                'processing_time_ms': processing_time
            }
        )
        log_response(correlation_id, response['statusCode'], response['body'])
        return response

    def _dispatch(self, request: Dict[str, Any], context: Any, correlation_id: str) -> Dict[str, Any]:
        if request['method'] != 'GET':
            return create_error_response(
                405, 'METHOD_NOT_ALLOWED', f"Method {request['method']} not allowed", correlation_id
            )

        device_id = request['path_params'].get('deviceID') or ''
        if not device_id:
            logger.info("Request without device ID", extra={'correlation_id': correlation_id})
            return create_error_response(404, 'NOT_FOUND', NO_EVENTS_FOUND_MESSAGE, correlation_id)

        deadline = get_deadline(context)

        try:
            if request['path'].rstrip('/').endswith('/events'):
                events = self.resolver.resolve_all(device_id, self.get_limit, deadline=deadline)
                body = encode_events(events)
            else:
                body = self.resolver.resolve(device_id, self.get_limit, deadline=deadline).to_json()
        except StatusError as e:
            return self._handle_status_error(e, device_id, correlation_id)
        except Exception as e:
            logger.error(
                "Internal error in status function",
                extra={
                    'correlation_id': correlation_id,
                    'device_id': device_id,
                    'error_type': type(e).__name__,
                    'error_message': str(e),
                    'traceback': traceback.format_exc()
                }
            )
            return create_error_response(500, 'INTERNAL_ERROR', 'Internal server error', correlation_id)

        logger.info(
            f"Successfully retrieved status for device {device_id}",
            extra={'correlation_id': correlation_id, 'device_id': device_id}
        )
        return create_api_response(200, body, correlation_id)

    def _handle_status_error(self, error: StatusError, device_id: str, correlation_id: str) -> Dict[str, Any]:
        if error.status_code == 404:
            logger.info(
                f"No events for device {device_id}",
                extra={'correlation_id': correlation_id, 'device_id': device_id}
            )
            return create_error_response(404, 'NOT_FOUND', error.message, correlation_id)

        logger.error(
            f"Error retrieving status for device {device_id}: {error.message}",
            extra={'correlation_id': correlation_id, 'device_id': device_id}
        )
        return create_error_response(error.status_code, 'INTERNAL_ERROR', 'Internal server error', correlation_id)


# Singleton instance for global use
_status_handler: Optional[StatusHandler] = None


def get_status_handler() -> StatusHandler:
    """
    Get singleton status handler, wiring it from the environment on first use.

    Returns:
        StatusHandler instance
    """
    global _status_handler

    if _status_handler is None:
        config = Config()
        publisher = CloudWatchPublisher(config.cloudwatch_namespace) if config.metrics_enabled else None
        record_source = DynamoRecordSource(config.data_table_name, config.record_source_timeout)
        resolver = EventResolver(record_source, Measures(publisher))
        _status_handler = StatusHandler(resolver, config.get_limit)

    return _status_handler


def reset_status_handler() -> None:
    """Reset singleton instance (mainly for testing)."""
    global _status_handler
    _status_handler = None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for device status requests.

    Args:
        event: API Gateway event
        context: Lambda context

    Returns:
        API Gateway response
    """
    try:
        status_handler = get_status_handler()
    except Exception as e:
        logger.error(f"Failed to initialize status handler: {e}", exc_info=True)
        return create_error_response(500, 'INTERNAL_ERROR', 'Internal server error')

    return status_handler.handle_request(event, context)
