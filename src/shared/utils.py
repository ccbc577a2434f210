"""
Shared utility functions for the Fleet Status API.

This module contains common utilities used by the Lambda functions.
"""

import json
import logging
import uuid
from typing import Dict, Any, Optional, Union

logger = logging.getLogger(__name__)

def get_correlation_id() -> str:
    """Generate a correlation ID for request tracking."""
    return str(uuid.uuid4())

def parse_api_gateway_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse API Gateway event and extract relevant information.

    Args:
        event: API Gateway event

    Returns:
        Parsed event data
    """
    request_context = event.get('requestContext') or {}
    return {
        'method': (event.get('httpMethod') or '').upper(),
        'path': event.get('path') or '',
        'path_params': event.get('pathParameters') or {},
        'headers': event.get('headers') or {},
        'request_id': request_context.get('requestId', 'unknown')
    }

def create_api_response(
    status_code: int,
    body: Union[Dict[str, Any], bytes, str],
    correlation_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Create API Gateway response.

    Args:
        status_code: HTTP status code
        body: Response body; dictionaries are JSON encoded, bytes and strings
              are passed through as already encoded JSON
        correlation_id: Optional correlation ID for tracking
        headers: Optional headers

    Returns:
        API Gateway response
    """
    default_headers = {
        'Content-Type': 'application/json',
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Headers': 'Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token',
        'Access-Control-Allow-Methods': 'GET,OPTIONS'
    }

    if correlation_id:
        default_headers['X-Correlation-ID'] = correlation_id

    if headers:
        default_headers.update(headers)

    if isinstance(body, bytes):
        body = body.decode('utf-8')
    elif not isinstance(body, str):
        body = json.dumps(body)

    return {
        'statusCode': status_code,
        'headers': default_headers,
        'body': body
    }

def create_error_response(status_code: int, code: str, message: str,
                          correlation_id: Optional[str] = None) -> Dict[str, Any]:
    """Create an API Gateway error response with the standard error body."""
    return create_api_response(
        status_code,
        {'error': {'code': code, 'message': message}},
        correlation_id
    )

def log_request(correlation_id: str, method: str, path: str) -> None:
    """Log incoming request details."""
    logger.info(f"[{correlation_id}] {method} {path}", extra={'correlation_id': correlation_id})

def log_response(correlation_id: str, status_code: int, response_body: str = "") -> None:
    """Log response details."""
    logger.info(f"[{correlation_id}] Response: {status_code}", extra={'correlation_id': correlation_id})
    if response_body and len(response_body) < 1000:  # Don't log very large responses
        logger.debug(f"[{correlation_id}] Response body: {response_body}", extra={'correlation_id': correlation_id})
