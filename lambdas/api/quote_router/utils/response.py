"""
Response utilities for normalized error results.
"""

import json
import logging
from typing import Optional

from models.errors import RouterError
from models.internal import ForwardResult
from services.backend_client import routing_headers

logger = logging.getLogger(__name__)


def create_error_result(
    error_code: str,
    error_message: str,
    status_code: int = 500,
    details: Optional[str] = None,
    identity: Optional[str] = None,
    host_alias: Optional[str] = None,
) -> ForwardResult:
    """
    Create a normalized error result.

    Args:
        error_code: Machine-readable error code
        error_message: Human-readable error message
        status_code: HTTP status code
        details: Diagnostic detail for the caller
        identity: Routed identity, when known
        host_alias: Resolved host alias, when known

    Returns:
        ForwardResult with a JSON {errorCode, errorMessage, details} body
    """
    logger.warning(f"Error response {status_code} {error_code}: {error_message}")

    headers = {"Content-Type": "application/json"}
    headers.update(routing_headers(identity, host_alias))

    return ForwardResult(
        status_code=status_code,
        body=json.dumps(
            {
                "errorCode": error_code,
                "errorMessage": error_message,
                "details": details or "",
            }
        ),
        headers=headers,
    )


def error_result_for(
    error: RouterError,
    identity: Optional[str] = None,
    host_alias: Optional[str] = None,
) -> ForwardResult:
    return create_error_result(
        error_code=error.error_code,
        error_message=error.message,
        status_code=error.status_code,
        details=error.details,
        identity=identity,
        host_alias=host_alias,
    )
