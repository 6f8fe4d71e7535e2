#!/usr/bin/env python3
"""
Constants used throughout the Quote Router CDK application.
This file contains named constants to ensure consistency across stacks and constructs.
"""

from typing import Dict


# General constants
APP_NAME = "quote-router"
APP_PREFIX = "qr"


# Resource naming patterns
class ResourceNames:
    """Standard naming patterns for resources"""

    # Format: {app_prefix}-{resource_type}-{name}-{environment}
    @staticmethod
    def format(resource_type: str, name: str, environment: str) -> str:
        """Format a resource name using standard pattern"""
        return f"{APP_PREFIX}-{resource_type}-{name}-{environment}"

    @staticmethod
    def lambda_name(name: str, environment: str) -> str:
        """Format a Lambda function name"""
        return ResourceNames.format("lambda", name, environment)

    @staticmethod
    def api_name(name: str, environment: str) -> str:
        """Format an API Gateway name"""
        return ResourceNames.format("api", name, environment)


# Default tags to apply to all resources
DEFAULT_TAGS: Dict[str, str] = {
    "Project": APP_NAME,
    "ManagedBy": "CDK",
}


# Lambda constants
class Lambda:
    """Lambda related constants"""

    DEFAULT_MEMORY_SIZE = 256
    # Matches the API Gateway integration timeout so outbound calls are
    # capped by the same deadline the caller sees
    DEFAULT_TIMEOUT_SECONDS = 29
    ENTRY = "lambdas/api/quote_router"
    HANDLER = "index.lambda_handler"

    POWERTOOLS_SERVICE_NAME = "quote-router"
    POWERTOOLS_METRICS_NAMESPACE = "QuoteRouter"


# API Gateway constants
class ApiGateway:
    """API Gateway related constants"""

    STAGE_NAME = "v1"
    THROTTLING_RATE_LIMIT = 100
    THROTTLING_BURST_LIMIT = 200
