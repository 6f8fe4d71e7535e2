"""
Loads the DestinationMapping from inline JSON or from Secrets Manager.
"""

import json
from typing import Any, Callable, Optional

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.parameters import get_secret
from aws_lambda_powertools.utilities.parameters.exceptions import GetParameterError
from models.errors import ConfigurationError
from models.internal import DestinationMapping
from pydantic import ValidationError
from settings import RouterSettings

logger = Logger(child=True)


def parse_destination_mapping(raw: Any) -> DestinationMapping:
    """
    Validate a mapping document.

    Args:
        raw: JSON string or already-decoded dict

    Raises:
        ConfigurationError: If the document is not a valid mapping
    """
    try:
        if isinstance(raw, (str, bytes)):
            raw = json.loads(raw)
        return DestinationMapping.model_validate(raw)
    except (ValueError, ValidationError) as e:
        raise ConfigurationError("Destination mapping is invalid", details=str(e))


def load_destination_mapping(
    settings: RouterSettings,
    secret_fetcher: Optional[Callable[..., Any]] = None,
) -> DestinationMapping:
    """
    Load the mapping from exactly one configured source.

    Raises:
        ConfigurationError: If no source or both sources are configured, the
            secret cannot be read, or the document is invalid
    """
    inline = settings.destination_mapping
    secret_id = settings.destination_mapping_secret_id

    if inline and secret_id:
        raise ConfigurationError(
            "Set only one of DESTINATION_MAPPING and DESTINATION_MAPPING_SECRET_ID"
        )

    if inline:
        logger.info("Loading destination mapping from DESTINATION_MAPPING")
        return parse_destination_mapping(inline)

    if secret_id:
        fetch = secret_fetcher or get_secret
        logger.info(f"Loading destination mapping from secret {secret_id}")
        try:
            raw = fetch(secret_id, max_age=settings.mapping_cache_seconds)
        except GetParameterError as e:
            raise ConfigurationError(
                f"Unable to read destination mapping secret {secret_id}",
                details=str(e),
            )
        return parse_destination_mapping(raw)

    raise ConfigurationError(
        "No destination mapping configured",
        details="Set DESTINATION_MAPPING or DESTINATION_MAPPING_SECRET_ID",
    )
