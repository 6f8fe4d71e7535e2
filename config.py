"""
Deployment configuration for the Quote Router CDK application.

Values come from config.json at the repository root (or the file named by
QUOTE_ROUTER_CONFIG) with environment-variable overrides for CI.
"""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Lambda and CDK log level")


class QuoteRouterConfig(BaseModel):
    """Deployment settings shared by stacks and constructs."""

    environment: str = Field(default="dev", description="Deployment environment")
    resource_prefix: str = Field(default="quote-router", description="Name prefix")
    resource_application_tag: Optional[str] = Field(
        default=None, description="Value for the Application tag"
    )
    destination_mapping_secret_name: str = Field(
        default="quote-router/destination-mapping",
        description="Secrets Manager secret holding the destination mapping",
    )
    token_cache_kms_key_arn: Optional[str] = Field(
        default=None, description="Customer managed key for token parameters"
    )
    token_timeout_seconds: int = 10
    backend_timeout_seconds: int = 30
    token_expiry_margin_seconds: int = 30
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def token_parameter_prefix(self) -> str:
        return f"/{self.resource_prefix}/{self.environment}/tokens"


def load_config(path: Optional[str] = None) -> QuoteRouterConfig:
    config_path = Path(
        path
        or os.environ.get("QUOTE_ROUTER_CONFIG")
        or Path(__file__).parent / "config.json"
    )
    values = {}
    if config_path.exists():
        values = json.loads(config_path.read_text())

    if os.environ.get("ENVIRONMENT"):
        values["environment"] = os.environ["ENVIRONMENT"]

    return QuoteRouterConfig.model_validate(values)


config = load_config()
