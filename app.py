#!/usr/bin/env python3
"""Entry point for the Quote Router CDK application."""
import logging
import os

import aws_cdk as cdk
from cdk_nag import AwsSolutionsChecks

from config import config
from constants import DEFAULT_TAGS
from quote_router_stacks.quote_router_stack import QuoteRouterStack

logging.basicConfig(level=config.logging.level)
logger = logging.getLogger("CDKApp")
logger.info(
    f"Initializing quote router CDK code for environment {config.environment} "
    f"with log level: {config.logging.level}"
)

app = cdk.App()

if "CDK_DEFAULT_ACCOUNT" in os.environ and "CDK_DEFAULT_REGION" in os.environ:
    env = cdk.Environment(
        account=os.environ["CDK_DEFAULT_ACCOUNT"],
        region=os.environ["CDK_DEFAULT_REGION"],
    )
else:
    env = cdk.Environment(account=app.account, region=app.region)

quote_router_stack = QuoteRouterStack(
    app,
    f"QuoteRouter-{config.environment}",
    env=env,
)

for key, value in DEFAULT_TAGS.items():
    cdk.Tags.of(app).add(key, value)
cdk.Tags.of(app).add("Environment", config.environment)

if config.resource_application_tag:
    cdk.Tags.of(app).add("Application", config.resource_application_tag)

# AWS Solutions checks
cdk.Aspects.of(app).add(AwsSolutionsChecks())

app.synth()
