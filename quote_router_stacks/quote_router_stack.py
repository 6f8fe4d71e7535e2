"""
Quote Router Stack.
"""

from dataclasses import dataclass
from typing import Optional

import aws_cdk as cdk
from aws_cdk import aws_apigateway as apigateway
from aws_cdk import aws_secretsmanager as secretsmanager
from cdk_nag import NagSuppressions
from constructs import Construct

from config import config
from constants import ApiGateway, ResourceNames
from quote_router_constructs.quote_router_lambda import (
    QuoteRouterLambda,
    QuoteRouterLambdaProps,
)


@dataclass
class QuoteRouterStackProps:
    """Configuration for Quote Router Stack."""

    destination_mapping_secret_name: Optional[str] = None
    token_cache_kms_key_arn: Optional[str] = None


class QuoteRouterStack(cdk.Stack):
    """
    Stack for the SOAP quote routing proxy.

    This stack creates:
    - Quote Router Lambda function with token cache and mapping permissions
    - REST API proxying every path and method to the Lambda
    """

    def __init__(
        self,
        scope: Construct,
        id: str,
        props: Optional[QuoteRouterStackProps] = None,
        **kwargs,
    ):
        super().__init__(scope, id, **kwargs)
        props = props or QuoteRouterStackProps()

        mapping_secret = secretsmanager.Secret.from_secret_name_v2(
            self,
            "DestinationMappingSecret",
            props.destination_mapping_secret_name
            or config.destination_mapping_secret_name,
        )

        self.router_lambda = QuoteRouterLambda(
            self,
            "QuoteRouterLambda",
            props=QuoteRouterLambdaProps(
                function_name=ResourceNames.lambda_name("router", config.environment),
                environment=config.environment,
                token_parameter_prefix=config.token_parameter_prefix,
                mapping_secret=mapping_secret,
                token_cache_kms_key_arn=props.token_cache_kms_key_arn
                or config.token_cache_kms_key_arn,
                token_timeout_seconds=config.token_timeout_seconds,
                backend_timeout_seconds=config.backend_timeout_seconds,
                token_expiry_margin_seconds=config.token_expiry_margin_seconds,
                log_level=config.logging.level,
            ),
        )

        self.rest_api = apigateway.LambdaRestApi(
            self,
            "QuoteRouterApi",
            rest_api_name=ResourceNames.api_name("router", config.environment),
            handler=self.router_lambda.function,
            proxy=True,
            deploy_options=apigateway.StageOptions(
                stage_name=ApiGateway.STAGE_NAME,
                throttling_rate_limit=ApiGateway.THROTTLING_RATE_LIMIT,
                throttling_burst_limit=ApiGateway.THROTTLING_BURST_LIMIT,
                tracing_enabled=True,
            ),
        )

        cdk.CfnOutput(
            self,
            "QuoteRouterApiUrl",
            value=self.rest_api.url,
            description="Invoke URL for the Quote Router API",
        )
        cdk.CfnOutput(
            self,
            "QuoteRouterFunctionName",
            value=self.router_lambda.function.function_name,
        )

        NagSuppressions.add_resource_suppressions(
            self.router_lambda.function,
            [
                {
                    "id": "AwsSolutions-IAM4",
                    "reason": "AWSLambdaBasicExecutionRole is required for CloudWatch logging",
                },
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "Token parameters are scoped to one prefix, one per cluster",
                },
            ],
            apply_to_children=True,
        )
        NagSuppressions.add_resource_suppressions(
            self.rest_api,
            [
                {
                    "id": "AwsSolutions-APIG2",
                    "reason": "Envelopes are validated by the Lambda, not by API Gateway models",
                },
                {
                    "id": "AwsSolutions-APIG1",
                    "reason": "Access logging is configured per environment outside this stack",
                },
                {
                    "id": "AwsSolutions-APIG3",
                    "reason": "WAF association is managed outside this stack",
                },
                {
                    "id": "AwsSolutions-APIG4",
                    "reason": "Callers authenticate to the quoting backend with their envelope identity",
                },
                {
                    "id": "AwsSolutions-COG4",
                    "reason": "No Cognito authorizer is used by the routing proxy",
                },
                {
                    "id": "AwsSolutions-APIG6",
                    "reason": "Execution logging is configured per environment outside this stack",
                },
            ],
            apply_to_children=True,
        )
