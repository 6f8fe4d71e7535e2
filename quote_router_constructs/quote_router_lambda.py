"""Construct for the Quote Router Lambda function and its permissions."""

from dataclasses import dataclass, field
from typing import Dict, Optional

import aws_cdk as cdk
from aws_cdk import BundlingOptions, Duration
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from constants import Lambda as LambdaConstants


@dataclass
class QuoteRouterLambdaProps:
    """Configuration for the Quote Router Lambda construct."""

    function_name: str
    environment: str
    token_parameter_prefix: str
    mapping_secret: secretsmanager.ISecret
    token_cache_kms_key_arn: Optional[str] = None
    token_timeout_seconds: int = 10
    backend_timeout_seconds: int = 30
    token_expiry_margin_seconds: int = 30
    log_level: str = "INFO"
    extra_environment: Dict[str, str] = field(default_factory=dict)


class QuoteRouterLambda(Construct):
    """
    Python Lambda that routes SOAP quote requests.

    Grants read/write on the token cache parameters, read on the
    destination mapping secret, and KMS use when a customer key protects
    the token parameters.
    """

    def __init__(self, scope: Construct, construct_id: str, props: QuoteRouterLambdaProps):
        super().__init__(scope, construct_id)

        environment_variables = {
            "ENVIRONMENT": props.environment,
            "DESTINATION_MAPPING_SECRET_ID": props.mapping_secret.secret_arn,
            "TOKEN_CACHE_BACKEND": "ssm",
            "TOKEN_CACHE_PARAMETER_PREFIX": props.token_parameter_prefix,
            "TOKEN_TIMEOUT_SECONDS": str(props.token_timeout_seconds),
            "BACKEND_TIMEOUT_SECONDS": str(props.backend_timeout_seconds),
            "TOKEN_EXPIRY_MARGIN_SECONDS": str(props.token_expiry_margin_seconds),
            "POWERTOOLS_SERVICE_NAME": LambdaConstants.POWERTOOLS_SERVICE_NAME,
            "POWERTOOLS_METRICS_NAMESPACE": LambdaConstants.POWERTOOLS_METRICS_NAMESPACE,
            "LOG_LEVEL": props.log_level,
        }
        if props.token_cache_kms_key_arn:
            environment_variables["TOKEN_CACHE_KMS_KEY_ID"] = props.token_cache_kms_key_arn
        environment_variables.update(props.extra_environment)

        self.function = _lambda.Function(
            self,
            "QuoteRouterFunction",
            function_name=props.function_name,
            runtime=_lambda.Runtime.PYTHON_3_12,
            handler=LambdaConstants.HANDLER,
            code=_lambda.Code.from_asset(
                LambdaConstants.ENTRY,
                exclude=["tests", "**/__pycache__"],
                bundling=BundlingOptions(
                    image=_lambda.Runtime.PYTHON_3_12.bundling_image,
                    command=[
                        "bash",
                        "-c",
                        "pip install -r requirements.txt -t /asset-output "
                        "&& cp -au . /asset-output",
                    ],
                ),
            ),
            timeout=Duration.seconds(LambdaConstants.DEFAULT_TIMEOUT_SECONDS),
            memory_size=LambdaConstants.DEFAULT_MEMORY_SIZE,
            tracing=_lambda.Tracing.ACTIVE,
            environment=environment_variables,
            log_retention=logs.RetentionDays.ONE_MONTH,
        )

        parameter_arn = (
            f"arn:aws:ssm:{cdk.Aws.REGION}:{cdk.Aws.ACCOUNT_ID}:parameter"
            f"{props.token_parameter_prefix}/*"
        )
        self.function.add_to_role_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["ssm:GetParameter", "ssm:PutParameter"],
                resources=[parameter_arn],
            )
        )

        if props.token_cache_kms_key_arn:
            self.function.add_to_role_policy(
                iam.PolicyStatement(
                    effect=iam.Effect.ALLOW,
                    actions=["kms:Decrypt", "kms:Encrypt", "kms:GenerateDataKey"],
                    resources=[props.token_cache_kms_key_arn],
                )
            )

        props.mapping_secret.grant_read(self.function)
