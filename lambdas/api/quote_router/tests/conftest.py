"""
Shared fixtures for Quote Router tests.
"""

import os

os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "quote-router")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "QuoteRouterTests")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

from dataclasses import dataclass

import pytest
from models.internal import DestinationMapping

QA2_IDENTITY = "qa2vyne@id.economical.com"
QA3_IDENTITY = "qa3vyne@id.economical.com"

MAPPING_DOCUMENT = {
    "identities": {QA2_IDENTITY: "qa2vyne", QA3_IDENTITY: "qa3vyne"},
    "hosts": {"qa2vyne": "dev", "qa3vyne": "qa"},
    "clusters": {
        "dev": {
            "clientId": "dev-client",
            "clientSecret": "dev-secret",
            "scope": "quoting",
            "grantType": "client_credentials",
            "tokenUsername": "dev-user",
            "tokenPassword": "dev-password",
        },
        "qa": {"clientId": "qa-client", "clientSecret": "qa-secret"},
    },
    "hostDomain": "wiremockapi.cloud",
}


def build_envelope(identity=QA2_IDENTITY, include_cdata=True):
    acord = (
        "<ACORD><SignonRq><SignonTransport><CustId>"
        f"<SPName>economical.com</SPName><CustPermId>{identity}</CustPermId>"
        "</CustId></SignonTransport></SignonRq>"
        "<InsuranceSvcRq><RqUID>1</RqUID></InsuranceSvcRq></ACORD>"
    )
    quote_request = f"<![CDATA[{acord}]]>" if include_cdata else ""
    return (
        '<soapenv:Envelope xmlns:soapenv="http://www.w3.org/2003/05/soap-envelope" '
        'xmlns:ws="http://ws.quoting.economical.com/">'
        "<soapenv:Header/>"
        "<soapenv:Body><ws:getQuoteRequest>"
        f"<ws:quoteRequest>{quote_request}</ws:quoteRequest>"
        "</ws:getQuoteRequest></soapenv:Body></soapenv:Envelope>"
    )


@dataclass
class FakeLambdaContext:
    function_name: str = "quote-router"
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 256
    invoked_function_arn: str = (
        "arn:aws:lambda:us-east-1:123456789012:function:quote-router"
    )
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"
    remaining_time_in_millis: int = 60_000

    def get_remaining_time_in_millis(self) -> int:
        return self.remaining_time_in_millis


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def mapping_document():
    return MAPPING_DOCUMENT


@pytest.fixture
def mapping():
    return DestinationMapping.model_validate(MAPPING_DOCUMENT)


@pytest.fixture
def envelope():
    return build_envelope()


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture
def clock():
    return FakeClock()
