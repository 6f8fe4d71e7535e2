"""
Tests for the Lambda entrypoint
"""

import base64
import json
from unittest.mock import MagicMock

import index
import pytest
from conftest import QA2_IDENTITY, build_envelope
from services.backend_client import BackendClient
from services.token_cache import InMemoryTokenCache, SsmTokenCache
from services.token_provider import TokenProvider
from settings import RouterSettings


def http_response(status_code, text="", payload=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    response.json.return_value = payload
    return response


def api_gateway_event(body, is_base64_encoded=False):
    return {
        "resource": "/{proxy+}",
        "path": "/quote",
        "httpMethod": "POST",
        "headers": {"Content-Type": "text/xml", "SOAPAction": "getQuote"},
        "requestContext": {"requestId": "c6af9ac6-7b61-11e6-9a41-93e8deadbeef"},
        "body": body,
        "isBase64Encoded": is_base64_encoded,
    }


@pytest.fixture
def router_env(monkeypatch, mapping_document):
    monkeypatch.setenv("DESTINATION_MAPPING", json.dumps(mapping_document))
    monkeypatch.setenv("TOKEN_CACHE_BACKEND", "memory")
    monkeypatch.delenv("DESTINATION_MAPPING_SECRET_ID", raising=False)


@pytest.fixture
def sessions(monkeypatch, router_env):
    token_session = MagicMock()
    backend_session = MagicMock()
    monkeypatch.setattr(index, "_settings", None)
    monkeypatch.setattr(index, "_token_cache", InMemoryTokenCache())
    monkeypatch.setattr(index, "_token_provider", TokenProvider(session=token_session))
    monkeypatch.setattr(index, "_backend_client", BackendClient(session=backend_session))
    return token_session, backend_session


class TestLambdaHandler:
    """Tests for lambda_handler"""

    def test_routes_envelope_to_backend(self, sessions, lambda_context):
        token_session, backend_session = sessions
        token_session.post.return_value = http_response(
            200, payload={"access_token": "abc", "expires_in": 3600}
        )
        backend_session.post.return_value = http_response(
            200, text="<Response/>", headers={"Content-Type": "application/soap+xml"}
        )

        response = index.lambda_handler(api_gateway_event(build_envelope()), lambda_context)

        assert response["statusCode"] == 200
        assert response["body"] == "<Response/>"
        assert response["headers"]["x-routed-username"] == QA2_IDENTITY
        assert response["headers"]["x-response-host"] == "qa2vyne"

        backend_kwargs = backend_session.post.call_args.kwargs
        assert backend_kwargs["headers"]["Authorization"] == "Bearer abc"
        assert backend_kwargs["headers"]["SOAPAction"] == "getQuote"
        assert 0 < backend_kwargs["timeout"] <= 30

    def test_base64_body_is_decoded(self, sessions, lambda_context):
        token_session, backend_session = sessions
        token_session.post.return_value = http_response(
            200, payload={"access_token": "abc", "expires_in": 3600}
        )
        backend_session.post.return_value = http_response(200, text="<Response/>")
        encoded = base64.b64encode(build_envelope().encode("utf-8")).decode("ascii")

        response = index.lambda_handler(
            api_gateway_event(encoded, is_base64_encoded=True), lambda_context
        )

        assert response["statusCode"] == 200
        assert backend_session.post.call_args.kwargs["data"] == build_envelope().encode(
            "utf-8"
        )

    def test_malformed_envelope_returns_400(self, sessions, lambda_context):
        token_session, backend_session = sessions

        response = index.lambda_handler(api_gateway_event("<not-soap/>"), lambda_context)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["errorCode"] == "MALFORMED_ENVELOPE"
        token_session.post.assert_not_called()
        backend_session.post.assert_not_called()

    def test_missing_mapping_returns_configuration_error(
        self, sessions, monkeypatch, lambda_context
    ):
        monkeypatch.delenv("DESTINATION_MAPPING")

        response = index.lambda_handler(api_gateway_event(build_envelope()), lambda_context)

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["errorCode"] == "CONFIGURATION_ERROR"

    def test_unexpected_error_returns_500(self, sessions, monkeypatch, lambda_context):
        monkeypatch.setattr(index, "build_engine", MagicMock(side_effect=RuntimeError("boom")))

        response = index.lambda_handler(api_gateway_event(build_envelope()), lambda_context)

        body = json.loads(response["body"])
        assert response["statusCode"] == 500
        assert body["errorCode"] == "INTERNAL_SERVER_ERROR"
        assert body["details"] == "boom"


class TestBuildTokenCache:
    """Tests for token cache selection"""

    def test_memory_backend(self):
        cache = index.build_token_cache(RouterSettings(token_cache_backend="memory"))
        assert isinstance(cache, InMemoryTokenCache)

    def test_ssm_backend_uses_environment_prefix(self):
        cache = index.build_token_cache(RouterSettings(environment="qa"))
        assert isinstance(cache, SsmTokenCache)
        assert cache.parameter_name("dev") == "/quote-router/qa/tokens/dev"


class TestRouterSettings:
    """Tests for RouterSettings.from_environment"""

    def test_defaults(self):
        settings = RouterSettings.from_environment({})
        assert settings.token_timeout_seconds == 10
        assert settings.backend_timeout_seconds == 30
        assert settings.token_expiry_margin_seconds == 30
        assert settings.token_cache_backend == "ssm"

    def test_reads_environment_values(self):
        settings = RouterSettings.from_environment(
            {
                "ENVIRONMENT": "prod",
                "TOKEN_TIMEOUT_SECONDS": "5",
                "TOKEN_EXPIRY_MARGIN_SECONDS": "0",
                "TOKEN_CACHE_PARAMETER_PREFIX": "/custom/tokens/",
                "BACKEND_TIMEOUT_SECONDS": "",
            }
        )
        assert settings.environment == "prod"
        assert settings.token_timeout_seconds == 5
        assert settings.token_expiry_margin_seconds == 0
        assert settings.backend_timeout_seconds == 30
        assert settings.parameter_prefix == "/custom/tokens"

    def test_invalid_value_is_configuration_error(self):
        from models.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            RouterSettings.from_environment({"TOKEN_CACHE_BACKEND": "redis"})
