from __future__ import annotations

import pytest
import requests

from r2pilot.core.cloudflare.client import CLOUDFLARE_API_BASE_URL, CloudflareClient
from r2pilot.core.cloudflare.schemas import BucketCorsConfig, CorsRule, R2TokenBuilder
from r2pilot.core.errors.exceptions import (
    AuthenticationError,
    CloudflareApiError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RequestTimeoutError,
)

from conftest import ACCOUNT_ID, FakeResponse, FakeSession, envelope


def _client(*responses) -> tuple[CloudflareClient, FakeSession]:
    session = FakeSession(*responses)
    return CloudflareClient(api_token="cf-token", account_id=ACCOUNT_ID, session=session), session


def test_verify_token_sends_bearer_header():
    client, session = _client(FakeResponse(200, envelope({"id": "tok-1", "status": "active"})))

    verification = client.verify_token()

    assert verification.id == "tok-1"
    assert verification.status == "active"
    sent = session.requests[0]
    assert sent["method"] == "GET"
    assert sent["url"] == f"{CLOUDFLARE_API_BASE_URL}/user/tokens/verify"
    assert sent["headers"]["Authorization"] == "Bearer cf-token"
    assert sent["headers"]["Content-Type"] == "application/json"


@pytest.mark.parametrize(
    "status,error,message",
    [
        (401, AuthenticationError, "Invalid API token"),
        (403, PermissionDeniedError, "Insufficient permissions"),
        (404, NotFoundError, "Resource not found"),
    ],
)
def test_status_mapping(status, error, message):
    client, _ = _client(FakeResponse(status, envelope(success=False)))

    with pytest.raises(error) as excinfo:
        client.list_tokens()

    assert excinfo.value.message == message


def test_other_http_errors_include_status_and_body():
    client, _ = _client(FakeResponse(502, raw=b"bad gateway"))

    with pytest.raises(CloudflareApiError) as excinfo:
        client.list_buckets()

    assert excinfo.value.message == "HTTP 502: bad gateway"


def test_unsuccessful_envelope_joins_error_messages():
    body = envelope(success=False, errors=[{"code": 1, "message": "first"}, {"code": 2, "message": "second"}])
    client, _ = _client(FakeResponse(200, body))

    with pytest.raises(CloudflareApiError) as excinfo:
        client.list_tokens()

    assert excinfo.value.message == "first; second"


def test_transport_errors():
    client, _ = _client(requests.ConnectionError("refused"), requests.Timeout("slow"))

    with pytest.raises(NetworkError):
        client.list_tokens()
    with pytest.raises(RequestTimeoutError):
        client.list_tokens()


@pytest.mark.parametrize(
    "result",
    [
        [{"name": "a", "location": "WEUR"}, {"name": "b"}],
        {"buckets": [{"name": "a", "location": "WEUR"}, {"name": "b"}]},
    ],
)
def test_list_buckets_accepts_both_shapes(result):
    client, session = _client(FakeResponse(200, envelope(result)))

    buckets = client.list_buckets()

    assert [b.name for b in buckets] == ["a", "b"]
    assert buckets[0].location == "WEUR"
    assert session.requests[0]["url"].endswith(f"/accounts/{ACCOUNT_ID}/r2/buckets")


def test_create_bucket_sends_location_hint():
    client, session = _client(FakeResponse(200, envelope({"name": "new-bucket", "location": "ENAM"})))

    bucket = client.create_bucket("new-bucket", "enam")

    assert bucket.location == "ENAM"
    assert session.requests[0]["method"] == "POST"
    assert session.requests[0]["json"] == {"name": "new-bucket", "locationHint": "enam"}


def test_delete_with_empty_body_returns_none():
    client, session = _client(FakeResponse(200))

    assert client.delete_bucket("old") is None
    assert session.requests[0]["method"] == "DELETE"
    assert session.requests[0]["url"].endswith("/r2/buckets/old")


def test_create_token_payload():
    created = {"id": "tok-2", "name": "ci", "status": "active", "value": "secret-value"}
    client, session = _client(FakeResponse(200, envelope(created)))
    params = R2TokenBuilder("ci", ACCOUNT_ID).ip_whitelist(["203.0.113.7"]).build()

    token = client.create_token(params)

    assert token.value == "secret-value"
    payload = session.requests[0]["json"]
    assert payload["name"] == "ci"
    assert payload["policies"][0]["resources"] == {f"com.cloudflare.api.account.{ACCOUNT_ID}": "*"}
    assert payload["condition"] == {"request.ip": {"in": ["203.0.113.7"]}}


def test_put_cors_uses_camel_case():
    client, session = _client(FakeResponse(200, envelope(None)))
    config = BucketCorsConfig(rules=[CorsRule(allowed_origins=["*"], allowed_methods=["get"], max_age_seconds=60)])

    client.put_bucket_cors("my-bucket", config)

    assert session.requests[0]["method"] == "PUT"
    assert session.requests[0]["url"].endswith("/r2/buckets/my-bucket/cors")
    assert session.requests[0]["json"] == {
        "rules": [{"allowedOrigins": ["*"], "allowedMethods": ["GET"], "maxAgeSeconds": 60}]
    }


def test_get_lifecycle_parses_rules():
    rules = {"rules": [{"id": "expire-logs", "filter": {"prefix": "logs/"}, "status": "Enabled", "expiration": {"days": 7}}]}
    client, _ = _client(FakeResponse(200, envelope(rules)))

    config = client.get_bucket_lifecycle("my-bucket")

    assert config.rules[0].filter.prefix == "logs/"
    assert config.rules[0].expiration.days == 7


def test_close_closes_session():
    client, session = _client()

    client.close()

    assert session.closed
