from __future__ import annotations

from typing import Any, TypeVar

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError

from r2pilot.core.cloudflare.schemas import (
    ApiToken,
    BucketCorsConfig,
    CloudflareEnvelope,
    CreateTokenParams,
    LifecycleConfiguration,
    R2Bucket,
    TokenVerification,
    WebsiteConfiguration,
)
from r2pilot.core.errors.exceptions import (
    AuthenticationError,
    CloudflareApiError,
    NotFoundError,
    PermissionDeniedError,
)
from r2pilot.core.http_client import HttpClient, HttpResult

CLOUDFLARE_API_BASE_URL = "https://api.cloudflare.com/client/v4"

ModelT = TypeVar("ModelT", bound=BaseModel)


def handle_response(result: HttpResult) -> Any:
    """Unwrap the ``{success, errors, messages, result}`` envelope."""
    if result.status_code == 401:
        raise AuthenticationError("Invalid API token")
    if result.status_code == 403:
        raise PermissionDeniedError("Insufficient permissions")
    if result.status_code == 404:
        raise NotFoundError("Resource not found")
    if not result.ok:
        raise CloudflareApiError(f"HTTP {result.status_code}: {result.text}")

    if not result.body_bytes:
        return None

    try:
        envelope = CloudflareEnvelope.model_validate(result.json())
    except (ValueError, ValidationError) as exc:
        raise CloudflareApiError(f"Unexpected response body: {exc}") from exc

    if not envelope.success:
        errors = "; ".join(e.message for e in envelope.errors) or "request was not successful"
        raise CloudflareApiError(errors, detail=[e.model_dump() for e in envelope.errors])

    return envelope.result


def _parse(model: type[ModelT], payload: Any) -> ModelT:
    try:
        return model.model_validate(payload or {})
    except ValidationError as exc:
        raise CloudflareApiError(f"Unexpected {model.__name__} payload: {exc}") from exc


class CloudflareClient:
    def __init__(
        self,
        *,
        api_token: str,
        account_id: str,
        base_url: str = CLOUDFLARE_API_BASE_URL,
        timeout_seconds: float = 30,
        http: HttpClient | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_token = api_token
        self.account_id = account_id
        self.base_url = base_url.rstrip("/")
        self.http = http or HttpClient(
            timeout_seconds=timeout_seconds,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
            session=session,
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _bucket_url(self, bucket_name: str, suffix: str = "") -> str:
        path = f"accounts/{self.account_id}/r2/buckets/{bucket_name}"
        if suffix:
            path = f"{path}/{suffix}"
        return self._url(path)

    def _call(self, method: str, url: str, payload: Any | None = None) -> Any:
        logger.debug("Cloudflare API {} {}", method, url)
        return handle_response(self.http.request(method, url, payload=payload))

    # === API tokens ===

    def verify_token(self) -> TokenVerification:
        return _parse(TokenVerification, self._call("GET", self._url("user/tokens/verify")))

    def list_tokens(self) -> list[ApiToken]:
        result = self._call("GET", self._url("user/tokens")) or []
        return [_parse(ApiToken, item) for item in result]

    def create_token(self, params: CreateTokenParams) -> ApiToken:
        result = self._call("POST", self._url("user/tokens"), params.to_payload())
        return _parse(ApiToken, result)

    def revoke_token(self, token_id: str) -> None:
        self._call("DELETE", self._url(f"user/tokens/{token_id}"))

    # === Buckets ===

    def list_buckets(self) -> list[R2Bucket]:
        result = self._call("GET", self._url(f"accounts/{self.account_id}/r2/buckets"))
        if isinstance(result, dict):
            result = result.get("buckets") or []
        return [_parse(R2Bucket, item) for item in result or []]

    def get_bucket(self, name: str) -> R2Bucket:
        return _parse(R2Bucket, self._call("GET", self._bucket_url(name)))

    def create_bucket(self, name: str, location: str | None = None) -> R2Bucket:
        payload: dict[str, Any] = {"name": name}
        if location:
            payload["locationHint"] = location
        result = self._call("POST", self._url(f"accounts/{self.account_id}/r2/buckets"), payload)
        return _parse(R2Bucket, result or {"name": name, "location": location})

    def delete_bucket(self, name: str) -> None:
        self._call("DELETE", self._bucket_url(name))

    # === CORS ===

    def get_bucket_cors(self, bucket_name: str) -> BucketCorsConfig:
        return _parse(BucketCorsConfig, self._call("GET", self._bucket_url(bucket_name, "cors")))

    def put_bucket_cors(self, bucket_name: str, config: BucketCorsConfig) -> None:
        self._call("PUT", self._bucket_url(bucket_name, "cors"), config.to_payload())

    def delete_bucket_cors(self, bucket_name: str) -> None:
        self._call("DELETE", self._bucket_url(bucket_name, "cors"))

    # === Lifecycle ===

    def get_bucket_lifecycle(self, bucket_name: str) -> LifecycleConfiguration:
        return _parse(LifecycleConfiguration, self._call("GET", self._bucket_url(bucket_name, "lifecycle")))

    def put_bucket_lifecycle(self, bucket_name: str, config: LifecycleConfiguration) -> None:
        self._call("PUT", self._bucket_url(bucket_name, "lifecycle"), config.to_payload())

    def delete_bucket_lifecycle(self, bucket_name: str) -> None:
        self._call("DELETE", self._bucket_url(bucket_name, "lifecycle"))

    # === Static website ===

    def get_bucket_website(self, bucket_name: str) -> WebsiteConfiguration:
        return _parse(WebsiteConfiguration, self._call("GET", self._bucket_url(bucket_name, "website")))

    def put_bucket_website(self, bucket_name: str, config: WebsiteConfiguration) -> None:
        self._call("PUT", self._bucket_url(bucket_name, "website"), config.to_payload())

    def delete_bucket_website(self, bucket_name: str) -> None:
        self._call("DELETE", self._bucket_url(bucket_name, "website"))

    def close(self) -> None:
        self.http.close()
