from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

R2_EDIT_PERMISSION_GROUP_ID = "c4259685b71d4e928c3201fc048494ab"
R2_EDIT_PERMISSION_GROUP_NAME = "Cloudflare R2 Edit"

CORS_METHODS = ("GET", "PUT", "POST", "DELETE", "HEAD", "OPTIONS")
LIFECYCLE_STATUSES = ("Enabled", "Disabled")


class CloudflareMessage(BaseModel):
    code: int = 0
    message: str = ""


class CloudflareEnvelope(BaseModel):
    success: bool = False
    errors: list[CloudflareMessage] = Field(default_factory=list)
    messages: list[CloudflareMessage] = Field(default_factory=list)
    result: Any = None

    @field_validator("errors", "messages", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []


# === API tokens ===


class PermissionGroup(BaseModel):
    id: str
    name: str = ""


class TokenPolicyView(BaseModel):
    permission_groups: list[PermissionGroup] = Field(default_factory=list)
    resources: Any = None


class ApiToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    status: str = ""
    issued_on: str | None = None
    modified_on: str | None = None
    expires_on: str | None = None
    # Only returned once, by the create call.
    value: str | None = None
    policies: list[TokenPolicyView] = Field(default_factory=list)


class TokenVerification(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    status: str = ""
    expires_on: str | None = None


class IpCondition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    in_list: list[str] | None = Field(default=None, alias="in")


class TokenCondition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_ip: IpCondition | None = Field(default=None, alias="request.ip")


class TokenPolicy(BaseModel):
    effect: str = "allow"
    permission_groups: list[PermissionGroup]
    resources: dict[str, str]


class CreateTokenParams(BaseModel):
    name: str
    policies: list[TokenPolicy]
    condition: TokenCondition | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class R2TokenBuilder:
    """Build the payload for an account-scoped token with R2 edit rights."""

    def __init__(self, name: str, account_id: str) -> None:
        self.name = name
        self.account_id = account_id
        self._ip_whitelist: list[str] | None = None

    def ip_whitelist(self, ips: list[str]) -> "R2TokenBuilder":
        self._ip_whitelist = [ip.strip() for ip in ips if ip and ip.strip()] or None
        return self

    def build(self) -> CreateTokenParams:
        policy = TokenPolicy(
            permission_groups=[
                PermissionGroup(id=R2_EDIT_PERMISSION_GROUP_ID, name=R2_EDIT_PERMISSION_GROUP_NAME),
            ],
            resources={f"com.cloudflare.api.account.{self.account_id}": "*"},
        )
        condition = None
        if self._ip_whitelist:
            condition = TokenCondition(request_ip=IpCondition(in_list=self._ip_whitelist))
        return CreateTokenParams(name=self.name, policies=[policy], condition=condition)


# === Buckets ===


class R2Bucket(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    location: str | None = None
    creation_date: str | None = None
    storage_class: str | None = None


# === CORS ===


class CorsRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    allowed_origins: list[str] = Field(alias="allowedOrigins")
    allowed_methods: list[str] = Field(alias="allowedMethods")
    allowed_headers: list[str] | None = Field(default=None, alias="allowedHeaders")
    max_age_seconds: int | None = Field(default=None, alias="maxAgeSeconds", ge=0)

    @field_validator("allowed_origins")
    @classmethod
    def _origins_present(cls, value: list[str]) -> list[str]:
        origins = [v.strip() for v in value if v and v.strip()]
        if not origins:
            raise ValueError("at least one allowed origin is required")
        return origins

    @field_validator("allowed_methods")
    @classmethod
    def _methods_known(cls, value: list[str]) -> list[str]:
        methods = [v.strip().upper() for v in value if v and v.strip()]
        if not methods:
            raise ValueError("at least one allowed method is required")
        unknown = [m for m in methods if m not in CORS_METHODS]
        if unknown:
            raise ValueError(f"unsupported methods: {', '.join(unknown)}")
        return methods


class BucketCorsConfig(BaseModel):
    rules: list[CorsRule] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# === Lifecycle ===


class LifecycleFilter(BaseModel):
    prefix: str | None = None


class LifecycleExpiration(BaseModel):
    days: int | None = Field(default=None, ge=1)


class LifecycleRule(BaseModel):
    id: str
    filter: LifecycleFilter = Field(default_factory=LifecycleFilter)
    status: str = "Enabled"
    expiration: LifecycleExpiration | None = None

    @field_validator("status")
    @classmethod
    def _status_known(cls, value: str) -> str:
        for status in LIFECYCLE_STATUSES:
            if value.strip().lower() == status.lower():
                return status
        raise ValueError(f"status must be one of {', '.join(LIFECYCLE_STATUSES)}")


class LifecycleConfiguration(BaseModel):
    rules: list[LifecycleRule] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# === Static website ===


class IndexDocument(BaseModel):
    suffix: str


class ErrorDocument(BaseModel):
    key: str


class WebsiteConfiguration(BaseModel):
    index_document: IndexDocument | None = None
    error_document: ErrorDocument | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
