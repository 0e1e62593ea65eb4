from __future__ import annotations

import hashlib
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator

import boto3
from botocore.client import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)
from loguru import logger

from r2pilot.core.config import ConfigFile
from r2pilot.core.errors.exceptions import (
    AppError,
    AuthenticationError,
    ConfigError,
    InvalidInputError,
    IoError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    R2OperationError,
    RequestTimeoutError,
)
from r2pilot.core.storage.multipart import (
    MIB,
    MultipartUploadConfig,
    MultipartUploadSession,
    ProgressCallback,
    iter_chunks,
    upload_file_multipart,
)

DOWNLOAD_CHUNK_SIZE = 8 * MIB
MAX_LIST_PAGE = 1000

PRESIGN_METHODS = {
    "get": "get_object",
    "put": "put_object",
    "delete": "delete_object",
}

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound", "NoSuchUpload"}
_AUTH_CODES = {"401", "InvalidAccessKeyId", "SignatureDoesNotMatch", "Unauthorized"}
_FORBIDDEN_CODES = {"403", "AccessDenied", "Forbidden"}


@dataclass(frozen=True)
class ObjectInfo:
    key: str
    size: int
    last_modified: datetime | None
    etag: str


@dataclass(frozen=True)
class ObjectMetadata:
    key: str
    size: int
    content_type: str
    last_modified: datetime | None
    etag: str


def derive_s3_credentials(*, token_id: str, token_value: str) -> tuple[str, str]:
    """R2 accepts an API token as S3 credentials: id + SHA-256 of the value."""
    return token_id, hashlib.sha256(token_value.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class R2Settings:
    endpoint_url: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str = "auto"
    timeout: int = 30
    max_retries: int = 3

    @classmethod
    def from_config(
        cls,
        config: ConfigFile,
        *,
        bucket: str | None = None,
        verify_token: Callable[[], str] | None = None,
    ) -> "R2Settings":
        """Build S3 settings from the config file.

        ``verify_token`` returns the id of the configured API token; it is
        only called when no access key pair is configured.
        """
        cf = config.cloudflare
        bucket_name = (bucket or config.r2.default_bucket or "").strip()
        if not bucket_name:
            raise InvalidInputError("Bucket name cannot be empty")

        endpoint_url = (cf.endpoint or "").strip()
        if not endpoint_url:
            raise ConfigError("cloudflare.endpoint is not configured", hint="Run 'r2pilot init'")

        if cf.has_access_keys:
            access_key_id = cf.access_key_id or ""
            secret_access_key = cf.secret_access_key or ""
        elif cf.has_api_token:
            if verify_token is None:
                raise ConfigError("Access keys are not configured and the API token cannot be verified")
            try:
                token_id = verify_token()
            except AppError as exc:
                raise AuthenticationError(f"Cannot derive R2 credentials from the API token: {exc.message}") from exc
            access_key_id, secret_access_key = derive_s3_credentials(token_id=token_id, token_value=cf.api_token or "")
        else:
            raise ConfigError(
                "No authentication method configured",
                hint="Set api_token or access_key_id + secret_access_key (run 'r2pilot init')",
            )

        advanced = config.advanced_or_default()
        return cls(
            endpoint_url=endpoint_url,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            bucket_name=bucket_name,
            region=config.r2.region or "auto",
            timeout=advanced.timeout,
            max_retries=advanced.max_retries,
        )


def _error_code(exc: ClientError) -> tuple[str, int]:
    err = exc.response.get("Error") or {}
    status = int((exc.response.get("ResponseMetadata") or {}).get("HTTPStatusCode") or 0)
    return str(err.get("Code") or status), status


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Map botocore exceptions onto the application's error types."""
    try:
        yield
    except AppError:
        raise
    except ClientError as exc:
        code, status = _error_code(exc)
        message = f"{action}: {exc}"
        if code in _NOT_FOUND_CODES or status == 404:
            raise NotFoundError(message, detail={"code": code}) from exc
        if code in _AUTH_CODES or status == 401:
            raise AuthenticationError(message, cause=exc) from exc
        if code in _FORBIDDEN_CODES or status == 403:
            raise PermissionDeniedError(message, detail={"code": code}) from exc
        raise R2OperationError(message, detail={"code": code, "status": status}, cause=exc) from exc
    except NoCredentialsError as exc:
        raise AuthenticationError(f"{action}: {exc}", cause=exc) from exc
    except (ConnectTimeoutError, ReadTimeoutError) as exc:
        raise RequestTimeoutError(f"{action}: {exc}", cause=exc) from exc
    except EndpointConnectionError as exc:
        raise NetworkError(f"{action}: {exc}", cause=exc) from exc
    except BotoCoreError as exc:
        raise R2OperationError(f"{action}: {exc}", cause=exc) from exc


class R2Storage:
    def __init__(self, *, settings: R2Settings, client: Any | None = None) -> None:
        self.settings = settings
        self.client = client or boto3.client(
            "s3",
            endpoint_url=settings.endpoint_url,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            region_name=settings.region,
            config=Config(
                signature_version="s3v4",
                connect_timeout=settings.timeout,
                read_timeout=settings.timeout,
                retries={"max_attempts": settings.max_retries, "mode": "standard"},
            ),
        )

    @property
    def bucket(self) -> str:
        return self.settings.bucket_name

    def upload_bytes(self, *, key: str, data: bytes, content_type: str | None = None) -> None:
        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type

        with translate_errors(f"Upload of {key} failed"):
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra)

    def upload_file(
        self,
        *,
        path: Path | str,
        key: str,
        content_type: str | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        path = Path(path)
        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type

        try:
            fp = path.open("rb")
        except OSError as exc:
            raise IoError(f"Cannot read {path}: {exc}", cause=exc) from exc

        with fp, translate_errors(f"Upload of {key} failed"):
            self.client.put_object(Bucket=self.bucket, Key=key, Body=fp, **extra)

        if callback is not None:
            callback(path.stat().st_size)

    def upload_file_multipart(
        self,
        *,
        path: Path | str,
        key: str,
        content_type: str,
        config: MultipartUploadConfig | None = None,
        progress: ProgressCallback | None = None,
    ) -> MultipartUploadSession:
        with translate_errors(f"Multipart upload of {key} failed"):
            return upload_file_multipart(
                self.client,
                bucket=self.bucket,
                key=key,
                path=path,
                content_type=content_type,
                config=config,
                progress=progress,
            )

    def download_bytes(self, *, key: str) -> bytes:
        with translate_errors(f"Download of {key} failed"):
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
            return obj["Body"].read()

    def download_file(self, *, key: str, path: Path | str) -> int:
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IoError(f"Cannot create {path.parent}: {exc}", cause=exc) from exc

        written = 0
        with translate_errors(f"Download of {key} failed"):
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
            body = obj["Body"]
            try:
                with path.open("wb") as out:
                    for chunk in iter_chunks(body, DOWNLOAD_CHUNK_SIZE):
                        out.write(chunk)
                        written += len(chunk)
            except (BotoCoreError, ClientError):
                # A partial download never stays on disk.
                path.unlink(missing_ok=True)
                raise
            except OSError as exc:
                path.unlink(missing_ok=True)
                raise IoError(f"Cannot write {path}: {exc}", cause=exc) from exc
        return written

    def delete_object(self, *, key: str) -> None:
        with translate_errors(f"Delete of {key} failed"):
            self.client.delete_object(Bucket=self.bucket, Key=key)

    def delete_objects(self, *, keys: list[str]) -> None:
        for key in keys:
            self.delete_object(key=key)

    def object_exists(self, *, key: str) -> bool:
        try:
            self.head_object(key=key)
            return True
        except NotFoundError:
            return False

    def head_object(self, *, key: str) -> ObjectMetadata:
        with translate_errors(f"Head of {key} failed"):
            resp = self.client.head_object(Bucket=self.bucket, Key=key)
        return ObjectMetadata(
            key=key,
            size=int(resp.get("ContentLength") or 0),
            content_type=str(resp.get("ContentType") or ""),
            last_modified=resp.get("LastModified"),
            etag=str(resp.get("ETag") or ""),
        )

    def copy_object(self, *, source_key: str, dest_key: str) -> None:
        with translate_errors(f"Copy of {source_key} to {dest_key} failed"):
            self.client.copy_object(
                Bucket=self.bucket,
                Key=dest_key,
                CopySource={"Bucket": self.bucket, "Key": source_key},
            )

    def list_objects(self, *, prefix: str | None = None, limit: int | None = None) -> list[ObjectInfo]:
        if limit is not None and limit < 1:
            return []

        objects: list[ObjectInfo] = []
        continuation: str | None = None

        while True:
            page_size = MAX_LIST_PAGE if limit is None else min(limit - len(objects), MAX_LIST_PAGE)
            params: dict[str, Any] = {"Bucket": self.bucket, "MaxKeys": page_size}
            if prefix:
                params["Prefix"] = prefix
            if continuation:
                params["ContinuationToken"] = continuation

            with translate_errors(f"Listing of {self.bucket} failed"):
                resp = self.client.list_objects_v2(**params)

            for item in resp.get("Contents") or []:
                k = item.get("Key")
                if not k:
                    continue
                objects.append(
                    ObjectInfo(
                        key=str(k),
                        size=int(item.get("Size") or 0),
                        last_modified=item.get("LastModified"),
                        etag=str(item.get("ETag") or ""),
                    )
                )
                if limit is not None and len(objects) >= limit:
                    return objects

            if not resp.get("IsTruncated"):
                return objects

            continuation = resp.get("NextContinuationToken")
            if not continuation:
                return objects

    def presigned_url(
        self,
        *,
        key: str,
        method: str = "get",
        expires_in: int = 7200,
        content_type: str | None = None,
    ) -> str:
        client_method = PRESIGN_METHODS.get(method.lower())
        if client_method is None:
            raise InvalidInputError(f"Invalid method: {method}. Valid methods: {', '.join(PRESIGN_METHODS)}")
        if expires_in < 1:
            raise InvalidInputError("expires_in must be >= 1")

        params: dict[str, Any] = {"Bucket": self.bucket, "Key": key}
        if content_type and client_method == "put_object":
            params["ContentType"] = content_type

        logger.debug("Presigning {} for {}/{} ({}s)", client_method, self.bucket, key, expires_in)
        with translate_errors(f"Presigning {key} failed"):
            return self.client.generate_presigned_url(
                ClientMethod=client_method,
                Params=params,
                ExpiresIn=expires_in,
            )
