from __future__ import annotations

import io
import json
from typing import Any

import pytest
from botocore.exceptions import ClientError
from loguru import logger
from rich.console import Console

from r2pilot.core.config import CloudflareConfig, ConfigFile, R2Config, endpoint_for_account
from r2pilot.core.context import CommandContext
from r2pilot.core.storage.r2 import R2Settings, R2Storage

ACCOUNT_ID = "0123456789abcdef0123456789abcdef"


def client_error(code: str, status: int, operation: str = "Operation") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


class FakeS3Client:
    """In-memory stand-in for the subset of the boto3 S3 client r2pilot uses."""

    def __init__(self, *, page_size: int = 1000) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.page_size = page_size
        self.calls: list[tuple[str, dict[str, Any]]] = []

        self.uploads: dict[str, dict[int, bytes]] = {}
        self.aborted: list[str] = []
        self.completed: list[str] = []
        self.fail_on_part: int | None = None
        self.fail_abort = False
        self._upload_seq = 0

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    # === single objects ===

    def put_object(self, *, Bucket: str, Key: str, Body: Any, ContentType: str | None = None) -> dict:
        self._record("put_object", Bucket=Bucket, Key=Key, ContentType=ContentType)
        data = Body.read() if hasattr(Body, "read") else bytes(Body)
        self.objects[Key] = data
        if ContentType:
            self.content_types[Key] = ContentType
        return {"ETag": f'"{Key}"'}

    def get_object(self, *, Bucket: str, Key: str) -> dict:
        self._record("get_object", Bucket=Bucket, Key=Key)
        if Key not in self.objects:
            raise client_error("NoSuchKey", 404, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}

    def head_object(self, *, Bucket: str, Key: str) -> dict:
        self._record("head_object", Bucket=Bucket, Key=Key)
        if Key not in self.objects:
            raise client_error("404", 404, "HeadObject")
        return {
            "ContentLength": len(self.objects[Key]),
            "ContentType": self.content_types.get(Key, "binary/octet-stream"),
            "ETag": f'"{Key}"',
        }

    def delete_object(self, *, Bucket: str, Key: str) -> dict:
        self._record("delete_object", Bucket=Bucket, Key=Key)
        self.objects.pop(Key, None)
        return {}

    def copy_object(self, *, Bucket: str, Key: str, CopySource: dict) -> dict:
        self._record("copy_object", Bucket=Bucket, Key=Key, CopySource=CopySource)
        source = CopySource["Key"]
        if source not in self.objects:
            raise client_error("NoSuchKey", 404, "CopyObject")
        self.objects[Key] = self.objects[source]
        return {}

    def list_objects_v2(self, **params: Any) -> dict:
        self._record("list_objects_v2", **params)
        keys = sorted(k for k in self.objects if k.startswith(params.get("Prefix", "")))
        start = int(params.get("ContinuationToken") or 0)
        size = min(params.get("MaxKeys", 1000), self.page_size)
        page = keys[start : start + size]
        resp: dict[str, Any] = {
            "Contents": [{"Key": k, "Size": len(self.objects[k]), "ETag": f'"{k}"'} for k in page],
            "IsTruncated": start + size < len(keys),
        }
        if resp["IsTruncated"]:
            resp["NextContinuationToken"] = str(start + size)
        return resp

    def generate_presigned_url(self, *, ClientMethod: str, Params: dict, ExpiresIn: int) -> str:
        self._record("generate_presigned_url", ClientMethod=ClientMethod, Params=Params, ExpiresIn=ExpiresIn)
        return f"https://signed.example/{Params['Bucket']}/{Params['Key']}?method={ClientMethod}&expires={ExpiresIn}"

    # === multipart ===

    def create_multipart_upload(self, *, Bucket: str, Key: str, ContentType: str) -> dict:
        self._upload_seq += 1
        upload_id = f"upload-{self._upload_seq}"
        self._record("create_multipart_upload", Bucket=Bucket, Key=Key, ContentType=ContentType)
        self.uploads[upload_id] = {}
        return {"UploadId": upload_id}

    def upload_part(self, *, Bucket: str, Key: str, PartNumber: int, UploadId: str, Body: bytes) -> dict:
        self._record("upload_part", Key=Key, PartNumber=PartNumber, UploadId=UploadId, Size=len(Body))
        if self.fail_on_part == PartNumber:
            raise client_error("InternalError", 500, "UploadPart")
        self.uploads[UploadId][PartNumber] = Body
        return {"ETag": f'"etag-{PartNumber}"'}

    def complete_multipart_upload(self, *, Bucket: str, Key: str, UploadId: str, MultipartUpload: dict) -> dict:
        self._record("complete_multipart_upload", Key=Key, UploadId=UploadId, MultipartUpload=MultipartUpload)
        stored = self.uploads[UploadId]
        numbers = [p["PartNumber"] for p in MultipartUpload["Parts"]]
        self.objects[Key] = b"".join(stored[n] for n in numbers)
        self.completed.append(UploadId)
        return {"ETag": '"complete"'}

    def abort_multipart_upload(self, *, Bucket: str, Key: str, UploadId: str) -> dict:
        self._record("abort_multipart_upload", Key=Key, UploadId=UploadId)
        self.aborted.append(UploadId)
        if self.fail_abort:
            raise client_error("InternalError", 500, "AbortMultipartUpload")
        self.uploads.pop(UploadId, None)
        return {}


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, *, raw: bytes | None = None) -> None:
        self.status_code = status_code
        self.headers = {"Content-Type": "application/json"}
        if raw is not None:
            self.content = raw
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode("utf-8")


class FakeSession:
    """Replays queued responses and records every request."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def envelope(result: Any = None, *, success: bool = True, errors: list[dict] | None = None) -> dict:
    return {"success": success, "errors": errors or [], "messages": [], "result": result}


def make_config(
    *,
    api_token: str | None = None,
    access_key_id: str | None = "AKIAEXAMPLE",
    secret_access_key: str | None = "s" * 40,
    bucket: str = "my-bucket",
) -> ConfigFile:
    return ConfigFile(
        cloudflare=CloudflareConfig(
            account_id=ACCOUNT_ID,
            endpoint=endpoint_for_account(ACCOUNT_ID),
            api_token=api_token,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
        ),
        r2=R2Config(default_bucket=bucket),
    )


def make_settings(bucket: str = "my-bucket") -> R2Settings:
    return R2Settings(
        endpoint_url=endpoint_for_account(ACCOUNT_ID),
        access_key_id="AKIAEXAMPLE",
        secret_access_key="s" * 40,
        bucket_name=bucket,
    )


def buffer_console() -> Console:
    return Console(file=io.StringIO(), width=200, no_color=True, highlight=False)


def console_text(console: Console) -> str:
    return console.file.getvalue()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger.remove()


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def make_ctx(tmp_path, fake_s3):
    """Build a CommandContext writing to string buffers and backed by fakes."""

    def factory(config: ConfigFile | None = None, *, output: str = "table", cloudflare: Any = None) -> CommandContext:
        config = config or make_config()
        settings_seen: list[R2Settings] = []

        def storage_factory(settings: R2Settings) -> R2Storage:
            settings_seen.append(settings)
            return R2Storage(settings=settings, client=fake_s3)

        ctx = CommandContext(
            console=buffer_console(),
            err_console=buffer_console(),
            output=output,
            config_path=tmp_path / "config.toml",
            cloudflare_factory=lambda _config: cloudflare,
            storage_factory=storage_factory,
        )
        ctx._config = config
        ctx.settings_seen = settings_seen
        return ctx

    return factory
