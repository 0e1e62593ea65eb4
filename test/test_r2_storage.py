from __future__ import annotations

import hashlib

import pytest
from botocore.exceptions import EndpointConnectionError, ReadTimeoutError

from r2pilot.core.errors.exceptions import (
    AuthenticationError,
    ConfigError,
    InvalidInputError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    R2OperationError,
    RequestTimeoutError,
)
from r2pilot.core.storage.multipart import MultipartUploadConfig
from r2pilot.core.storage.r2 import R2Settings, R2Storage, derive_s3_credentials, translate_errors

from conftest import ACCOUNT_ID, FakeS3Client, client_error, make_config, make_settings


@pytest.fixture
def storage(fake_s3) -> R2Storage:
    return R2Storage(settings=make_settings(), client=fake_s3)


def test_upload_and_download_bytes(storage, fake_s3):
    storage.upload_bytes(key="a.txt", data=b"hello", content_type="text/plain")

    assert storage.download_bytes(key="a.txt") == b"hello"
    assert fake_s3.content_types["a.txt"] == "text/plain"


def test_upload_file_streams_and_reports_size(tmp_path, storage, fake_s3):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"x" * 1234)
    seen: list[int] = []

    storage.upload_file(path=path, key="img/photo.jpg", content_type="image/jpeg", callback=seen.append)

    assert fake_s3.objects["img/photo.jpg"] == b"x" * 1234
    assert seen == [1234]


def test_download_file_creates_parent_directories(tmp_path, storage, fake_s3):
    fake_s3.objects["docs/report.pdf"] = b"%PDF-1.7"
    dest = tmp_path / "a" / "b" / "report.pdf"

    written = storage.download_file(key="docs/report.pdf", path=dest)

    assert written == 8
    assert dest.read_bytes() == b"%PDF-1.7"


def test_missing_object_maps_to_not_found(storage):
    with pytest.raises(NotFoundError):
        storage.download_bytes(key="missing")


def test_object_exists(storage, fake_s3):
    fake_s3.objects["here"] = b"1"

    assert storage.object_exists(key="here")
    assert not storage.object_exists(key="gone")


def test_object_exists_propagates_other_errors(storage, fake_s3):
    def denied(**_kwargs):
        raise client_error("AccessDenied", 403, "HeadObject")

    fake_s3.head_object = denied

    with pytest.raises(PermissionDeniedError):
        storage.object_exists(key="x")


def test_head_object(storage, fake_s3):
    storage.upload_bytes(key="k.json", data=b"{}", content_type="application/json")

    meta = storage.head_object(key="k.json")

    assert meta.size == 2
    assert meta.content_type == "application/json"


def test_copy_and_delete(storage, fake_s3):
    fake_s3.objects["src"] = b"data"

    storage.copy_object(source_key="src", dest_key="dst")
    storage.delete_objects(keys=["src"])

    assert fake_s3.objects == {"dst": b"data"}


def test_list_objects_follows_continuation_tokens():
    client = FakeS3Client(page_size=2)
    for i in range(5):
        client.objects[f"logs/{i}.txt"] = b"x" * i
    client.objects["other.txt"] = b""
    storage = R2Storage(settings=make_settings(), client=client)

    objects = storage.list_objects(prefix="logs/")

    assert [o.key for o in objects] == [f"logs/{i}.txt" for i in range(5)]
    assert [o.size for o in objects] == [0, 1, 2, 3, 4]
    assert client.call_names().count("list_objects_v2") == 3


def test_list_objects_respects_limit():
    client = FakeS3Client(page_size=2)
    for i in range(5):
        client.objects[f"{i}"] = b""
    storage = R2Storage(settings=make_settings(), client=client)

    assert [o.key for o in storage.list_objects(limit=3)] == ["0", "1", "2"]
    assert storage.list_objects(limit=0) == []


@pytest.mark.parametrize(
    "code,status,error",
    [
        ("NoSuchKey", 404, NotFoundError),
        ("NoSuchBucket", 404, NotFoundError),
        ("InvalidAccessKeyId", 403, AuthenticationError),
        ("SignatureDoesNotMatch", 403, AuthenticationError),
        ("AccessDenied", 403, PermissionDeniedError),
        ("InternalError", 500, R2OperationError),
    ],
)
def test_client_error_translation(code, status, error):
    with pytest.raises(error):
        with translate_errors("Operation"):
            raise client_error(code, status)


def test_transport_error_translation():
    with pytest.raises(NetworkError):
        with translate_errors("Operation"):
            raise EndpointConnectionError(endpoint_url="https://example.invalid")

    with pytest.raises(RequestTimeoutError):
        with translate_errors("Operation"):
            raise ReadTimeoutError(endpoint_url="https://example.invalid")


def test_multipart_failure_is_translated_after_abort(tmp_path, storage, fake_s3):
    path = tmp_path / "big.bin"
    path.write_bytes(b"x" * 100)
    fake_s3.fail_on_part = 2

    with pytest.raises(R2OperationError):
        storage.upload_file_multipart(
            path=path, key="big.bin", content_type="application/octet-stream", config=MultipartUploadConfig(chunk_size=40)
        )

    assert fake_s3.aborted == ["upload-1"]


def test_presigned_url_with_fake_client(storage, fake_s3):
    url = storage.presigned_url(key="up.bin", method="PUT", expires_in=60, content_type="video/mp4")

    assert "method=put_object" in url
    _, kwargs = fake_s3.calls[-1]
    assert kwargs["Params"] == {"Bucket": "my-bucket", "Key": "up.bin", "ContentType": "video/mp4"}
    assert kwargs["ExpiresIn"] == 60


def test_presigned_url_is_signed_by_boto3():
    storage = R2Storage(settings=make_settings())

    url = storage.presigned_url(key="photos/cat.jpg", method="get", expires_in=3600)

    assert url.startswith("https://")
    assert ACCOUNT_ID in url
    assert "my-bucket" in url
    assert "cat.jpg" in url
    assert "X-Amz-Signature=" in url
    assert "X-Amz-Expires=3600" in url


def test_presigned_url_rejects_unknown_method(storage):
    with pytest.raises(InvalidInputError):
        storage.presigned_url(key="k", method="post")
    with pytest.raises(InvalidInputError):
        storage.presigned_url(key="k", expires_in=0)


def test_derive_s3_credentials():
    key_id, secret = derive_s3_credentials(token_id="tok-id", token_value="cf-token")

    assert key_id == "tok-id"
    assert secret == hashlib.sha256(b"cf-token").hexdigest()
    assert len(secret) == 64


def test_settings_from_access_keys():
    settings = R2Settings.from_config(make_config())

    assert settings.access_key_id == "AKIAEXAMPLE"
    assert settings.bucket_name == "my-bucket"
    assert settings.region == "auto"
    assert settings.endpoint_url.endswith(".r2.cloudflarestorage.com")


def test_settings_from_api_token():
    config = make_config(api_token="cf-token", access_key_id=None, secret_access_key=None)

    settings = R2Settings.from_config(config, bucket="other", verify_token=lambda: "tok-id")

    assert settings.bucket_name == "other"
    assert settings.access_key_id == "tok-id"
    assert settings.secret_access_key == hashlib.sha256(b"cf-token").hexdigest()


def test_settings_from_api_token_failing_verification():
    config = make_config(api_token="cf-token", access_key_id=None, secret_access_key=None)

    def verify():
        raise NotFoundError()

    with pytest.raises(AuthenticationError):
        R2Settings.from_config(config, verify_token=verify)

    with pytest.raises(ConfigError):
        R2Settings.from_config(config)


class _BrokenBody:
    """Returns one chunk, then fails like a dropped connection."""

    def __init__(self) -> None:
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if self.reads == 1:
            return b"partial"
        raise ReadTimeoutError(endpoint_url="https://example.invalid")


def test_interrupted_download_leaves_no_file(tmp_path, storage, fake_s3):
    fake_s3.get_object = lambda **_kwargs: {"Body": _BrokenBody()}
    dest = tmp_path / "out" / "video.mp4"

    with pytest.raises(RequestTimeoutError):
        storage.download_file(key="video.mp4", path=dest)

    assert not dest.exists()


def test_missing_object_download_creates_no_file(tmp_path, storage):
    dest = tmp_path / "missing.bin"

    with pytest.raises(NotFoundError):
        storage.download_file(key="missing.bin", path=dest)

    assert not dest.exists()
