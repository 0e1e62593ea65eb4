"""Chunked multipart upload.

The file is read sequentially in fixed-size chunks and every chunk is sent as
one part, one request at a time. Any failure aborts the whole session; there
is no retry of a single part and no resumption of an aborted session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Callable, Iterator

from loguru import logger

from r2pilot.core.config import AdvancedConfig
from r2pilot.core.errors.exceptions import InvalidInputError, IoError, MultipartUploadError

MIB = 1024 * 1024

MULTIPART_THRESHOLD = 100 * MIB
DEFAULT_CHUNK_SIZE = 100 * MIB
# S3 rejects parts larger than 5 GiB.
MAX_CHUNK_SIZE = 5 * 1024 * MIB

ProgressCallback = Callable[[int], None]


def requires_multipart_upload(size: int, threshold: int = MULTIPART_THRESHOLD) -> bool:
    return size > threshold


@dataclass(frozen=True)
class MultipartUploadConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    # Kept for configuration compatibility; parts are always uploaded sequentially.
    concurrent_parts: int = 1

    @classmethod
    def from_advanced(cls, advanced: AdvancedConfig) -> "MultipartUploadConfig":
        return cls(
            chunk_size=advanced.multipart_chunk_size_mb * MIB,
            concurrent_parts=advanced.max_concurrent_uploads,
        )

    @property
    def effective_chunk_size(self) -> int:
        if self.chunk_size < 1:
            raise InvalidInputError(f"Multipart chunk size must be positive, got {self.chunk_size}")
        return min(self.chunk_size, MAX_CHUNK_SIZE)


@dataclass(frozen=True)
class CompletedPart:
    part_number: int
    etag: str

    def to_dict(self) -> dict[str, Any]:
        return {"PartNumber": self.part_number, "ETag": self.etag}


@dataclass
class MultipartUploadSession:
    bucket: str
    key: str
    upload_id: str
    parts: list[CompletedPart] = field(default_factory=list)
    status: str = "open"
    bytes_sent: int = 0

    @property
    def next_part_number(self) -> int:
        return len(self.parts) + 1

    def record_part(self, etag: str, size: int) -> CompletedPart:
        part = CompletedPart(part_number=self.next_part_number, etag=etag)
        self.parts.append(part)
        self.bytes_sent += size
        return part


def iter_chunks(fp: IO[bytes], chunk_size: int) -> Iterator[bytes]:
    """Yield successive chunks, stopping at the first empty read."""
    while True:
        chunk = fp.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _abort(client: Any, session: MultipartUploadSession) -> None:
    try:
        client.abort_multipart_upload(Bucket=session.bucket, Key=session.key, UploadId=session.upload_id)
    except Exception as exc:
        # Best effort.
        logger.warning("Failed to abort multipart upload {} for {}: {}", session.upload_id, session.key, exc)
    else:
        logger.debug("Aborted multipart upload {} for {}", session.upload_id, session.key)
    session.status = "aborted"


def upload_file_multipart(
    client: Any,
    *,
    bucket: str,
    key: str,
    path: Path | str,
    content_type: str,
    config: MultipartUploadConfig | None = None,
    progress: ProgressCallback | None = None,
) -> MultipartUploadSession:
    """Upload ``path`` to ``bucket/key`` as a multipart upload.

    ``client`` is a boto3 S3 client (or anything with the same four
    multipart methods). Errors from the store are re-raised unchanged after
    the session has been aborted.
    """
    config = config or MultipartUploadConfig()
    chunk_size = config.effective_chunk_size
    path = Path(path)

    try:
        fp = path.open("rb")
    except OSError as exc:
        raise IoError(f"Cannot read {path}: {exc}", cause=exc) from exc

    with fp:
        created = client.create_multipart_upload(Bucket=bucket, Key=key, ContentType=content_type)
        session = MultipartUploadSession(bucket=bucket, key=key, upload_id=created["UploadId"])
        logger.debug(
            "Started multipart upload {} for {} (chunk size {} bytes)", session.upload_id, key, chunk_size
        )

        try:
            for chunk in iter_chunks(fp, chunk_size):
                part_number = session.next_part_number
                resp = client.upload_part(
                    Bucket=bucket,
                    Key=key,
                    PartNumber=part_number,
                    UploadId=session.upload_id,
                    Body=chunk,
                )
                session.record_part(resp["ETag"], len(chunk))
                logger.debug("Uploaded part {} ({} bytes)", part_number, len(chunk))
                if progress is not None:
                    progress(len(chunk))

            if not session.parts:
                raise MultipartUploadError(
                    f"{path} is empty; nothing to upload as multipart",
                    detail={"path": str(path), "key": key},
                )

            client.complete_multipart_upload(
                Bucket=bucket,
                Key=key,
                UploadId=session.upload_id,
                MultipartUpload={"Parts": [p.to_dict() for p in session.parts]},
            )
        except BaseException:
            _abort(client, session)
            raise

    session.status = "completed"
    logger.info("Completed multipart upload of {} ({} parts, {} bytes)", key, len(session.parts), session.bytes_sent)
    return session
