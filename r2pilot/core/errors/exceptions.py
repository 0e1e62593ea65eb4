from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class AppError(Exception):
    code: str
    message: str
    exit_code: int = 1
    detail: Any | None = None
    cause: Exception | None = None
    hint: str | None = None

    # Prefix used when the error is rendered, e.g. "Configuration error".
    category: str = ""

    def __str__(self) -> str:
        if self.category:
            return f"{self.category}: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        if self.detail is not None:
            payload["error"]["detail"] = self.detail
        if self.hint:
            payload["error"]["hint"] = self.hint
        return payload


class ConfigError(AppError):
    def __init__(self, message: str, *, detail: Any | None = None, hint: str | None = None):
        super().__init__(
            code="CONFIG", message=message, exit_code=2, detail=detail, hint=hint, category="Configuration error"
        )


class ConfigNotFoundError(AppError):
    def __init__(self, path: Path | str):
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=str(path),
            exit_code=2,
            detail={"path": str(path)},
            hint="Run 'r2pilot init' to create a configuration",
            category="Configuration file not found",
        )
        self.path = Path(path)


class InvalidConfigError(AppError):
    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(
            code="INVALID_CONFIG",
            message=message,
            exit_code=2,
            cause=cause,
            category="Invalid configuration format",
        )


class InvalidInputError(AppError):
    def __init__(self, message: str, *, detail: Any | None = None):
        super().__init__(code="INVALID_INPUT", message=message, exit_code=2, detail=detail, category="Invalid input")


class AuthenticationError(AppError):
    def __init__(self, message: str = "Invalid credentials", *, cause: Exception | None = None):
        super().__init__(
            code="AUTHENTICATION", message=message, exit_code=3, cause=cause, category="Authentication failed"
        )


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Insufficient permissions", *, detail: Any | None = None):
        super().__init__(
            code="PERMISSION_DENIED", message=message, exit_code=3, detail=detail, category="Permission denied"
        )


class NetworkError(AppError):
    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(code="NETWORK", message=message, exit_code=4, cause=cause, category="Network error")


class RequestTimeoutError(AppError):
    def __init__(self, message: str = "Operation timed out", *, cause: Exception | None = None):
        super().__init__(code="TIMEOUT", message=message, exit_code=4, cause=cause, category="Timeout")


class R2OperationError(AppError):
    def __init__(self, message: str, *, detail: Any | None = None, cause: Exception | None = None):
        super().__init__(
            code="R2_OPERATION",
            message=message,
            exit_code=5,
            detail=detail,
            cause=cause,
            category="R2 operation failed",
        )


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", *, detail: Any | None = None):
        super().__init__(code="NOT_FOUND", message=message, exit_code=5, detail=detail, category="Not found")


class MultipartUploadError(AppError):
    def __init__(self, message: str, *, detail: Any | None = None, cause: Exception | None = None):
        super().__init__(
            code="MULTIPART_UPLOAD",
            message=message,
            exit_code=5,
            detail=detail,
            cause=cause,
            category="Multipart upload error",
        )


class CloudflareApiError(AppError):
    def __init__(self, message: str, *, detail: Any | None = None):
        super().__init__(
            code="CLOUDFLARE_API", message=message, exit_code=6, detail=detail, category="Cloudflare API error"
        )


class IoError(AppError):
    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(code="IO", message=message, exit_code=7, cause=cause, category="IO error")


class OperationCancelledError(AppError):
    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(code="CANCELLED", message=message, exit_code=130, category="Cancelled")
