from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import requests

from r2pilot.core.errors.exceptions import NetworkError, RequestTimeoutError


@dataclass(frozen=True)
class HttpResult:
    status_code: int
    headers: dict[str, str]
    body_bytes: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body_bytes.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body_bytes.decode("utf-8"))


class HttpClient:
    """Small wrapper around requests with consistent errors.

    Transport failures surface as ``NetworkError`` / ``RequestTimeoutError``;
    HTTP status codes are left to the caller.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ):
        self._timeout_seconds = float(timeout_seconds)
        self._headers = dict(headers or {})
        self._session = session or requests.Session()

    def request(
        self,
        method: str,
        url: str,
        *,
        payload: Any | None = None,
        params: dict[str, Any] | None = None,
    ) -> HttpResult:
        kwargs: dict[str, Any] = {"headers": self._headers, "timeout": self._timeout_seconds}
        if payload is not None:
            kwargs["json"] = payload
        if params:
            kwargs["params"] = params

        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.Timeout as exc:
            raise RequestTimeoutError(cause=exc) from exc
        except requests.ConnectionError as exc:
            raise NetworkError(str(exc), cause=exc) from exc
        except requests.RequestException as exc:
            raise NetworkError(f"HTTP client error: {exc}", cause=exc) from exc

        return HttpResult(
            status_code=int(resp.status_code),
            headers={k.lower(): v for k, v in resp.headers.items()},
            body_bytes=resp.content,
        )

    def close(self) -> None:
        self._session.close()
