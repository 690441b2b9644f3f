"""Synchronous HTTP client for the managed backend (REST tables, auth and storage)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from urllib.parse import quote as url_quote

import httpx

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"
AUTH_PATH = "/auth/v1"
STORAGE_PATH = "/storage/v1"

SINGLE_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


class BackendError(RuntimeError):
    """Raised when the backend answers with a non-2xx status or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        details: Any = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details
        self.hint = hint

    @classmethod
    def from_response(cls, response: httpx.Response) -> "BackendError":
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        code = body.get("code")
        if code is None or isinstance(code, int):
            # GoTrue puts the HTTP status in ``code``; the symbolic name lives in ``error_code``.
            code = body.get("error_code")
        message = (
            body.get("message")
            or body.get("msg")
            or body.get("error_description")
            or body.get("error")
            or response.reason_phrase
            or f"Request failed with status {response.status_code}"
        )
        return cls(
            str(message),
            code=str(code) if code is not None else None,
            status=response.status_code,
            details=body.get("details"),
            hint=body.get("hint"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "status": self.status,
            "details": self.details,
            "hint": self.hint,
        }


@dataclass
class QueryResult:
    data: Any
    count: int | None = None


def eq(value: Any) -> str:
    return f"eq.{_format_value(value)}"


def neq(value: Any) -> str:
    return f"neq.{_format_value(value)}"


def gt(value: Any) -> str:
    return f"gt.{_format_value(value)}"


def in_(values: Iterable[Any]) -> str:
    return "in.(" + ",".join(_format_value(value) for value in values) + ")"


def ilike(pattern: str) -> str:
    return f"ilike.{pattern}"


def quote(value: Any) -> str:
    """Double-quote a filter value so commas, parentheses and dots stay literal."""

    escaped = _format_value(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def ilike_any(columns: Iterable[str], term: str) -> str:
    """``or`` expression matching ``term`` anywhere in any of ``columns``, case-insensitively."""

    pattern = quote(f"*{term}*")
    return ",".join(f"{column}.ilike.{pattern}" for column in columns)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _parse_content_range(header: str | None) -> int | None:
    # Format: "0-19/57" or "*/0"; the total is "*" when counting was not requested.
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[-1]
    if not total.isdigit():
        return None
    return int(total)


class BackendClient:
    """Thin wrapper over ``httpx.Client`` speaking the backend's REST, auth and storage APIs."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        client_info: str = "socialgram-python",
        transport: httpx.BaseTransport | None = None,
        access_token: str | None = None,
        http: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.client_info = client_info
        self.access_token = access_token
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def with_access_token(self, access_token: str | None) -> "BackendClient":
        """Return a client acting as the given user, sharing this client's connection pool."""

        clone = BackendClient(
            self.base_url,
            self.api_key,
            client_info=self.client_info,
            access_token=access_token,
            http=self._http,
        )
        clone._owns_http = False
        return clone

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    # ------------------------------------------------------------------
    # Low level
    # ------------------------------------------------------------------

    def _headers(self, access_token: str | None = None, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        token = access_token or self.access_token or self.api_key
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "X-Client-Info": self.client_info,
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        try:
            response = self._http.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=self._headers(access_token, headers),
            )
        except httpx.TransportError as exc:
            logger.warning("Backend request %s %s failed: %s", method, path, exc)
            raise BackendError("Network request failed", code="network_error") from exc

        if response.is_error:
            error = BackendError.from_response(response)
            logger.debug("Backend responded %s to %s %s: %s", response.status_code, method, path, error.message)
            raise error
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # REST tables
    # ------------------------------------------------------------------

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Mapping[str, str] | None = None,
        or_: str | None = None,
        order: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
        count: bool = False,
        single: bool = False,
    ) -> QueryResult:
        """Read rows from ``table``.

        ``filters`` maps column names to operator expressions built with :func:`eq`,
        :func:`in_` and friends. ``single`` asks for exactly one object and makes the
        backend answer ``PGRST116`` when no row matches.
        """

        params: dict[str, Any] = {"select": columns}
        if filters:
            params.update(filters)
        if or_:
            params["or"] = f"({or_})"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset

        headers: dict[str, str] = {}
        if count:
            headers["Prefer"] = "count=exact"
        if single:
            headers["Accept"] = SINGLE_OBJECT_ACCEPT

        response = self._request("GET", f"{REST_PATH}/{table}", params=params, headers=headers)
        total = _parse_content_range(response.headers.get("content-range")) if count else None
        return QueryResult(data=self._json(response), count=total)

    def insert(
        self,
        table: str,
        payload: Mapping[str, Any] | list[Mapping[str, Any]],
        *,
        columns: str = "*",
        single: bool = True,
    ) -> Any:
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = SINGLE_OBJECT_ACCEPT
        response = self._request(
            "POST",
            f"{REST_PATH}/{table}",
            params={"select": columns},
            json=payload,
            headers=headers,
        )
        return self._json(response)

    def update(
        self,
        table: str,
        payload: Mapping[str, Any],
        *,
        filters: Mapping[str, str],
        columns: str = "*",
        single: bool = True,
    ) -> Any:
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = SINGLE_OBJECT_ACCEPT
        params: dict[str, Any] = {"select": columns}
        params.update(filters)
        response = self._request("PATCH", f"{REST_PATH}/{table}", params=params, json=payload, headers=headers)
        return self._json(response)

    def delete(self, table: str, *, filters: Mapping[str, str]) -> None:
        if not filters:
            raise ValueError("Refusing to delete without filters")
        self._request(
            "DELETE",
            f"{REST_PATH}/{table}",
            params=dict(filters),
            headers={"Prefer": "return=minimal"},
        )

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        response = self._request(
            "POST",
            f"{AUTH_PATH}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._json(response) or {}

    def sign_up(
        self,
        email: str,
        password: str,
        *,
        data: Mapping[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> dict[str, Any]:
        """Register a user; returns ``{"user": ..., "session": ...}`` with ``session`` None
        when the backend requires email confirmation first."""

        params = {"redirect_to": redirect_to} if redirect_to else None
        response = self._request(
            "POST",
            f"{AUTH_PATH}/signup",
            params=params,
            json={"email": email, "password": password, "data": dict(data or {})},
        )
        body = self._json(response) or {}
        if body.get("access_token"):
            return {"user": body.get("user"), "session": body}
        # Without a session the backend answers with the bare user object.
        user = body.get("user") or (body if "id" in body else None)
        return {"user": user, "session": None}

    def sign_out(self, access_token: str) -> None:
        self._request("POST", f"{AUTH_PATH}/logout", access_token=access_token)

    def get_user(self, access_token: str) -> dict[str, Any]:
        response = self._request("GET", f"{AUTH_PATH}/user", access_token=access_token)
        return self._json(response) or {}

    def update_user(self, access_token: str, attributes: Mapping[str, Any]) -> dict[str, Any]:
        response = self._request("PUT", f"{AUTH_PATH}/user", json=dict(attributes), access_token=access_token)
        return self._json(response) or {}

    def refresh_session(self, refresh_token: str) -> dict[str, Any]:
        response = self._request(
            "POST",
            f"{AUTH_PATH}/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._json(response) or {}

    def reset_password_for_email(self, email: str, *, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        self._request("POST", f"{AUTH_PATH}/recover", params=params, json={"email": email})

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def upload_object(
        self,
        bucket: str,
        path: str,
        content: bytes,
        *,
        content_type: str = "application/octet-stream",
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> dict[str, Any]:
        response = self._request(
            "POST",
            f"{STORAGE_PATH}/object/{bucket}/{_quote_path(path)}",
            content=content,
            headers={
                "Content-Type": content_type,
                "cache-control": f"max-age={cache_control}",
                "x-upsert": "true" if upsert else "false",
            },
        )
        return self._json(response) or {}

    def remove_objects(self, bucket: str, paths: list[str]) -> list[dict[str, Any]]:
        response = self._request("DELETE", f"{STORAGE_PATH}/object/{bucket}", json={"prefixes": paths})
        return self._json(response) or []

    def list_objects(
        self,
        bucket: str,
        folder: str = "",
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        response = self._request(
            "POST",
            f"{STORAGE_PATH}/object/list/{bucket}",
            json={
                "prefix": folder,
                "limit": limit,
                "offset": offset,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        return self._json(response) or []

    def object_info(self, bucket: str, path: str) -> dict[str, Any]:
        response = self._request("GET", f"{STORAGE_PATH}/object/info/{bucket}/{_quote_path(path)}")
        return self._json(response) or {}

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}{STORAGE_PATH}/object/public/{bucket}/{_quote_path(path)}"


def _quote_path(path: str) -> str:
    return url_quote(path.lstrip("/"), safe="/")


def create_backend_client(
    settings: Settings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> BackendClient:
    """Build a client from the configured backend URL and anon key."""

    settings = settings or get_settings()
    return BackendClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout=settings.request_timeout,
        client_info=settings.client_info,
        transport=transport,
    )


__all__ = [
    "BackendClient",
    "BackendError",
    "QueryResult",
    "create_backend_client",
    "eq",
    "gt",
    "ilike",
    "ilike_any",
    "in_",
    "neq",
    "quote",
]
