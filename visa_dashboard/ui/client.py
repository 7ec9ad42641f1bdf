"""
ui/client.py
------------
Record store client used by the operator console.

Wraps the backend's HTTP API with httpx. Every call is a single
request/response: no retries and no cancellation. Any transport failure or
non-2xx answer surfaces as DashboardClientError so the console can report
it inline.
"""

import re
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from visa_dashboard.core.logging import get_logger
from visa_dashboard.schemas.analytics import MonthlyBucket, TimeWindow, WindowReport
from visa_dashboard.schemas.application import ApplicationCreate, ApplicationRead
from visa_dashboard.schemas.tenant_settings import TenantSettingsRead, TenantSettingsUpdate
from visa_dashboard.schemas.user import TokenResponse, UserRead

logger = get_logger(__name__)

_FILENAME = re.compile(r'filename="?([^";]+)"?')


class DashboardClientError(Exception):
    def __init__(self, status_code: Optional[int], detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail

    def __str__(self) -> str:
        if self.status_code is None:
            return self.detail
        return f"{self.status_code}: {self.detail}"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if not isinstance(body, dict):
        return response.text or response.reason_phrase
    detail = body.get("detail")
    if isinstance(detail, list):
        # FastAPI validation errors
        return "; ".join(
            str(item.get("msg", item) if isinstance(item, dict) else item) for item in detail
        )
    return str(detail or response.reason_phrase)


def _view_params(
    window: Optional[TimeWindow] = None,
    query: str = "",
    status: str = "ALL",
    sort_by: str = "newest",
) -> dict[str, str]:
    params = {"q": query, "status": status, "sort": str(getattr(sort_by, "value", sort_by))}
    if window is not None:
        params["window"] = TimeWindow(window).value
    return params


class DashboardClient:

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)
        self.token = token
        self.user: Optional[UserRead] = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "DashboardClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Plumbing ─────────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Backend unreachable", method=method, path=path, error=str(exc))
            raise DashboardClientError(None, f"Backend unreachable: {exc}") from exc
        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "Backend call failed",
                method=method,
                path=path,
                status_code=response.status_code,
                detail=detail,
            )
            raise DashboardClientError(response.status_code, detail)
        return response

    @staticmethod
    def _download(response: httpx.Response, fallback: str) -> tuple[str, str]:
        match = _FILENAME.search(response.headers.get("content-disposition", ""))
        return (match.group(1) if match else fallback), response.text

    # ── Identity ─────────────────────────────────────────────────────────────

    def _accept_token(self, response: httpx.Response) -> UserRead:
        token = TokenResponse.model_validate(response.json())
        self.token = token.access_token
        self.user = token.user
        return token.user

    def signup(self, agency_name: str, email: str, password: str) -> UserRead:
        response = self._request(
            "POST",
            "/signup",
            json={"agency_name": agency_name, "email": email, "password": password},
        )
        return self._accept_token(response)

    def login(self, email: str, password: str) -> UserRead:
        response = self._request(
            "POST", "/login", data={"username": email, "password": password}
        )
        return self._accept_token(response)

    def logout(self) -> None:
        self.token = None
        self.user = None

    def me(self) -> UserRead:
        self.user = UserRead.model_validate(self._request("GET", "/me").json())
        return self.user

    def current_tenant_identity(self) -> Optional[str]:
        """The signed-in agency, or None; there is no empty-string fallback."""
        return self.user.tenant_id if self.user else None

    # ── Applications ─────────────────────────────────────────────────────────

    def list_applications(self, **view: Any) -> list[ApplicationRead]:
        response = self._request("GET", "/applications", params=_view_params(**view))
        return [ApplicationRead.model_validate(item) for item in response.json()["items"]]

    def create_application(self, payload: dict[str, Any]) -> ApplicationRead:
        try:
            body = ApplicationCreate.model_validate(payload).model_dump(mode="json")
        except ValidationError as exc:
            raise DashboardClientError(422, str(exc)) from exc
        response = self._request("POST", "/applications", json=body)
        return ApplicationRead.model_validate(response.json())

    def update_application(self, application_id: int, fields: dict[str, Any]) -> ApplicationRead:
        response = self._request("PATCH", f"/applications/{application_id}", json=fields)
        return ApplicationRead.model_validate(response.json())

    def delete_application(self, application_id: int) -> bool:
        self._request("DELETE", f"/applications/{application_id}")
        return True

    def export_applications(self, filename: Optional[str] = None, **view: Any) -> tuple[str, str]:
        params = _view_params(**view)
        if filename:
            params["filename"] = filename
        response = self._request("GET", "/applications/export", params=params)
        return self._download(response, filename or "applications.csv")

    # ── Analytics ────────────────────────────────────────────────────────────

    def window_report(self, window: TimeWindow = TimeWindow.MONTH) -> WindowReport:
        response = self._request("GET", "/analytics", params={"window": TimeWindow(window).value})
        return WindowReport.model_validate(response.json())

    def monthly_history(self) -> list[MonthlyBucket]:
        response = self._request("GET", "/analytics/monthly")
        return [MonthlyBucket.model_validate(item) for item in response.json()]

    def export_monthly_history(self, window: TimeWindow = TimeWindow.MONTH) -> tuple[str, str]:
        response = self._request(
            "GET", "/analytics/monthly/export", params={"window": TimeWindow(window).value}
        )
        return self._download(response, "analytics.csv")

    # ── Tenant settings ──────────────────────────────────────────────────────

    def get_settings(self) -> Optional[TenantSettingsRead]:
        try:
            response = self._request("GET", "/settings")
        except DashboardClientError as exc:
            if exc.status_code == 404:
                return None
            raise
        return TenantSettingsRead.model_validate(response.json())

    def save_settings(
        self,
        agency_name: str,
        logo_url: Optional[str] = None,
        visible_fields: Optional[list[str]] = None,
    ) -> TenantSettingsRead:
        try:
            body = TenantSettingsUpdate(
                agency_name=agency_name, logo_url=logo_url, visible_fields=visible_fields
            )
        except ValidationError as exc:
            raise DashboardClientError(422, str(exc)) from exc
        response = self._request("PUT", "/settings", json=body.model_dump())
        return TenantSettingsRead.model_validate(response.json())
