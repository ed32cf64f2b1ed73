"""Cliente HTTP del servicio de moderación (implementa `AdminApi`).

Traduce respuestas a la taxonomía de errores del Core:
- 401 → `SessionExpiredError`
- cualquier otro status no-2xx, error de transporte o timeout → `ServiceError`
  con el `message` del servicio cuando viene en el body.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from adapters.http_client import bearer_headers, build_async_client
from core.config import AppSettings
from core.domain.errors import NotAuthenticatedError, ServiceError, SessionExpiredError
from core.domain.models import CollectionKey

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[dict[str, Any]] | None:
    return value if isinstance(value, list) else None


def _dig(payload: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload


# Formas aceptadas para `/api/properties/list`, en orden de preferencia.
LISTING_SHAPES: tuple[Callable[[Any], Any], ...] = (
    lambda body: body,
    lambda body: _dig(body, "data"),
    lambda body: _dig(body, "properties"),
    lambda body: _dig(body, "success", "data"),
    lambda body: _dig(body, "data", "data"),
)


def unwrap_listings(body: Any) -> list[dict[str, Any]]:
    """Desenvuelve el payload de listings; si ninguna forma encaja, lista vacía."""

    for shape in LISTING_SHAPES:
        found = _as_list(shape(body))
        if found is not None:
            return found
    logger.warning("Unrecognized listings payload shape; treating as empty")
    return []


def unwrap_accounts(body: Any) -> list[dict[str, Any]]:
    found = _as_list(_dig(body, "users"))
    if found is None:
        raise ServiceError("Malformed users payload from service.")
    return found


def _service_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message:
            return message
    return None


class HttpAdminApi:
    """Implementación httpx de `core.interfaces.admin_api.AdminApi`."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client or build_async_client(self._settings)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpAdminApi":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        authorized: bool = True,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        if authorized and not token:
            raise NotAuthenticatedError()

        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers=bearer_headers(token),
            )
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out: %s", method, url, exc)
            raise ServiceError("Request timed out.") from exc
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ServiceError(str(exc) or None) from exc

        logger.debug("%s %s -> HTTP %s", method, url, response.status_code)
        if response.status_code == 401:
            raise SessionExpiredError()
        if response.is_error:
            raise ServiceError(_service_message(response), status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError("Service returned a non-JSON body.", status_code=response.status_code) from exc

    async def login(self, email: str, password: str) -> dict[str, Any]:
        try:
            body = await self._request(
                "POST",
                self._settings.login_path,
                authorized=False,
                json={"email": email, "password": password},
            )
        except SessionExpiredError as exc:
            raise ServiceError("Invalid email or password.", status_code=401) from exc
        if not isinstance(body, dict):
            raise ServiceError("Malformed login response from service.")
        return body

    async def list_records(
        self,
        collection: CollectionKey,
        *,
        token: str | None,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        if collection.is_accounts:
            query = {"role": collection.role_param or "user", **(params or {})}
            body = await self._request("GET", "/api/users/list", token=token, params=query)
            return unwrap_accounts(body)

        body = await self._request(
            "GET",
            "/api/properties/list",
            token=token,
            authorized=False,
            params=params or None,
        )
        return unwrap_listings(body)

    async def toggle_block(self, account_id: str, *, token: str) -> dict[str, Any]:
        body = await self._request("PUT", f"/api/users/block/{account_id}", token=token, json={})
        if not isinstance(body, dict):
            raise ServiceError("Malformed block response from service.")
        return body

    async def set_listing_approval(self, listing_id: str, approve: bool, *, token: str) -> None:
        verb = "approve" if approve else "disapprove"
        await self._request("PUT", f"/api/properties/{verb}/{listing_id}", token=token, json={})

    async def delete_listing(self, listing_id: str, *, token: str) -> None:
        await self._request("DELETE", f"/api/properties/delete/{listing_id}", token=token)
