"""HTTP client for the Electric Imp build API.

Wraps httpx.Client with API-key authentication, the API's JSON
envelope, error mapping, and retry of idempotent requests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from impcli.api.errors import (
    AuthenticationError,
    ClientRequestError,
    NotFoundError,
    RemoteCallError,
)
from impcli.api.retry import call_with_retry
from impcli.models.api import Device, Model, Revision, RevisionSummary
from impcli.models.config import ClientSettings

M = TypeVar("M", bound=BaseModel)


class ImpClient:
    """Authenticated client for models, devices, and code revisions.

    Every method either returns parsed models or raises a subclass of
    ImpApiError. GET requests are retried on transient failures; POST
    requests are sent exactly once.
    """

    def __init__(
        self,
        api_key: str,
        settings: ClientSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self._log = log
        self._http = httpx.Client(
            base_url=self.settings.url,
            auth=httpx.BasicAuth(api_key, ""),
            timeout=self.settings.timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> ImpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # -- devices --------------------------------------------------------

    def lookup_device_by_id(self, device_id: str) -> list[Device]:
        """Return devices matching device_id (empty list if none)."""
        body = self._request("GET", "/devices", params={"device_id": device_id})
        return self._parse_list(body, "devices", Device)

    def lookup_devices_by_model(self, model_id: str) -> list[Device]:
        """Return devices the server reports as assigned to model_id."""
        body = self._request("GET", "/devices", params={"model_id": model_id})
        return self._parse_list(body, "devices", Device)

    # -- models ---------------------------------------------------------

    def get_model(self, model_id: str) -> Model:
        body = self._request("GET", f"/models/{model_id}")
        return self._parse_item(body, "model", Model)

    def search_models_by_name(self, name: str) -> list[Model]:
        """Return candidate models for name. Matching is left to the caller."""
        body = self._request("GET", "/models", params={"name": name})
        return self._parse_list(body, "models", Model)

    def create_model(self, name: str) -> Model:
        body = self._request("POST", "/models", json={"name": name})
        return self._parse_item(body, "model", Model)

    # -- revisions ------------------------------------------------------

    def list_revisions(self, model_id: str) -> list[RevisionSummary]:
        """Return the model's revisions, newest (highest version) first."""
        body = self._request("GET", f"/models/{model_id}/revisions")
        revisions = self._parse_list(body, "revisions", RevisionSummary)
        return sorted(revisions, key=lambda r: r.version, reverse=True)

    def get_revision(self, model_id: str, version: int) -> Revision:
        body = self._request("GET", f"/models/{model_id}/revisions/{version}")
        return self._parse_item(body, "revision", Revision)

    # -- transport ------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        def attempt() -> dict[str, Any]:
            self._debug(f"{method} {path} {params or ''}".rstrip())
            response = self._http.request(method, path, params=params, json=json)
            self._debug(f"-> {response.status_code}")
            return self._check(response)

        def on_retry(n: int, exc: Exception) -> None:
            self._debug(f"Request failed, retry {n}/{self.settings.max_retries}: {exc}")

        try:
            if method == "GET":
                return call_with_retry(
                    attempt, max_retries=self.settings.max_retries, on_retry=on_retry
                )
            return attempt()
        except httpx.HTTPError as e:
            raise RemoteCallError(f"Could not reach {self.settings.url}: {e}") from e

    @staticmethod
    def _check(response: httpx.Response) -> dict[str, Any]:
        """Return the decoded body of a successful response or raise."""
        try:
            body = response.json()
        except ValueError:
            body = None

        status = response.status_code
        if response.is_success and isinstance(body, dict) and body.get("success", True):
            return body

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}
        code = error.get("code")
        message = (
            error.get("message_full")
            or error.get("message_short")
            or f"Unexpected response from server (HTTP {status})"
        )

        if status in (401, 403):
            raise AuthenticationError(message, status, code)
        if status == 404:
            raise NotFoundError(message, status, code)
        if status == 429 or status >= 500:
            raise RemoteCallError(message, status, code)
        if 400 <= status < 500:
            raise ClientRequestError(message, status, code)
        if body is None or not isinstance(body, dict):
            raise RemoteCallError(message, status, code)
        # 2xx with success=false
        raise ClientRequestError(message, status, code)

    @staticmethod
    def _parse_item(body: dict[str, Any], key: str, model: type[M]) -> M:
        try:
            return model.model_validate(body[key])
        except (KeyError, ValidationError) as e:
            raise RemoteCallError(f"Malformed '{key}' in server response") from e

    @staticmethod
    def _parse_list(body: dict[str, Any], key: str, model: type[M]) -> list[M]:
        items = body.get(key, [])
        if not isinstance(items, list):
            raise RemoteCallError(f"Malformed '{key}' in server response")
        try:
            return [model.model_validate(item) for item in items]
        except ValidationError as e:
            raise RemoteCallError(f"Malformed '{key}' in server response") from e

    def _debug(self, message: str) -> None:
        if self._log is not None:
            self._log(message)

