"""HTTP backend implementation for the device web API using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from devedit.core.errors import (
    BackendHTTPError,
    BackendResponseError,
    BackendTransportError,
)

LOGGER = logging.getLogger(__name__)

CONFIG_PATH = "/api/devices/config"
APPLY_PATH = "/api/devices/apply"
PROFILE_PATH = "/api/devices/profile"


class HTTPBackend:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        body_required: bool = False,
    ) -> Any:
        url = f"{self.base_url}{path}"
        LOGGER.debug("%s %s params=%s", method, url, params)

        async def _send(c: httpx.AsyncClient) -> httpx.Response:
            return await c.request(method, url, params=params, json=json_body)

        try:
            if self._client is not None:
                response = await _send(self._client)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_s)) as c:
                    response = await _send(c)
        except httpx.TimeoutException as exc:
            raise BackendTransportError(f"Request to {url} timed out") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise BackendTransportError(f"Request to {url} failed: {exc}") from exc

        if not response.is_success:
            raise BackendHTTPError(response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            if body_required:
                raise BackendResponseError(f"Invalid JSON from {url}: {exc}") from exc
            # POST endpoints may answer with an empty body.
            return {}

    async def fetch_config(self) -> Any:
        return await self._request("GET", CONFIG_PATH, body_required=True)

    async def apply_config(self, profile_id: str, document: dict[str, Any]) -> Any:
        return await self._request(
            "POST",
            APPLY_PATH,
            params={"profile": profile_id},
            json_body=document,
        )

    async def create_profile(self, profile_id: str, name: str, clone_from: str | None = None) -> Any:
        params = {"id": profile_id, "name": name}
        if clone_from:
            params["clone"] = clone_from
        return await self._request("POST", f"{PROFILE_PATH}/create", params=params)

    async def rename_profile(self, profile_id: str, name: str) -> Any:
        return await self._request(
            "POST",
            f"{PROFILE_PATH}/rename",
            params={"id": profile_id, "name": name},
        )

    async def delete_profile(self, profile_id: str) -> Any:
        return await self._request("POST", f"{PROFILE_PATH}/delete", params={"id": profile_id})

    async def activate_profile(self, profile_id: str) -> Any:
        return await self._request("POST", f"{PROFILE_PATH}/activate", params={"id": profile_id})
