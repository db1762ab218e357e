from __future__ import annotations

import logging
from typing import Any

import httpx

from training_console.config import Settings, load_settings

logger = logging.getLogger(__name__)

# Store error code returned when a conditional write's `where` clause does not match.
CONDITION_FAILED_CODE = 305


class RecordStoreError(Exception):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.code = code

    def __str__(self) -> str:
        return self.message


def _error_code(response: httpx.Response) -> int | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("code"), int):
        return payload["code"]
    return None


class RecordStoreClient:
    """Thin async JSON client for the external record store.

    The store speaks a class/object REST dialect: objects live under
    ``/1.1/classes/<Class>/<objectId>``, queries pass a JSON ``where`` parameter
    and writes return ``objectId``/``updatedAt``.
    """

    def __init__(
        self,
        *,
        app_id: str,
        api_key: str,
        server_url: str,
        timeout: float = 10.0,
        retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._retries = retries
        self._client = httpx.AsyncClient(
            base_url=server_url,
            timeout=timeout,
            transport=transport,
            headers={
                "X-Store-Id": app_id,
                "X-Store-Key": api_key,
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RecordStoreClient":
        settings = settings or load_settings()
        return cls(
            app_id=settings.store_app_id,
            api_key=settings.store_api_key,
            server_url=settings.store_server_url,
            timeout=settings.store_timeout_seconds,
            retries=settings.store_retries,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        last_error: Exception | None = None
        for attempt in range(self._retries + 1):
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.RequestError as exc:
                last_error = exc
            else:
                if response.status_code >= 500:
                    last_error = RecordStoreError(
                        f"Record store error {response.status_code}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                else:
                    return response
            if attempt < self._retries:
                logger.warning(
                    "Record store %s %s failed (attempt %s): %s",
                    method,
                    path,
                    attempt + 1,
                    last_error,
                )
        raise RecordStoreError("Record store request failed") from last_error

    async def request_json(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._request(method, path, **kwargs)
        if not response.is_success:
            raise RecordStoreError(
                f"Record store error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
                code=_error_code(response),
            )
        if not response.text:
            return {}
        return response.json()

    async def get_json(self, path: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request_json("GET", path, **kwargs)

    async def post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request_json("POST", path, json=payload)

    async def put_json(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.request_json("PUT", path, json=payload, params=params)

    async def delete_json(self, path: str) -> dict[str, Any]:
        return await self.request_json("DELETE", path)
