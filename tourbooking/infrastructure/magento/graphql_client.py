from __future__ import annotations

import logging
from typing import Any

import httpx

from tourbooking.application.exceptions import CartGatewayError, CartNotFoundError
from tourbooking.core.config import settings

_CART_NOT_FOUND_MARKERS = ("could not find a cart", "cart isn't active", "cart is not active")


class MagentoGraphQLClient:
    """Single-endpoint GraphQL transport. Every failure surfaces as CartGatewayError."""

    def __init__(
        self,
        base_url: str | None = None,
        graphql_path: str | None = None,
        api_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        base = (base_url or settings.MAGENTO_BASE_URL).rstrip("/")
        self._endpoint = f"{base}{graphql_path or settings.MAGENTO_GRAPHQL_PATH}"
        self._api_token = api_token if api_token is not None else settings.MAGENTO_API_TOKEN
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.MAGENTO_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            resp = await self._client.post(self._endpoint, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            self._logger.error("GraphQL request timed out", extra={"error": str(e)})
            raise CartGatewayError("Request timeout") from e
        except httpx.HTTPError as e:
            self._logger.error("GraphQL request failed", extra={"error": str(e)})
            raise CartGatewayError(f"Network error: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            self._logger.error(
                "GraphQL response is not JSON",
                extra={"status": resp.status_code, "error": str(e)},
            )
            raise CartGatewayError(f"API Error: {resp.status_code}") from e

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            message = str((errors[0] or {}).get("message") or "Unknown GraphQL error")
            self._logger.error("GraphQL error", extra={"status": resp.status_code, "error": message})
            if any(marker in message.lower() for marker in _CART_NOT_FOUND_MARKERS):
                raise CartNotFoundError(message)
            raise CartGatewayError(message)

        if resp.status_code >= 400:
            self._logger.error("GraphQL HTTP error", extra={"status": resp.status_code})
            raise CartGatewayError(f"API Error: {resp.status_code}")

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise CartGatewayError("Empty response from backend")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()
