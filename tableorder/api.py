"""Async client for the restaurant ordering REST service."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar
from urllib.parse import quote

import httpx

from tableorder.config import resolve_api_base_url, resolve_request_timeout
from tableorder.errors import TransientError, error_for_status
from tableorder.models import MenuCategory, Order, Payment, PaymentMethodInfo, PaymentMethodType, Restaurant, Table
from tableorder.payloads import (
    menu_from_payload,
    order_from_payload,
    payment_from_payload,
    payment_method_from_payload,
    restaurant_from_payload,
    table_from_payload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiClient:
    """Public customer endpoints. None of them need authentication."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or resolve_api_base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else resolve_request_timeout()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        logger.debug("api_request method=%s path=%s", method, path)
        try:
            resp = await self._client.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("api_timeout method=%s path=%s", method, path)
            raise TransientError(f"Request timed out: {method} {path}") from exc
        except httpx.TransportError as exc:
            logger.warning("api_transport_error method=%s path=%s error=%r", method, path, exc)
            raise TransientError(f"Network error: {exc}") from exc

        if resp.is_success:
            try:
                return resp.json()
            except ValueError as exc:
                logger.warning("api_bad_body method=%s path=%s status=%s", method, path, resp.status_code)
                raise TransientError(f"Malformed response from {method} {path}", resp.status_code) from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or resp.reason_phrase or "An error occurred"
        if isinstance(message, list):
            message = "; ".join(str(part) for part in message)
        error_label = body.get("error") or "Unknown error"
        logger.info(
            "api_error method=%s path=%s status=%s message=%r", method, path, resp.status_code, message
        )
        raise error_for_status(resp.status_code, str(message), str(error_label))

    async def _fetch(
        self, method: str, path: str, convert: Callable[[Any], T], payload: dict[str, Any] | None = None
    ) -> T:
        """Request and convert; a record the client cannot read is a transient failure."""
        data = await self._request(method, path, payload)
        try:
            return convert(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("api_bad_record method=%s path=%s error=%r", method, path, exc)
            raise TransientError(f"Unreadable record from {method} {path}: {exc}") from exc

    async def get_restaurant(self) -> Restaurant:
        return await self._fetch("GET", "/restaurant", restaurant_from_payload)

    async def get_table(self, table_id: str) -> Table:
        return await self._fetch("GET", f"/tables/info/{quote(table_id, safe='')}", table_from_payload)

    async def get_table_by_qr_code(self, qr_code: str) -> Table:
        """Look up a table from raw QR data (JSON text or URL)."""
        return await self._fetch("GET", f"/tables/{quote(qr_code, safe='')}", table_from_payload)

    async def get_menu(self) -> list[MenuCategory]:
        """Active categories sorted by display order."""
        return await self._fetch("GET", "/menu", menu_from_payload)

    async def create_order(self, payload: dict[str, Any]) -> Order:
        return await self._fetch("POST", "/orders", order_from_payload, payload)

    async def get_table_orders(self, table_id: str) -> list[Order]:
        """Orders placed from a table, as the service lists them."""
        return await self._fetch(
            "GET",
            f"/orders/table/{quote(table_id, safe='')}",
            lambda data: [order_from_payload(raw) for raw in data],
        )

    async def get_order(self, order_id: str) -> Order:
        return await self._fetch("GET", f"/orders/{quote(order_id, safe='')}", order_from_payload)

    async def get_payment_methods(self) -> list[PaymentMethodInfo]:
        return await self._fetch(
            "GET", "/payment-methods", lambda data: [payment_method_from_payload(raw) for raw in data]
        )

    async def initiate_payment(self, order_id: str, payment_method: PaymentMethodType) -> Payment:
        return await self._fetch(
            "POST",
            "/payments/initiate",
            payment_from_payload,
            {"orderId": order_id, "paymentMethod": payment_method.value},
        )

    async def upload_transfer_receipt(self, payment_id: str, receipt_url: str) -> Payment:
        return await self._fetch(
            "POST",
            "/payments/transfer/upload",
            payment_from_payload,
            {"paymentId": payment_id, "receiptUrl": receipt_url},
        )
