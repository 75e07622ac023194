"""
PayPal REST v2 결제 클라이언트
- OAuth2 client_credentials 토큰은 만료 직전(_SKEW)까지 캐시
- 대행사 오류는 PaymentGatewayError 로 변환
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError, PaymentNotConfiguredError
from app.utils.datetime import utc_now

logger = logging.getLogger(__name__)

PAYPAL_BASE_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}

_SKEW = timedelta(minutes=2)


@dataclass
class ProviderOrder:
    id: str
    status: str
    approval_url: Optional[str] = None


@dataclass
class CaptureResult:
    status: str
    capture_id: Optional[str] = None


class PayPalClient:
    """PayPal 주문 생성 / 결제 승인(capture) 클라이언트"""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        environment: str = "sandbox",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.environment = environment if environment in PAYPAL_BASE_URLS else "sandbox"
        self.base_url = PAYPAL_BASE_URLS[self.environment]
        self._transport = transport
        self._timeout = timeout

        self._lock = asyncio.Lock()
        self._access_token: str | None = None
        self._token_expires_at: datetime | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self._timeout, transport=self._transport)

    def _is_valid(self) -> bool:
        return bool(self._access_token and self._token_expires_at and utc_now() < self._token_expires_at)

    async def _fetch_new_token(self) -> None:
        try:
            async with self._client() as client:
                r = await client.post(
                    "/v1/oauth2/token",
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            logger.error("PayPal 토큰 발급 실패: %s - %s", e.response.status_code, e.response.text)
            raise PaymentGatewayError("Failed to authenticate with payment provider") from e
        except httpx.HTTPError as e:
            logger.error("PayPal 토큰 요청 오류: %s", e)
            raise PaymentGatewayError("Payment provider unavailable") from e

        token = data.get("access_token")
        if not token:
            logger.error("PayPal 토큰 응답 비정상: %s", data)
            raise PaymentGatewayError("Failed to authenticate with payment provider")

        expires_in = float(data.get("expires_in") or 3600)
        self._access_token = token
        # 안전 스큐 적용(조기 갱신)
        self._token_expires_at = utc_now() + timedelta(seconds=max(60.0, expires_in)) - _SKEW
        logger.info("PayPal 토큰 발급 완료. 만료(스큐 적용 후): %s", self._token_expires_at.isoformat())

    async def get_access_token(self) -> str:
        if not self.is_configured:
            raise PaymentNotConfiguredError()
        if self._is_valid():
            return self._access_token  # type: ignore
        async with self._lock:
            if not self._is_valid():
                await self._fetch_new_token()
            return self._access_token  # type: ignore

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        token = await self.get_access_token()
        try:
            async with self._client() as client:
                r = await client.post(
                    path,
                    json=payload or {},
                    headers={"Authorization": f"Bearer {token}"},
                )
                r.raise_for_status()
                return r.json()
        except httpx.HTTPStatusError as e:
            logger.error("PayPal 요청 실패 %s: %s - %s", path, e.response.status_code, e.response.text)
            raise PaymentGatewayError() from e
        except httpx.HTTPError as e:
            logger.error("PayPal 요청 오류 %s: %s", path, e)
            raise PaymentGatewayError("Payment provider unavailable") from e

    async def create_order(self, amount: float, reference_id: str, currency: str = "USD") -> ProviderOrder:
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": reference_id,
                "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
            }],
            "application_context": {
                "return_url": settings.PAYPAL_RETURN_URL,
                "cancel_url": settings.PAYPAL_CANCEL_URL,
                "user_action": "PAY_NOW",
            },
        }
        data = await self._post("/v2/checkout/orders", payload)
        approval_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None,
        )
        return ProviderOrder(id=data["id"], status=data.get("status", ""), approval_url=approval_url)

    async def capture_order(self, provider_order_id: str) -> CaptureResult:
        data = await self._post(f"/v2/checkout/orders/{provider_order_id}/capture")

        capture_id = None
        for unit in data.get("purchase_units", []):
            captures = (unit.get("payments") or {}).get("captures") or []
            if captures:
                capture_id = captures[0].get("id")
                break
        return CaptureResult(status=data.get("status", ""), capture_id=capture_id)


# 모듈 단위 싱글톤 인스턴스(프로세스 단위)
_payment_gateway: Optional[PayPalClient] = None


def get_payment_gateway() -> PayPalClient:
    """PayPalClient 싱글톤 반환 (FastAPI Depends용)"""
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = PayPalClient(
            settings.PAYPAL_CLIENT_ID,
            settings.PAYPAL_CLIENT_SECRET,
            settings.PAYPAL_ENVIRONMENT,
        )
    return _payment_gateway
