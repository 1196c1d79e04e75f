"""
Payment Gateway Client — Paystack transaction initialize/verify over HTTPS.

Usage:
    gateway = PaystackGateway(secret_key, base_url="https://api.paystack.co")
    session = await gateway.initialize(1268750, "TXN-...", callback_url, email, metadata)
    result = await gateway.verify("TXN-...")
    await gateway.close()

Network errors, timeouts and non-2xx responses all surface as
GatewayUnavailable so callers leave the transaction PENDING for later
reconciliation. The secret key is sent as a bearer token and never logged.
"""
import asyncio
import enum
import logging
from datetime import datetime
from typing import Optional, Dict, Any

import aiohttp
from pydantic import BaseModel

from motopay.exceptions import GatewayUnavailable

logger = logging.getLogger(__name__)


class GatewayStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"   # ongoing/abandoned/queued: not settled either way


class GatewaySession(BaseModel):
    redirect_url: str
    session_handle: str


class GatewayVerification(BaseModel):
    status: GatewayStatus
    paid_amount_minor: int = 0
    paid_at: Optional[datetime] = None
    gateway_response: Optional[str] = None


# Paystack statuses that are final failures; anything else non-success is still open
_FAILED_STATUSES = {"failed", "reversed"}


class PaystackGateway:
    """Async Paystack client using a shared aiohttp session."""

    def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co", timeout: float = 15.0):
        self._secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=5)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "Authorization": f"Bearer {self._secret_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._session

    async def close(self):
        """Close the HTTP session"""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"
        try:
            async with session.request(method, url, json=payload) as response:
                body = await response.json(content_type=None)
                if response.status >= 300 or not body or not body.get("status"):
                    message = (body or {}).get("message", "no message")
                    logger.error("[Paystack] %s %s -> %s: %s", method, path, response.status, message)
                    raise GatewayUnavailable(f"Payment gateway returned HTTP {response.status}")
                return body.get("data") or {}
        except asyncio.TimeoutError as e:
            logger.error("[Paystack] Timeout on %s %s", method, path)
            raise GatewayUnavailable("Payment gateway timed out") from e
        except aiohttp.ClientError as e:
            logger.error("[Paystack] Network error on %s %s: %s", method, path, e)
            raise GatewayUnavailable("Payment gateway unreachable") from e
        except ValueError as e:
            logger.error("[Paystack] Unparseable response on %s %s", method, path)
            raise GatewayUnavailable("Payment gateway returned an invalid response") from e

    async def initialize(
        self,
        amount_minor: int,
        reference: str,
        callback_url: str,
        email: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GatewaySession:
        data = await self._request("POST", "/transaction/initialize", {
            "email": email,
            "amount": amount_minor,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata or {},
        })
        return GatewaySession(
            redirect_url=data.get("authorization_url", ""),
            session_handle=data.get("access_code", ""),
        )

    async def verify(self, reference: str) -> GatewayVerification:
        data = await self._request("GET", f"/transaction/verify/{reference}")
        raw_status = (data.get("status") or "").lower()
        if raw_status == "success":
            status = GatewayStatus.SUCCESS
        elif raw_status in _FAILED_STATUSES:
            status = GatewayStatus.FAILED
        else:
            status = GatewayStatus.PENDING

        return GatewayVerification(
            status=status,
            paid_amount_minor=int(data.get("amount") or 0),
            paid_at=data.get("paid_at") or None,
            gateway_response=data.get("gateway_response"),
        )
