"""
Payment gateway client.

Turns an amount into a client-usable payment handle (a Stripe-compatible
PaymentIntent client secret). Calls are bounded by a timeout and guarded by
a circuit breaker.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import OperationTimeoutError, PaymentGatewayError
from parcel_backend.app.core.reliability import CircuitBreaker, CircuitOpenError, with_timeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChargeIntent:
    """Gateway-side charge intent."""
    intent_id: Optional[str]
    client_handle: str


class PaymentGateway:
    """Interface of the payment processor client."""

    async def create_charge_intent(self, amount_in_smallest_unit: int, currency: str) -> ChargeIntent:
        raise NotImplementedError


class StripePaymentGateway(PaymentGateway):
    """
    Payment gateway backed by the Stripe REST API (`POST /v1/payment_intents`).

    Args:
        base_url: API root, e.g. https://api.stripe.com
        api_key: secret key sent as a bearer token
        timeout_seconds: overall budget per charge intent
        breaker: circuit breaker shared across calls
        transport: optional httpx transport (tests inject httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float,
        breaker: CircuitBreaker,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.breaker = breaker
        self._transport = transport

    async def create_charge_intent(self, amount_in_smallest_unit: int, currency: str) -> ChargeIntent:
        try:
            return await self.breaker.call(self._timed_payment_intent, amount_in_smallest_unit, currency)
        except CircuitOpenError:
            raise PaymentGatewayError("Payment gateway temporarily unavailable")

    async def _timed_payment_intent(self, amount: int, currency: str) -> ChargeIntent:
        # Timeout runs inside the breaker so a hanging gateway counts as a failure
        return await with_timeout(
            self._post_payment_intent(amount, currency),
            self.timeout_seconds,
            "payment gateway",
        )

    async def _post_payment_intent(self, amount: int, currency: str) -> ChargeIntent:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    "/v1/payment_intents",
                    data={
                        "amount": str(amount),
                        "currency": currency,
                        "payment_method_types[]": "card",
                    },
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            except httpx.TimeoutException:
                raise OperationTimeoutError("payment gateway", self.timeout_seconds)
            except httpx.HTTPError as exc:
                logger.error("Payment gateway transport error: %s", exc)
                raise PaymentGatewayError("Payment gateway unreachable")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            reason = (body.get("error") or {}).get("message") if isinstance(body, dict) else None
            logger.error("Payment gateway rejected intent (HTTP %s): %s", response.status_code, reason)
            raise PaymentGatewayError(
                reason or "Payment gateway rejected the charge",
                details={"gateway_status": response.status_code},
            )

        client_secret = body.get("client_secret") if isinstance(body, dict) else None
        if not client_secret:
            raise PaymentGatewayError("Payment gateway response carried no client secret")

        logger.info("Charge intent %s created for %s %s", body.get("id"), amount, currency)
        return ChargeIntent(intent_id=body.get("id"), client_handle=client_secret)


# Global breaker shared by all gateway calls
gateway_circuit_breaker = CircuitBreaker(
    failure_threshold=settings.payment_gateway_failure_threshold,
    reset_timeout=settings.payment_gateway_reset_timeout,
)


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency returning the configured payment gateway."""
    return StripePaymentGateway(
        base_url=settings.payment_gateway_url,
        api_key=settings.payment_gateway_key,
        timeout_seconds=settings.payment_gateway_timeout_seconds,
        breaker=gateway_circuit_breaker,
    )
