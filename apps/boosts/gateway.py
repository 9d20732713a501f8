from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import requests
from django.conf import settings
from requests.auth import HTTPBasicAuth

from .errors import ErrorKind, PaymentError

logger = logging.getLogger(__name__)

PAYHERO_API = "https://backend.payhero.co.ke/api/v2/payments"


@dataclass(frozen=True)
class PayHeroConfig:
    username: str
    password: str
    channel_id: str
    callback_url: str
    timeout: float | str = 30.0

    @classmethod
    def from_settings(cls) -> "PayHeroConfig":
        # Values are not validated here; a bad channel id or timeout fails on the first payment.
        return cls(
            username=getattr(settings, "PAYHERO_API_USERNAME", "") or "",
            password=getattr(settings, "PAYHERO_API_PASSWORD", "") or "",
            channel_id=getattr(settings, "PAYHERO_CHANNEL_ID", "") or "",
            callback_url=getattr(settings, "PAYHERO_CALLBACK_URL", "") or "",
            timeout=getattr(settings, "PAYHERO_TIMEOUT", 30.0),
        )


@dataclass(frozen=True)
class GatewayResult:
    body: Optional[str] = None
    error: Optional[PaymentError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PayHeroClient:
    """
    Starts M-Pesa STK pushes through PayHero.

    The provider answers asynchronously: the response body here only says the
    push was accepted, the outcome arrives later on the callback URL.
    """

    def __init__(self, config: PayHeroConfig) -> None:
        self.config = config

    def build_payload(self, amount, phone: str, customer_name: str, reference: str) -> dict:
        return {
            # PayHero takes whole shillings; int() truncates.
            "amount": int(Decimal(str(amount))),
            "phone_number": phone,
            "channel_id": int(self.config.channel_id),
            "provider": "m-pesa",
            "external_reference": reference,
            "customer_name": customer_name,
            "callback_url": self.config.callback_url,
        }

    def initiate(self, amount, phone: str, customer_name: str, reference: str) -> GatewayResult:
        try:
            payload = self.build_payload(amount, phone, customer_name, reference)
            timeout = float(self.config.timeout)
        except (TypeError, ValueError, ArithmeticError) as exc:
            logger.exception("Could not build PayHero payload for %s", reference)
            return GatewayResult(error=PaymentError(ErrorKind.UNEXPECTED, str(exc)))

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.info("Sending PayHero request: %s", payload)

        try:
            resp = requests.post(
                PAYHERO_API,
                json=payload,
                headers=headers,
                auth=HTTPBasicAuth(self.config.username, self.config.password),
                timeout=timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as exc:
            upstream = exc.response
            if upstream is not None and 400 <= upstream.status_code < 500:
                logger.warning("PayHero error response (%s): %s", upstream.status_code, upstream.text)
                return GatewayResult(
                    error=PaymentError(
                        ErrorKind.GATEWAY,
                        "PayHero API error",
                        status=upstream.status_code,
                        body=upstream.text,
                    )
                )
            logger.error("PayHero request failed: %s", exc)
            return GatewayResult(error=PaymentError(ErrorKind.UNEXPECTED, str(exc)))
        except requests.RequestException as exc:
            logger.error("PayHero request failed: %s", exc)
            return GatewayResult(error=PaymentError(ErrorKind.UNEXPECTED, str(exc)))

        logger.info("PayHero response: %s", resp.text)
        return GatewayResult(body=resp.text)
