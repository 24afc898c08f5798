"""
Payment gateway interface.

Wallet top-ups depend on this interface only; concrete gateways (the stub,
or a card processor) are chosen by the factory from settings.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class GatewayCapture:
    """Result of a successful capture"""
    reference: str
    gateway: str
    amount: Decimal


class BasePaymentGateway(ABC):
    """
    Captures money from an external instrument before a wallet is credited.

    Implementations are responsible for:
    - talking to the processor (HTTP / SDK)
    - idempotency of a capture on their side
    - raising PaymentGatewayError when the capture is declined or fails
    """

    name: str = "base"

    @abstractmethod
    async def capture(
        self,
        user_id: int,
        amount: Decimal,
        payment_method: str,
    ) -> GatewayCapture:
        """
        Capture ``amount`` from the user's ``payment_method``.

        Raises:
            PaymentGatewayError: the capture was declined or failed.
        """
