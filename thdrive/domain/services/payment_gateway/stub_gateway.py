"""
Stub gateway - accepts every capture without moving real money.

Stands in for a real processor in development and tests. The settings
validator warns when it is active outside DEBUG.
"""
from __future__ import annotations

import secrets
from decimal import Decimal

from thdrive.core.exceptions import PaymentGatewayError
from thdrive.core.logging import get_logger
from thdrive.domain.services.payment_gateway.base_gateway import BasePaymentGateway, GatewayCapture

logger = get_logger(__name__)


class StubPaymentGateway(BasePaymentGateway):
    name = "stub"

    async def capture(
        self,
        user_id: int,
        amount: Decimal,
        payment_method: str,
    ) -> GatewayCapture:
        if amount <= 0:
            raise PaymentGatewayError(self.name, "capture amount must be positive", {"amount": str(amount)})

        reference = f"stub_{secrets.token_hex(8)}"
        logger.info(
            "Stub gateway capture accepted",
            extra_data={
                "user_id": user_id,
                "amount": amount,
                "payment_method": payment_method,
                "reference": reference,
            }
        )
        return GatewayCapture(reference=reference, gateway=self.name, amount=amount)
