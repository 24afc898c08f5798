"""
Gateway Factory - builds the payment gateway named by settings.PAYMENT_GATEWAY.
"""
from __future__ import annotations

import threading

from thdrive.core.config import settings
from thdrive.core.logging import get_logger
from thdrive.domain.services.payment_gateway.base_gateway import BasePaymentGateway

logger = get_logger(__name__)

_gateway: BasePaymentGateway | None = None
_lock = threading.Lock()


def _create_gateway(gateway_type: str) -> BasePaymentGateway:
    if gateway_type == "stub":
        from thdrive.domain.services.payment_gateway.stub_gateway import StubPaymentGateway

        return StubPaymentGateway()

    raise ValueError(f"Unknown payment gateway: {gateway_type}")


def get_payment_gateway() -> BasePaymentGateway:
    """Process-wide gateway instance, created on first use"""
    global _gateway
    if _gateway is None:
        with _lock:
            if _gateway is None:
                _gateway = _create_gateway(settings.PAYMENT_GATEWAY)
                logger.info("Payment gateway initialized", extra_data={"gateway": _gateway.name})
    return _gateway


def reset_payment_gateway() -> None:
    """Forget the cached instance (tests, settings reload)"""
    global _gateway
    with _lock:
        _gateway = None
