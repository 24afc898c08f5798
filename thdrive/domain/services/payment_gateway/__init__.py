"""
Payment Gateway Abstraction Layer

Lets wallet top-ups swap processors without touching settlement logic.
"""
from thdrive.domain.services.payment_gateway.base_gateway import BasePaymentGateway, GatewayCapture
from thdrive.domain.services.payment_gateway.gateway_factory import (
    get_payment_gateway,
    reset_payment_gateway,
)

__all__ = [
    "BasePaymentGateway",
    "GatewayCapture",
    "get_payment_gateway",
    "reset_payment_gateway",
]
