"""
Pricing - fare calculation and the platform commission split.
"""
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any

from thdrive.core.config import settings
from thdrive.core.validation import CENT, to_money

EARTH_RADIUS_KM = 6371.0

BASE_FARE = Decimal("2.50")
PER_KM_RATE = Decimal("1.50")
PER_MINUTE_RATE = Decimal("0.25")


class RideType(str, Enum):
    STANDARD = "standard"
    PREMIUM = "premium"
    GROUP = "group"


RIDE_TYPE_MULTIPLIERS = {
    RideType.STANDARD: Decimal("1.0"),
    RideType.PREMIUM: Decimal("1.5"),
    RideType.GROUP: Decimal("1.8"),
}

MINIMUM_FARES = {
    RideType.STANDARD: Decimal("5.00"),
    RideType.PREMIUM: Decimal("10.00"),
    RideType.GROUP: Decimal("15.00"),
}


@dataclass(frozen=True)
class FareSplit:
    """How one ride amount divides between the platform and the driver"""
    amount: Decimal
    commission: Decimal
    driver_earnings: Decimal


def split_fare(amount: Any, rate: Any = None) -> FareSplit:
    """
    Split a ride amount into platform commission and driver earnings.

    The commission is rounded half-up to cents and the driver receives the
    remainder, so commission + driver_earnings == amount to the cent.
    """
    money = to_money(amount)
    if money < 0:
        raise ValueError("Amount cannot be negative")
    commission_rate = Decimal(str(settings.PLATFORM_COMMISSION_RATE if rate is None else rate))
    commission = (money * commission_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return FareSplit(
        amount=money,
        commission=commission,
        driver_earnings=money - commission,
    )


def calculate_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates (haversine)"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_fare(
    distance_km: float,
    duration_minutes: float,
    ride_type: RideType = RideType.STANDARD,
) -> Decimal:
    """
    Fare = (base + per-km + per-minute) * ride type multiplier, never below
    the ride type's minimum fare, rounded to cents.
    """
    if distance_km < 0 or duration_minutes < 0:
        raise ValueError("Distance and duration cannot be negative")

    ride_type = RideType(ride_type)
    fare = (
        BASE_FARE
        + Decimal(str(distance_km)) * PER_KM_RATE
        + Decimal(str(duration_minutes)) * PER_MINUTE_RATE
    )
    fare *= RIDE_TYPE_MULTIPLIERS[ride_type]
    fare = max(fare, MINIMUM_FARES[ride_type])
    return fare.quantize(CENT, rounding=ROUND_HALF_UP)
