"""
Ride API Routes - fare estimation
"""
from decimal import Decimal
from fastapi import APIRouter
from pydantic import BaseModel, Field, model_validator

from thdrive.core.exceptions import ValidationException
from thdrive.domain.pricing import RideType, calculate_distance_km, calculate_fare, split_fare

router = APIRouter()


class FareEstimateRequest(BaseModel):
    """Either a distance or both coordinate pairs"""
    distance_km: float | None = Field(default=None, ge=0)
    pickup_lat: float | None = Field(default=None, ge=-90, le=90)
    pickup_lng: float | None = Field(default=None, ge=-180, le=180)
    dropoff_lat: float | None = Field(default=None, ge=-90, le=90)
    dropoff_lng: float | None = Field(default=None, ge=-180, le=180)
    duration_minutes: float = Field(ge=0)
    ride_type: RideType = RideType.STANDARD

    @model_validator(mode="after")
    def require_distance_or_coordinates(self):
        coordinates = (self.pickup_lat, self.pickup_lng, self.dropoff_lat, self.dropoff_lng)
        if self.distance_km is None and any(c is None for c in coordinates):
            raise ValueError("Provide distance_km or pickup and dropoff coordinates")
        return self


class FareEstimateResponse(BaseModel):
    distance_km: float
    duration_minutes: float
    ride_type: RideType
    fare: Decimal
    commission: Decimal
    driver_earnings: Decimal


@router.post(
    "/fare-estimate",
    response_model=FareEstimateResponse,
    summary="Estimate a fare and its commission split",
)
async def estimate_fare(data: FareEstimateRequest):
    distance = data.distance_km
    if distance is None:
        distance = calculate_distance_km(
            data.pickup_lat, data.pickup_lng, data.dropoff_lat, data.dropoff_lng
        )
    distance = round(distance, 2)

    try:
        fare = calculate_fare(distance, data.duration_minutes, data.ride_type)
    except ValueError as e:
        raise ValidationException(str(e))
    split = split_fare(fare)
    return FareEstimateResponse(
        distance_km=distance,
        duration_minutes=data.duration_minutes,
        ride_type=data.ride_type,
        fare=fare,
        commission=split.commission,
        driver_earnings=split.driver_earnings,
    )
