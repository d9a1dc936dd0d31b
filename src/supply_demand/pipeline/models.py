# ========================
# src/supply_demand/pipeline/models.py
# ========================

"""
Data Model

Typed records passed between pipeline stages. Everything here is frozen:
trips are never mutated after cleaning and the summary is immutable.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class PickupPoint(Enum):
    CITY = "City"
    AIRPORT = "Airport"


class TripStatus(Enum):
    TRIP_COMPLETED = "Trip Completed"
    CANCELLED = "Cancelled"
    NO_CARS_AVAILABLE = "No Cars Available"


class TimeSlot(Enum):
    """
    Six fixed buckets partitioning the 24-hour day.

    Each member carries its inclusive hour bounds, so the partition is
    audited and changed in this one place.
    """

    LATE_NIGHT = ("late night", 0, 3)
    MORNING = ("morning", 4, 7)
    LATE_MORNING = ("late morning", 8, 12)
    AFTERNOON = ("afternoon", 13, 16)
    EVENING = ("evening", 17, 20)
    NIGHT = ("night", 21, 23)

    def __init__(self, label: str, first_hour: int, last_hour: int):
        self.label = label
        self.first_hour = first_hour
        self.last_hour = last_hour

    def contains(self, hour: int) -> bool:
        return self.first_hour <= hour <= self.last_hour

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class TripRequest:
    request_id: int
    pickup_point: PickupPoint
    driver_id: Optional[int]
    status: TripStatus
    request_timestamp: datetime
    drop_timestamp: Optional[datetime]

    @property
    def is_completed(self) -> bool:
        return self.status is TripStatus.TRIP_COMPLETED


@dataclass(frozen=True)
class DerivedTrip:
    """A cleaned trip plus the features computed from its request time."""

    trip: TripRequest
    request_day: int
    request_hour: int
    request_weekday: str
    time_slot: TimeSlot
    travel_minutes: Optional[float]

    @property
    def pickup_point(self) -> PickupPoint:
        return self.trip.pickup_point

    @property
    def status(self) -> TripStatus:
        return self.trip.status


@dataclass(frozen=True)
class SupplyDemandRow:
    time_slot: TimeSlot
    pickup_point: PickupPoint
    demand: int
    supply: int

    @property
    def gap(self) -> int:
        return self.demand - self.supply

    def to_dict(self) -> dict:
        return {
            'time_slot': self.time_slot.label,
            'pickup_point': self.pickup_point.value,
            'demand': self.demand,
            'supply': self.supply,
            'gap': self.gap,
        }
