# ========================
# src/supply_demand/pipeline/features.py
# ========================

"""
Feature Derivation Module

Computes request day, hour, weekday, time slot and travel time for each
cleaned trip.
"""

import logging
from typing import Iterable, List

from .models import DerivedTrip, TimeSlot, TripRequest

logger = logging.getLogger(__name__)


def time_slot_for_hour(hour: int) -> TimeSlot:
    """
    Classify an hour of the day (0-23) into its time slot.

    Raises:
        ValueError: If the hour is outside 0-23.
    """
    for slot in TimeSlot:
        if slot.contains(hour):
            return slot
    raise ValueError(f"Hour must be between 0 and 23, got {hour!r}")


class FeatureDeriver:
    """Derives request-time features from cleaned trips."""

    def derive(self, trips: Iterable[TripRequest]) -> List[DerivedTrip]:
        derived = [self.derive_trip(trip) for trip in trips]
        logger.info(f"Derived features for {len(derived)} trips")
        return derived

    def derive_trip(self, trip: TripRequest) -> DerivedTrip:
        requested = trip.request_timestamp

        travel_minutes = None
        if trip.drop_timestamp is not None:
            travel_minutes = (trip.drop_timestamp - requested).total_seconds() / 60

        return DerivedTrip(
            trip=trip,
            request_day=requested.day,
            request_hour=requested.hour,
            request_weekday=requested.strftime('%A'),
            time_slot=time_slot_for_hour(requested.hour),
            travel_minutes=travel_minutes,
        )
