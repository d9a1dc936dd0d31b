# ========================
# src/supply_demand/pipeline/transformation.py
# ========================

"""
Data Transformation Module

Groups derived trips by time slot and pickup point to build the
supply/demand summary, plus the breakdown tables used to explain it.
"""

import logging
from collections import defaultdict
from statistics import median
from typing import Any, Dict, Iterable, List, Tuple

from .models import DerivedTrip, PickupPoint, SupplyDemandRow, TimeSlot, TripStatus

logger = logging.getLogger(__name__)

GroupKey = Tuple[TimeSlot, PickupPoint]

_SLOT_ORDER = {slot: index for index, slot in enumerate(TimeSlot)}
_PICKUP_ORDER = {point: index for index, point in enumerate(PickupPoint)}
_STATUS_ORDER = {status: index for index, status in enumerate(TripStatus)}


def _group_sort_key(key: GroupKey) -> Tuple[int, int]:
    return _SLOT_ORDER[key[0]], _PICKUP_ORDER[key[1]]


class SupplyDemandAggregator:
    """
    Accumulates counts over derived trips.

    Call process() with the trips, then finalize_aggregations() once;
    the results are read from the public attributes afterwards.
    """

    def __init__(self):
        """Initialize the aggregator."""
        self._reset_aggregations()
        logger.info("SupplyDemandAggregator initialized")

    def _reset_aggregations(self):
        """Reset all aggregation data structures."""
        self.group_counts = defaultdict(lambda: {'demand': 0, 'supply': 0})
        self.status_by_pickup_counts = defaultdict(int)
        self.status_by_slot_counts = defaultdict(int)
        self.drivers_by_group = defaultdict(set)
        self.travel_minutes_by_group = defaultdict(list)

        self.days = set()
        self.weekdays = set()
        self.drivers = set()
        self.pickup_counts = defaultdict(int)
        self.records_processed = 0

        self.supply_demand: List[SupplyDemandRow] = []
        self.status_by_pickup: List[Dict[str, Any]] = []
        self.status_by_slot: List[Dict[str, Any]] = []
        self.driver_availability: List[Dict[str, Any]] = []
        self.travel_time: List[Dict[str, Any]] = []
        self.dataset_profile: Dict[str, Any] = {}

    def process(self, trips: Iterable[DerivedTrip]) -> None:
        """
        Update all aggregated data structures with the given trips.

        Args:
            trips (list[DerivedTrip]): Cleaned trips with derived features.
        """
        for derived in trips:
            self._process_single_trip(derived)
            self.records_processed += 1

        logger.debug(f"Trips aggregated so far: {self.records_processed}")

    def _process_single_trip(self, derived: DerivedTrip) -> None:
        trip = derived.trip
        key = (derived.time_slot, trip.pickup_point)

        self.group_counts[key]['demand'] += 1
        if trip.is_completed:
            self.group_counts[key]['supply'] += 1
            self.drivers_by_group[key].add(trip.driver_id)
            self.travel_minutes_by_group[key].append(derived.travel_minutes)

        self.status_by_pickup_counts[(trip.status, trip.pickup_point)] += 1
        self.status_by_slot_counts[(derived.time_slot, trip.pickup_point, trip.status)] += 1

        self.days.add(derived.request_day)
        self.weekdays.add(derived.request_weekday)
        if trip.driver_id is not None:
            self.drivers.add(trip.driver_id)
        self.pickup_counts[trip.pickup_point] += 1

    def finalize_aggregations(self) -> List[SupplyDemandRow]:
        """
        Build the result tables from the accumulated counts.

        Returns:
            list[SupplyDemandRow]: The supply/demand summary. Row order follows
            the slot and pickup point declaration order and carries no meaning.
        """
        logger.info("Finalizing aggregations...")

        self.supply_demand = [
            SupplyDemandRow(time_slot=slot, pickup_point=point,
                            demand=counts['demand'], supply=counts['supply'])
            for (slot, point), counts in sorted(self.group_counts.items(),
                                                key=lambda item: _group_sort_key(item[0]))
        ]

        self.status_by_pickup = [
            {'status': status.value, 'pickup_point': point.value, 'requests': count}
            for (status, point), count in sorted(
                self.status_by_pickup_counts.items(),
                key=lambda item: (_STATUS_ORDER[item[0][0]], _PICKUP_ORDER[item[0][1]]))
        ]

        self.status_by_slot = [
            {'time_slot': slot.label, 'pickup_point': point.value, 'status': status.value, 'requests': count}
            for (slot, point, status), count in sorted(
                self.status_by_slot_counts.items(),
                key=lambda item: (*_group_sort_key(item[0][:2]), _STATUS_ORDER[item[0][2]]))
        ]

        self.driver_availability = [
            {'time_slot': slot.label, 'pickup_point': point.value, 'drivers': len(drivers)}
            for (slot, point), drivers in sorted(self.drivers_by_group.items(),
                                                 key=lambda item: _group_sort_key(item[0]))
        ]

        self.travel_time = [
            {'time_slot': slot.label, 'pickup_point': point.value,
             'completed_trips': len(minutes), 'median_travel_minutes': median(minutes)}
            for (slot, point), minutes in sorted(self.travel_minutes_by_group.items(),
                                                 key=lambda item: _group_sort_key(item[0]))
        ]

        self.dataset_profile = {
            'total_requests': self.records_processed,
            'distinct_days': len(self.days),
            'distinct_weekdays': sorted(self.weekdays),
            'distinct_drivers': len(self.drivers),
            'requests_by_pickup_point': {
                point.value: self.pickup_counts[point] for point in PickupPoint if point in self.pickup_counts
            },
        }

        logger.info(f"Aggregation complete. Processed {self.records_processed} trips")
        self._log_summary_statistics()
        return self.supply_demand

    def _log_summary_statistics(self) -> None:
        logger.info(f"Supply/demand groups: {len(self.supply_demand)}")
        logger.info(f"Distinct days: {len(self.days)}, distinct drivers: {len(self.drivers)}")
        if self.supply_demand:
            widest = max(self.supply_demand, key=lambda row: row.gap)
            logger.info(f"Largest gap: {widest.gap} ({widest.time_slot.label}, {widest.pickup_point.value})")

    def get_aggregation_summary(self) -> Dict[str, Any]:
        """Get a summary of all aggregations."""
        total_demand = sum(row.demand for row in self.supply_demand)
        total_supply = sum(row.supply for row in self.supply_demand)
        return {
            'records_processed': self.records_processed,
            'supply_demand_groups': len(self.supply_demand),
            'total_demand': total_demand,
            'total_supply': total_supply,
            'total_gap': total_demand - total_supply,
            'dataset_profile': self.dataset_profile,
        }


def build_supply_demand(trips: Iterable[DerivedTrip]) -> List[SupplyDemandRow]:
    """Aggregate trips into the supply/demand summary in one call."""
    aggregator = SupplyDemandAggregator()
    aggregator.process(trips)
    return aggregator.finalize_aggregations()
