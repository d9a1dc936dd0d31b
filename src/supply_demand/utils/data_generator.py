# ========================
# src/supply_demand/utils/data_generator.py
# ========================

"""
Data Generation Utilities

Writes a synthetic cab request file shaped like the real export: five
weekdays of requests, 300 drivers, mixed timestamp formats and "NA" for
missing values. Status probabilities vary by time slot and pickup point
so that the supply/demand gap has something to show.
"""

import csv
import random
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

HEADER = ['Request id', 'Pickup point', 'Driver id', 'Status', 'Request timestamp', 'Drop timestamp']

class DataGenerator:
    """
    Generates cab request datasets that satisfy the record invariants:
    a driver is assigned unless no car was available, and a drop time
    exists only for completed trips.
    """

    # Relative request volume per hour of day (peaks at 5-9h and 17-21h)
    HOURLY_WEIGHTS = [
        3, 3, 2, 2, 6, 12, 14, 13, 13, 12, 5, 4,
        4, 4, 4, 4, 5, 12, 14, 14, 14, 12, 5, 4,
    ]

    # (completed, cancelled, no cars) weights by pickup point and hour range
    STATUS_WEIGHTS = {
        'City': [((4, 12), (30, 50, 20)), ((0, 23), (60, 10, 30))],
        'Airport': [((17, 23), (20, 5, 75)), ((0, 23), (70, 10, 20))],
    }

    STATUSES = ['Trip Completed', 'Cancelled', 'No Cars Available']

    def __init__(self, seed: Optional[int] = None, num_drivers: int = 300):
        """
        Initialize data generator.

        Args:
            seed (int): Random seed for reproducible data generation
            num_drivers (int): Size of the driver pool
        """
        self.random = random.Random(seed)
        self.num_drivers = num_drivers
        logger.info(f"DataGenerator initialized with seed: {seed}")

    def generate_dataset(self,
                         file_path: str,
                         num_rows: int,
                         start_date: Optional[datetime] = None,
                         num_days: int = 5) -> Dict[str, Any]:
        """
        Generate a cab request file.

        Args:
            file_path (str): Output CSV file path
            num_rows (int): Number of requests to generate
            start_date (datetime): First day of requests (defaults to 11 July 2016)
            num_days (int): Number of consecutive days covered

        Returns:
            dict: Generation statistics
        """
        logger.info(f"Generating {num_rows:,} cab requests over {num_days} days...")

        if start_date is None:
            start_date = datetime(2016, 7, 11)

        stats = {
            'total_rows': num_rows,
            'start_date': start_date,
            'num_days': num_days,
            'status_counts': {status: 0 for status in self.STATUSES},
        }

        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(HEADER)

            for request_id in range(1, num_rows + 1):
                row = self._generate_single_record(request_id, start_date, num_days)
                stats['status_counts'][row[3]] += 1
                writer.writerow(row)

        logger.info(f"Dataset generated: {file_path}")
        logger.info(f"Status breakdown: {stats['status_counts']}")
        return stats

    def _generate_single_record(self, request_id: int, start_date: datetime, num_days: int) -> List[str]:
        pickup_point = self.random.choice(['City', 'Airport'])
        hour = self.random.choices(range(24), weights=self.HOURLY_WEIGHTS)[0]
        requested = start_date + timedelta(
            days=self.random.randrange(num_days),
            hours=hour,
            minutes=self.random.randrange(60),
            seconds=self.random.randrange(60),
        )
        status = self.random.choices(self.STATUSES, weights=self._status_weights(pickup_point, hour))[0]

        driver_id = 'NA'
        if status != 'No Cars Available':
            driver_id = str(self.random.randint(1, self.num_drivers))

        dropped = 'NA'
        if status == 'Trip Completed':
            dropped = self._format_timestamp(requested + timedelta(minutes=self.random.randint(20, 85)))

        return [str(request_id), pickup_point, driver_id, status, self._format_timestamp(requested), dropped]

    def _status_weights(self, pickup_point: str, hour: int):
        for (first, last), weights in self.STATUS_WEIGHTS[pickup_point]:
            if first <= hour <= last:
                return weights
        raise ValueError(f"No status weights for {pickup_point} at hour {hour}")

    def _format_timestamp(self, value: datetime) -> str:
        """Half the timestamps use d/m/Y H:M, the rest dd-mm-YYYY HH:MM:SS."""
        if self.random.random() < 0.5:
            return f"{value.day}/{value.month}/{value.year} {value.hour}:{value.minute:02d}"
        return value.strftime("%d-%m-%Y %H:%M:%S")
