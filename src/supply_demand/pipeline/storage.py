# ========================
# src/supply_demand/pipeline/storage.py
# ========================

"""
Data Storage Module

Writes the aggregated tables to CSV plus a JSON run summary. Display
ordering (e.g. decreasing gap) is applied here, not in the aggregator.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .models import SupplyDemandRow

logger = logging.getLogger(__name__)


def sort_by_gap(rows: Sequence[SupplyDemandRow]) -> List[SupplyDemandRow]:
    """Order summary rows by decreasing gap, ties broken by slot then pickup point."""
    return sorted(rows, key=lambda row: (-row.gap, row.time_slot.first_hour, row.pickup_point.value))


class DataSaver:
    """
    Saves the aggregated data from the SupplyDemandAggregator to files.
    """

    def __init__(self, output_dir: str = "data/processed"):
        """
        Initialize the data saver.

        Args:
            output_dir (str): Directory to save output files
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"DataSaver initialized with output directory: {self.output_dir}")

    def save_all_data(self, aggregator) -> Dict[str, str]:
        """
        Save all aggregated data to files.

        Args:
            aggregator: SupplyDemandAggregator after finalize_aggregations()

        Returns:
            dict: Mapping of data type to saved file path
        """
        saved_files = {
            'supply_demand': self.save_supply_demand(aggregator.supply_demand),
            'status_by_pickup': self._save_table(
                "status_by_pickup.csv", ['status', 'pickup_point', 'requests'],
                aggregator.status_by_pickup),
            'status_by_slot': self._save_table(
                "status_by_slot.csv", ['time_slot', 'pickup_point', 'status', 'requests'],
                aggregator.status_by_slot),
            'driver_availability': self._save_table(
                "driver_availability.csv", ['time_slot', 'pickup_point', 'drivers'],
                aggregator.driver_availability),
            'travel_time': self._save_table(
                "travel_time.csv", ['time_slot', 'pickup_point', 'completed_trips', 'median_travel_minutes'],
                aggregator.travel_time),
        }

        logger.info(f"All data saved successfully to {len(saved_files)} files")
        return saved_files

    def save_supply_demand(self, rows: Sequence[SupplyDemandRow]) -> str:
        """Save the supply/demand summary, largest gap first."""
        headers = ['time_slot', 'pickup_point', 'demand', 'supply', 'gap']
        return self._save_table("supply_demand.csv", headers, [row.to_dict() for row in sort_by_gap(rows)])

    def save_summary(self, summary_data: Dict[str, Any]) -> str:
        """Save the run summary as JSON."""
        file_path = self.output_dir / "pipeline_summary.json"

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(summary_data, f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"Summary saved to {file_path}")
        return str(file_path)

    def _save_table(self, file_name: str, headers: List[str], rows: List[Dict[str, Any]]) -> str:
        file_path = self.output_dir / file_name
        self._write_csv(file_path, headers, rows)
        return str(file_path)

    def _write_csv(self, file_path: Path, headers: List[str], data_items: List[Dict]) -> None:
        """Write data to CSV file."""
        try:
            with open(file_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.DictWriter(f, fieldnames=headers)
                writer.writeheader()
                writer.writerows(data_items)

            logger.info(f"Saved {len(data_items)} records to {file_path}")

        except OSError as e:
            logger.error(f"Error writing CSV file {file_path}: {e}")
            raise

    def create_data_dictionary(self) -> str:
        """Create a data dictionary explaining all output files."""
        file_path = self.output_dir / "DATA_DICTIONARY.md"

        content = """# Data Dictionary

Output files of the cab supply/demand pipeline.

Time slots: late night (0-3h), morning (4-7h), late morning (8-12h),
afternoon (13-16h), evening (17-20h), night (21-23h).

## 1. supply_demand.csv
Supply/demand gap per time slot and pickup point, largest gap first.
Combinations without any request are omitted.

| Column | Type | Description |
|--------|------|-------------|
| time_slot | string | Time slot of the request hour |
| pickup_point | string | City or Airport |
| demand | integer | All requests in the group |
| supply | integer | Requests with status "Trip Completed" |
| gap | integer | demand - supply |

## 2. status_by_pickup.csv
Request counts per trip status and pickup point.

| Column | Type | Description |
|--------|------|-------------|
| status | string | Trip Completed, Cancelled or No Cars Available |
| pickup_point | string | City or Airport |
| requests | integer | Number of requests |

## 3. status_by_slot.csv
Request counts per time slot, pickup point and status.

| Column | Type | Description |
|--------|------|-------------|
| time_slot | string | Time slot of the request hour |
| pickup_point | string | City or Airport |
| status | string | Trip status |
| requests | integer | Number of requests |

## 4. driver_availability.csv
Distinct drivers who completed at least one trip in the group.

| Column | Type | Description |
|--------|------|-------------|
| time_slot | string | Time slot of the request hour |
| pickup_point | string | City or Airport |
| drivers | integer | Distinct driver ids |

## 5. travel_time.csv
Travel time of completed trips (drop time minus request time).

| Column | Type | Description |
|--------|------|-------------|
| time_slot | string | Time slot of the request hour |
| pickup_point | string | City or Airport |
| completed_trips | integer | Completed trips in the group |
| median_travel_minutes | float | Median travel time in minutes |

## 6. pipeline_summary.json
Run metadata: input file, record counts, cleaning statistics, dataset
profile and stage timings.
"""

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(f"Data dictionary created at {file_path}")
        return str(file_path)
