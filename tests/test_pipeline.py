# ========================
# tests/test_pipeline.py
# ========================

import unittest
import sys
import os
import csv
import json
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

# Add src to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from supply_demand.pipeline.errors import LoadError, ParseError, ValidationError
from supply_demand.pipeline.features import FeatureDeriver
from supply_demand.pipeline.models import PickupPoint, TimeSlot, TripRequest, TripStatus
from supply_demand.pipeline.orchestrator import DataPipeline
from supply_demand.pipeline.storage import sort_by_gap
from supply_demand.pipeline.transformation import SupplyDemandAggregator, build_supply_demand
from supply_demand.utils.config import Config
from supply_demand.utils.data_generator import DataGenerator, HEADER


def make_trip(request_id, pickup, status, requested, driver_id=7, travel=30):
    if status is TripStatus.NO_CARS_AVAILABLE:
        driver_id = None
    dropped = requested + timedelta(minutes=travel) if status is TripStatus.TRIP_COMPLETED else None
    return TripRequest(request_id, pickup, driver_id, status, requested, dropped)


class TestSupplyDemandAggregator(unittest.TestCase):

    def setUp(self):
        self.deriver = FeatureDeriver()
        self.aggregator = SupplyDemandAggregator()

    def test_two_night_airport_records(self):
        trips = [
            make_trip(1, PickupPoint.AIRPORT, TripStatus.TRIP_COMPLETED, datetime(2016, 7, 11, 22, 5)),
            make_trip(2, PickupPoint.AIRPORT, TripStatus.CANCELLED, datetime(2016, 7, 11, 23, 40)),
        ]

        rows = build_supply_demand(self.deriver.derive(trips))

        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertIs(row.time_slot, TimeSlot.NIGHT)
        self.assertIs(row.pickup_point, PickupPoint.AIRPORT)
        self.assertEqual((row.demand, row.supply, row.gap), (2, 1, 1))

    def test_no_cars_counts_towards_demand_only(self):
        trips = [make_trip(619, PickupPoint.CITY, TripStatus.NO_CARS_AVAILABLE, datetime(2016, 7, 11, 15, 39))]

        rows = build_supply_demand(self.deriver.derive(trips))

        self.assertEqual([r.to_dict() for r in rows], [{
            'time_slot': 'afternoon', 'pickup_point': 'City', 'demand': 1, 'supply': 0, 'gap': 1,
        }])

    def test_empty_groups_are_absent(self):
        trips = [
            make_trip(1, PickupPoint.CITY, TripStatus.TRIP_COMPLETED, datetime(2016, 7, 11, 5, 20)),
            make_trip(2, PickupPoint.AIRPORT, TripStatus.CANCELLED, datetime(2016, 7, 11, 18, 0)),
        ]

        rows = build_supply_demand(self.deriver.derive(trips))

        self.assertEqual({(r.time_slot, r.pickup_point) for r in rows},
                         {(TimeSlot.MORNING, PickupPoint.CITY), (TimeSlot.EVENING, PickupPoint.AIRPORT)})

    def test_grouping_is_order_independent(self):
        trips = [
            make_trip(i, point, status, datetime(2016, 7, 12, hour, 10))
            for i, (point, status, hour) in enumerate([
                (PickupPoint.CITY, TripStatus.CANCELLED, 6),
                (PickupPoint.AIRPORT, TripStatus.NO_CARS_AVAILABLE, 19),
                (PickupPoint.CITY, TripStatus.TRIP_COMPLETED, 7),
                (PickupPoint.AIRPORT, TripStatus.TRIP_COMPLETED, 20),
            ])
        ]

        forward = build_supply_demand(self.deriver.derive(trips))
        backward = build_supply_demand(self.deriver.derive(reversed(trips)))
        self.assertEqual(set(forward), set(backward))

    def test_breakdown_tables(self):
        trips = [
            make_trip(1, PickupPoint.CITY, TripStatus.TRIP_COMPLETED, datetime(2016, 7, 11, 6, 0), driver_id=1, travel=50),
            make_trip(2, PickupPoint.CITY, TripStatus.TRIP_COMPLETED, datetime(2016, 7, 12, 6, 30), driver_id=2, travel=60),
            make_trip(3, PickupPoint.CITY, TripStatus.TRIP_COMPLETED, datetime(2016, 7, 12, 7, 0), driver_id=1, travel=40),
            make_trip(4, PickupPoint.CITY, TripStatus.CANCELLED, datetime(2016, 7, 13, 7, 0), driver_id=3),
            make_trip(5, PickupPoint.AIRPORT, TripStatus.NO_CARS_AVAILABLE, datetime(2016, 7, 13, 19, 0)),
        ]

        self.aggregator.process(self.deriver.derive(trips))
        self.aggregator.finalize_aggregations()

        self.assertEqual(self.aggregator.driver_availability, [
            {'time_slot': 'morning', 'pickup_point': 'City', 'drivers': 2},
        ])
        self.assertEqual(self.aggregator.travel_time, [
            {'time_slot': 'morning', 'pickup_point': 'City', 'completed_trips': 3, 'median_travel_minutes': 50.0},
        ])
        self.assertIn({'status': 'Cancelled', 'pickup_point': 'City', 'requests': 1}, self.aggregator.status_by_pickup)
        self.assertIn({'time_slot': 'evening', 'pickup_point': 'Airport', 'status': 'No Cars Available', 'requests': 1},
                      self.aggregator.status_by_slot)

        profile = self.aggregator.dataset_profile
        self.assertEqual(profile['total_requests'], 5)
        self.assertEqual(profile['distinct_days'], 3)
        self.assertEqual(profile['distinct_weekdays'], ['Monday', 'Tuesday', 'Wednesday'])
        self.assertEqual(profile['distinct_drivers'], 3)
        self.assertEqual(profile['requests_by_pickup_point'], {'City': 4, 'Airport': 1})

    def test_sort_by_gap_is_a_presentation_step(self):
        trips = [
            make_trip(1, PickupPoint.CITY, TripStatus.TRIP_COMPLETED, datetime(2016, 7, 11, 1, 0)),
            make_trip(2, PickupPoint.AIRPORT, TripStatus.CANCELLED, datetime(2016, 7, 11, 18, 0)),
            make_trip(3, PickupPoint.AIRPORT, TripStatus.NO_CARS_AVAILABLE, datetime(2016, 7, 11, 19, 0)),
            make_trip(4, PickupPoint.CITY, TripStatus.CANCELLED, datetime(2016, 7, 11, 9, 0)),
        ]

        rows = sort_by_gap(build_supply_demand(self.deriver.derive(trips)))
        self.assertEqual([row.gap for row in rows], [2, 1, 0])
        self.assertIs(rows[0].time_slot, TimeSlot.EVENING)


class TestDataPipeline(unittest.TestCase):
    """End-to-end runs over files on disk."""

    def setUp(self):
        self.work_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.work_dir)
        self.output_dir = os.path.join(self.work_dir, 'out')
        self.config = Config({'save_outputs': True, 'strict_request_ids': False})

    def _write_rows(self, rows):
        path = os.path.join(self.work_dir, 'requests.csv')
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(HEADER)
            writer.writerows(rows)
        return path

    def test_generated_dataset_properties(self):
        path = os.path.join(self.work_dir, 'generated.csv')
        DataGenerator(seed=7).generate_dataset(path, num_rows=500)

        results = DataPipeline(path, self.output_dir, config=self.config).run()
        rows = results['supply_demand']

        self.assertEqual(results['pipeline_status'], 'completed')
        self.assertEqual(sum(row.demand for row in rows), 500)
        self.assertLessEqual(len(rows), 12)
        for row in rows:
            self.assertTrue(0 <= row.supply <= row.demand)
            self.assertEqual(row.gap, row.demand - row.supply)

        self.assertEqual(results['data_quality_stats']['duplicate_rows'], 0)
        self.assertEqual(results['data_quality_stats']['duplicate_request_ids'], 0)
        self.assertEqual(results['processing_stats']['dataset_profile']['distinct_days'], 5)

    def test_outputs_written(self):
        path = self._write_rows([
            ['1', 'Airport', '3', 'Trip Completed', '11/7/2016 22:05', '11/7/2016 22:50'],
            ['2', 'Airport', '4', 'Cancelled', '11-07-2016 23:40:00', 'NA'],
            ['3', 'City', '5', 'Trip Completed', '12/7/2016 6:10', '12/7/2016 7:02'],
        ])

        results = DataPipeline(path, self.output_dir, config=self.config).run()
        saved = results['saved_files']

        for key in ('supply_demand', 'status_by_pickup', 'status_by_slot', 'driver_availability',
                    'travel_time', 'data_dictionary', 'summary'):
            self.assertTrue(Path(saved[key]).exists(), key)

        with open(saved['supply_demand'], newline='', encoding='utf-8') as f:
            table = list(csv.DictReader(f))
        self.assertEqual(table[0], {'time_slot': 'night', 'pickup_point': 'Airport',
                                    'demand': '2', 'supply': '1', 'gap': '1'})

        with open(saved['summary'], encoding='utf-8') as f:
            summary = json.load(f)
        self.assertEqual(summary['processing_stats']['total_demand'], 3)

    def test_outputs_can_be_disabled(self):
        path = self._write_rows([['1', 'City', 'NA', 'No Cars Available', '12/7/2016 6:10', 'NA']])
        config = Config({'save_outputs': False})

        results = DataPipeline(path, self.output_dir, config=config).run()

        self.assertEqual(results['saved_files'], {})
        self.assertFalse(os.path.exists(self.output_dir))

    def test_parse_error_carries_stage(self):
        path = self._write_rows([
            ['1', 'City', 'NA', 'No Cars Available', '12/7/2016 6:10', 'NA'],
            ['2', 'City', 'NA', 'No Cars Available', '2016-07-11', 'NA'],
        ])

        with self.assertRaises(ParseError) as ctx:
            DataPipeline(path, self.output_dir, config=self.config).run()

        self.assertEqual(ctx.exception.stage, 'clean')
        self.assertEqual(ctx.exception.row, 3)
        self.assertIn('[clean]', str(ctx.exception))
        self.assertFalse(os.path.exists(self.output_dir))

    def test_load_error_carries_stage(self):
        pipeline = DataPipeline(os.path.join(self.work_dir, 'missing.csv'), self.output_dir, config=self.config)

        self.assertFalse(pipeline.validate_input())
        with self.assertRaises(LoadError) as ctx:
            pipeline.run()
        self.assertEqual(ctx.exception.stage, 'load')

    def test_repeated_request_ids(self):
        rows = [
            ['1', 'City', 'NA', 'No Cars Available', '12/7/2016 6:10', 'NA'],
            ['1', 'City', 'NA', 'No Cars Available', '12/7/2016 9:10', 'NA'],
        ]
        path = self._write_rows(rows)

        results = DataPipeline(path, self.output_dir, config=self.config).run()
        self.assertEqual(results['data_quality_stats']['duplicate_request_ids'], 1)

        strict = Config({'save_outputs': False, 'strict_request_ids': True})
        with self.assertRaises(ValidationError) as ctx:
            DataPipeline(path, self.output_dir, config=strict).run()
        self.assertEqual(ctx.exception.stage, 'clean')

if __name__ == '__main__':
    unittest.main()
