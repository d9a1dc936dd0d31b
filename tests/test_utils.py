# ========================
# tests/test_utils.py
# ========================

import unittest
import sys
import os
import csv
import shutil
import tempfile
from unittest import mock

# Add src to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from supply_demand.utils.config import Config
from supply_demand.utils.data_generator import DataGenerator, HEADER
from supply_demand.utils.performance_monitor import monitor_performance


class TestConfig(unittest.TestCase):

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = Config()

        self.assertEqual(config.DEFAULT_INPUT_FILE, 'data/raw/cab_requests.csv')
        self.assertEqual(config.NA_VALUES, ['', 'NA'])
        self.assertFalse(config.STRICT_REQUEST_IDS)
        self.assertTrue(config.SAVE_OUTPUTS)
        self.assertTrue(all(config.validate_config().values()))

    def test_environment_overrides(self):
        env = {'PIPELINE_INPUT_FILE': 'x.csv', 'NA_VALUES': 'NA,null', 'STRICT_REQUEST_IDS': 'true'}
        with mock.patch.dict(os.environ, env, clear=True):
            config = Config()

        self.assertEqual(config.DEFAULT_INPUT_FILE, 'x.csv')
        self.assertEqual(config.NA_VALUES, ['NA', 'null'])
        self.assertTrue(config.STRICT_REQUEST_IDS)

    def test_dict_overrides_and_validation(self):
        config = Config({'csv_delimiter': ';;', 'log_level': 'chatty', 'unknown_key': 1})

        validations = config.validate_config()
        self.assertFalse(validations['delimiter'])
        self.assertFalse(validations['log_level'])
        self.assertFalse(hasattr(config, 'UNKNOWN_KEY'))

    def test_save_and_load(self):
        work_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, work_dir)
        path = os.path.join(work_dir, 'config.json')

        Config({'default_output_dir': 'elsewhere'}).save_to_file(path)
        self.assertEqual(Config.load_from_file(path).DEFAULT_OUTPUT_DIR, 'elsewhere')


class TestDataGenerator(unittest.TestCase):

    def setUp(self):
        self.work_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.work_dir)

    def _generate(self, seed, rows=300):
        path = os.path.join(self.work_dir, f'requests_{seed}.csv')
        stats = DataGenerator(seed=seed).generate_dataset(path, num_rows=rows)
        with open(path, newline='', encoding='utf-8') as f:
            return stats, list(csv.DictReader(f))

    def test_rows_respect_invariants(self):
        stats, rows = self._generate(seed=1)

        self.assertEqual(len(rows), 300)
        self.assertEqual(list(rows[0].keys()), HEADER)
        self.assertEqual(sum(stats['status_counts'].values()), 300)
        for row in rows:
            self.assertEqual(row['Driver id'] == 'NA', row['Status'] == 'No Cars Available')
            self.assertEqual(row['Drop timestamp'] != 'NA', row['Status'] == 'Trip Completed')

    def test_both_timestamp_styles_present(self):
        _, rows = self._generate(seed=2)
        stamps = [row['Request timestamp'] for row in rows]

        self.assertTrue(any('/' in stamp for stamp in stamps))
        self.assertTrue(any('-' in stamp for stamp in stamps))

    def test_seed_is_reproducible(self):
        _, first = self._generate(seed=3)
        _, second = self._generate(seed=3)
        self.assertEqual(first, second)


class TestPerformanceMonitor(unittest.TestCase):

    def test_checkpoints_and_summary(self):
        with monitor_performance("test") as monitor:
            monitor.add_checkpoint('load', records=10)
            monitor.add_checkpoint('clean', records=10, metadata={'dropped': 0})

        self.assertEqual([c['name'] for c in monitor.checkpoints], ['load', 'clean'])
        self.assertEqual(monitor.summary['records_processed'], 10)
        self.assertGreater(monitor.summary['peak_memory_usage_mb'], 0)

if __name__ == '__main__':
    unittest.main()
