# ========================
# src/supply_demand/pipeline/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Runs load -> clean -> derive -> aggregate -> save as one linear batch.
Any PipelineError is tagged with the stage it came from and re-raised;
there is no partial output.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from .cleaning import DataCleaner, find_duplicate_request_ids, find_duplicate_rows
from .errors import PipelineError, ValidationError
from .features import FeatureDeriver
from .ingestion import REQUIRED_COLUMNS, CSVReader
from .storage import DataSaver, sort_by_gap
from .transformation import SupplyDemandAggregator
from ..utils.config import Config
from ..utils.performance_monitor import monitor_performance

logger = logging.getLogger(__name__)


@contextmanager
def _stage(name: str):
    try:
        yield
    except PipelineError as e:
        if e.stage is None:
            e.stage = name
        logger.error(f"Pipeline failed during '{name}': {e}")
        raise


class DataPipeline:
    """
    Orchestrates the cab supply/demand pipeline.
    Coordinates reading, cleaning, feature derivation, aggregation and storage.
    """

    def __init__(self,
                 input_file: str,
                 output_dir: Optional[str] = None,
                 config: Optional[Config] = None):
        """
        Initialize the pipeline.

        Args:
            input_file (str): Path to input CSV file
            output_dir (str): Directory for output files; defaults to the configured one
            config (Config): Configuration object
        """
        self.config = config or Config()
        self.input_file = input_file
        self.output_dir = output_dir or self.config.DEFAULT_OUTPUT_DIR

        self.reader = CSVReader(self.input_file, delimiter=self.config.CSV_DELIMITER)
        self.cleaner = DataCleaner(na_values=self.config.NA_VALUES)
        self.deriver = FeatureDeriver()
        self.aggregator = SupplyDemandAggregator()

        logger.info("DataPipeline initialized:")
        logger.info(f"  Input: {self.input_file}")
        logger.info(f"  Output: {self.output_dir if self.config.SAVE_OUTPUTS else '(not saved)'}")

    def run(self) -> Dict[str, Any]:
        """
        Execute the complete pipeline from start to finish.

        Returns:
            dict: The supply/demand summary under 'supply_demand', plus
                  statistics and the paths of any saved files.

        Raises:
            PipelineError: LoadError, ParseError or ValidationError, with
                           its ``stage`` attribute set.
        """
        logger.info(f"Starting pipeline for '{self.input_file}'...")

        with monitor_performance("Supply/demand pipeline") as monitor:
            with _stage('load'):
                raw_records = self.reader.read_records(required_columns=REQUIRED_COLUMNS)
            monitor.add_checkpoint('load', records=len(raw_records))

            with _stage('clean'):
                trips = self.cleaner.clean_records(raw_records)
                verification = self._verify_uniqueness(raw_records, trips)
            monitor.add_checkpoint('clean', records=len(trips))

            with _stage('derive'):
                derived = self.deriver.derive(trips)
            monitor.add_checkpoint('derive', records=len(derived))

            with _stage('aggregate'):
                self.aggregator.process(derived)
                supply_demand = self.aggregator.finalize_aggregations()
            monitor.add_checkpoint('aggregate', records=len(derived),
                                   metadata={'groups': len(supply_demand)})

        results = {
            'pipeline_status': 'completed',
            'input_file': self.input_file,
            'supply_demand': supply_demand,
            'processing_stats': self.aggregator.get_aggregation_summary(),
            'data_quality_stats': {**self.cleaner.get_statistics(), **verification},
            'performance': monitor.summary,
            'saved_files': {},
        }

        if self.config.SAVE_OUTPUTS:
            with _stage('save'):
                results['saved_files'] = self._save_outputs(results)

        logger.info("Pipeline finished successfully.")
        self._log_final_summary(results)
        return results

    def _verify_uniqueness(self, raw_records, trips) -> Dict[str, int]:
        """Report fully duplicated rows and repeated request ids; nothing is removed."""
        duplicate_rows = find_duplicate_rows(raw_records)
        if duplicate_rows:
            logger.warning(f"{len(duplicate_rows)} fully duplicated rows found")

        duplicate_ids = find_duplicate_request_ids(trips)
        if duplicate_ids:
            if self.config.STRICT_REQUEST_IDS:
                raise ValidationError(f"{len(duplicate_ids)} request ids are not unique",
                                      column='Request id', value=duplicate_ids[:10])
            logger.warning(f"{len(duplicate_ids)} request ids occur more than once: {duplicate_ids[:10]}")

        return {
            'duplicate_rows': len(duplicate_rows),
            'duplicate_request_ids': len(duplicate_ids),
        }

    def _save_outputs(self, results: Dict[str, Any]) -> Dict[str, str]:
        saver = DataSaver(self.output_dir)
        saved_files = saver.save_all_data(self.aggregator)
        saved_files['data_dictionary'] = saver.create_data_dictionary()
        saved_files['summary'] = saver.save_summary({
            'input_file': str(self.input_file),
            'processing_stats': results['processing_stats'],
            'data_quality_stats': results['data_quality_stats'],
            'performance': results['performance'],
        })
        return saved_files

    def _log_final_summary(self, results: Dict[str, Any]) -> None:
        """Log final pipeline summary."""
        logger.info("=" * 60)
        logger.info("PIPELINE EXECUTION SUMMARY")
        logger.info("=" * 60)

        processing_stats = results['processing_stats']
        logger.info(f"Input file: {results['input_file']}")
        logger.info(f"Records processed: {processing_stats['records_processed']:,}")
        logger.info(f"Total demand: {processing_stats['total_demand']:,}, "
                    f"supply: {processing_stats['total_supply']:,}, "
                    f"gap: {processing_stats['total_gap']:,}")

        for row in sort_by_gap(results['supply_demand']):
            logger.info(f"  {row.time_slot.label:<13} {row.pickup_point.value:<8} "
                        f"demand={row.demand:<5} supply={row.supply:<5} gap={row.gap}")

        for dataset_type, file_path in results['saved_files'].items():
            logger.info(f"  {dataset_type}: {file_path}")

        logger.info("=" * 60)

    def validate_input(self) -> bool:
        """
        Validate input file exists and is readable.

        Returns:
            bool: True if input is valid
        """
        input_path = Path(self.input_file)
        if not input_path.exists():
            logger.error(f"Input file does not exist: {self.input_file}")
            return False

        if not input_path.is_file():
            logger.error(f"Input path is not a file: {self.input_file}")
            return False

        try:
            with open(self.input_file, 'r', encoding='utf-8') as f:
                f.readline()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read input file: {e}")
            return False

        logger.info(f"Input validation passed: {self.input_file}")
        return True
