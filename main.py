#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Main Entry Point for the Cab Supply/Demand Pipeline

Usage:
    python main.py [input_csv]

Without an argument the configured input file is used; if it does not
exist yet a synthetic dataset is generated there first.
"""

import sys
import logging
from pathlib import Path

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from supply_demand.pipeline import DataPipeline, PipelineError, sort_by_gap
from supply_demand.utils import Config, setup_logging, DataGenerator

def main(argv=None):
    """Main execution function."""
    argv = sys.argv[1:] if argv is None else argv
    config = Config()

    setup_logging(
        log_level=config.LOG_LEVEL,
        log_file="pipeline.log",
        log_dir=config.LOG_DIR
    )

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("CAB SUPPLY/DEMAND PIPELINE - MAIN EXECUTION")
    logger.info("=" * 60)

    invalid = [name for name, ok in config.validate_config().items() if not ok]
    if invalid:
        logger.error(f"Invalid configuration settings: {invalid}")
        return 1

    input_file = argv[0] if argv else config.DEFAULT_INPUT_FILE

    if not argv and not Path(input_file).exists():
        logger.info(f"No input at {input_file}, generating sample data...")
        generator = DataGenerator(seed=config.SAMPLE_SEED)
        generator.generate_dataset(file_path=input_file, num_rows=config.SAMPLE_ROWS)

    pipeline = DataPipeline(input_file=input_file, config=config)

    if not pipeline.validate_input():
        logger.error("Input validation failed. Exiting.")
        return 1

    try:
        results = pipeline.run()
    except PipelineError as e:
        logger.error(f"Pipeline execution failed: {e}")
        return 1

    _print_execution_summary(results)
    return 0

def _print_execution_summary(results: dict) -> None:
    """Print the supply/demand table, largest gap first."""
    stats = results['processing_stats']
    profile = stats['dataset_profile']

    print("\n" + "=" * 70)
    print("SUPPLY / DEMAND GAP BY TIME SLOT AND PICKUP POINT")
    print("=" * 70)
    print(f"Requests: {stats['records_processed']:,} over {profile['distinct_days']} days, "
          f"{profile['distinct_drivers']} drivers")
    print(f"{'time slot':<14}{'pickup':<10}{'demand':>8}{'supply':>8}{'gap':>8}")
    print("-" * 48)
    for row in sort_by_gap(results['supply_demand']):
        print(f"{row.time_slot.label:<14}{row.pickup_point.value:<10}{row.demand:>8}{row.supply:>8}{row.gap:>8}")
    print("-" * 48)
    print(f"{'total':<24}{stats['total_demand']:>8}{stats['total_supply']:>8}{stats['total_gap']:>8}")

    if results['saved_files']:
        print("\nGenerated outputs:")
        for dataset_type, file_path in results['saved_files'].items():
            print(f"   - {dataset_type.replace('_', ' ')}: {Path(file_path).name}")

    print("=" * 70)

if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
