#!/usr/bin/env python3
# ========================
# scripts/generate_sample_data.py
# ========================

"""
Write a synthetic cab request file for trying out the pipeline.

Usage:
    python scripts/generate_sample_data.py [num_rows] [output_csv]
"""

import sys
import os

# Add src to Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))

from supply_demand.utils import Config, DataGenerator, setup_logging

def main():
    config = Config()
    setup_logging(log_level=config.LOG_LEVEL)

    if len(sys.argv) > 1:
        try:
            num_rows = int(sys.argv[1])
        except ValueError:
            print("Usage: python scripts/generate_sample_data.py [num_rows] [output_csv]")
            print("Example: python scripts/generate_sample_data.py 6745 data/raw/cab_requests.csv")
            sys.exit(1)
    else:
        num_rows = config.SAMPLE_ROWS

    output_file = sys.argv[2] if len(sys.argv) > 2 else config.DEFAULT_INPUT_FILE

    generator = DataGenerator(seed=config.SAMPLE_SEED)
    stats = generator.generate_dataset(output_file, num_rows)

    print(f"Wrote {stats['total_rows']:,} requests to {output_file}")
    for status, count in stats['status_counts'].items():
        print(f"   - {status}: {count:,}")

if __name__ == '__main__':
    main()
