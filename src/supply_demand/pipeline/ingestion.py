# ========================
# src/supply_demand/pipeline/ingestion.py
# ========================

"""
Data Ingestion Module

Reads the cab request file into raw string records. No type coercion
happens here; that is the cleaner's job.
"""

import csv
import logging
from typing import Dict, List, Optional, Sequence

from .errors import LoadError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    'Request id',
    'Pickup point',
    'Driver id',
    'Status',
    'Request timestamp',
    'Drop timestamp',
]


class CSVReader:
    """
    Reads a delimited file with a header row into a list of dictionaries.
    Column order is preserved and every value is kept as the raw string.
    """

    def __init__(self, file_path, delimiter: str = ','):
        """
        Initialize the CSV reader.

        Args:
            file_path (str): Path to the CSV file to read
            delimiter (str): Field delimiter
        """
        self.file_path = file_path
        self.delimiter = delimiter
        self.header: List[str] = []
        logger.info(f"Initialized CSVReader for file: {file_path}")

    def read_records(self, required_columns: Optional[Sequence[str]] = None) -> List[Dict[str, str]]:
        """
        Read the whole file into memory.

        Args:
            required_columns (list[str]): Columns that must appear in the header

        Returns:
            list[dict]: One dictionary per data row, keyed by header name.

        Raises:
            LoadError: If the file is missing, unreadable, has no header, lacks
                       a required column, or has rows with a different column
                       count than the header.
        """
        try:
            with open(self.file_path, 'r', newline='', encoding='utf-8') as f:
                reader = csv.reader(f, delimiter=self.delimiter)
                try:
                    header = next(reader)
                except StopIteration:
                    raise LoadError("File is empty, no header row found", value=str(self.file_path))

                self.header = [name.strip() for name in header]
                logger.info(f"CSV header: {self.header}")
                self._check_header(required_columns)

                records = []
                for row in reader:
                    if not row:
                        continue
                    # reader.line_num counts physical lines, so it matches what an editor shows
                    if len(row) != len(self.header):
                        raise LoadError(
                            f"Expected {len(self.header)} columns, found {len(row)}",
                            row=reader.line_num,
                        )
                    records.append(dict(zip(self.header, row)))

        except FileNotFoundError:
            logger.error(f"File '{self.file_path}' was not found")
            raise LoadError("Input file not found", value=str(self.file_path))
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            logger.error(f"Error reading CSV file: {e}")
            raise LoadError(f"Cannot read input file: {e}", value=str(self.file_path)) from e

        logger.info(f"Total rows loaded: {len(records)}")
        return records

    def _check_header(self, required_columns: Optional[Sequence[str]]) -> None:
        if len(set(self.header)) != len(self.header):
            raise LoadError("Header contains duplicate column names", value=self.header)

        if not required_columns:
            return

        missing = [column for column in required_columns if column not in self.header]
        if missing:
            logger.error(f"Missing required columns: {missing}")
            raise LoadError(f"Missing required columns: {', '.join(missing)}", value=self.header)
