# ========================
# src/supply_demand/pipeline/cleaning.py
# ========================

"""
Data Cleaning Module

Turns raw string records into typed TripRequest objects. Unlike a lenient
cleaner that drops bad rows, every problem here is fatal: a dropped row
would silently shift the supply/demand counts.
"""

import re
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from .errors import ParseError, ValidationError
from .models import PickupPoint, TripRequest, TripStatus

logger = logging.getLogger(__name__)

E = TypeVar('E', PickupPoint, TripStatus)

TIMESTAMP_FORMAT = "%d-%m-%Y %H:%M:%S"

# day-month-year hour:minute with optional seconds, after "/" -> "-"
_TIMESTAMP_PATTERN = re.compile(
    r"^(\d{1,2})-(\d{1,2})-(\d{4}) (\d{1,2}):(\d{2})(?::(\d{2}))?$"
)

DEFAULT_NA_VALUES = ("", "NA")


def normalize_timestamp(value: str) -> str:
    """
    Bring a timestamp string to the fixed-width ``DD-MM-YYYY HH:MM:SS`` form.

    Both date separators ("/" and "-") are accepted, seconds default to
    ``00`` and single-digit fields are zero-padded. Strings that do not look
    like a date-time are returned stripped but otherwise untouched, so the
    parser can reject them with the original text. Idempotent.
    """
    text = value.strip().replace("/", "-")
    match = _TIMESTAMP_PATTERN.match(text)
    if not match:
        return text

    day, month, year, hour, minute, second = match.groups()
    return f"{int(day):02d}-{int(month):02d}-{year} {int(hour):02d}:{minute}:{second or '00'}"


class DataCleaner:
    """
    Applies the cleaning rules to raw records and keeps simple statistics
    about what was normalized along the way.
    """

    PICKUP_POINT_MAP = {member.value.lower(): member for member in PickupPoint}
    STATUS_MAP = {member.value.lower(): member for member in TripStatus}

    def __init__(self, na_values: Sequence[str] = DEFAULT_NA_VALUES):
        """
        Initialize the data cleaner.

        Args:
            na_values (list[str]): Cell values treated as missing
        """
        self.na_values = {value.strip() for value in na_values}
        self.records_processed = 0
        self.missing_driver_count = 0
        self.missing_drop_count = 0
        self.timestamps_normalized = 0
        logger.info(f"DataCleaner initialized with NA markers: {sorted(self.na_values)}")

    def clean_records(self, records: Iterable[Dict[str, str]]) -> List[TripRequest]:
        """Clean every record. Rows are numbered from 2, the header being row 1."""
        cleaned = [self.clean_record(record, row=index) for index, record in enumerate(records, start=2)]
        logger.info(f"Cleaned {len(cleaned)} records")
        return cleaned

    def clean_record(self, record: Dict[str, Any], row: Optional[int] = None) -> TripRequest:
        """
        Convert one raw record into a TripRequest.

        Args:
            record (dict): Raw record keyed by the input header.
            row (int): Row number used in error messages.

        Returns:
            TripRequest: The typed, validated record.

        Raises:
            ParseError: If a timestamp does not match the fixed format.
            ValidationError: If an id, category or record invariant is invalid.
        """
        self.records_processed += 1

        request_id = self._clean_int(record.get('Request id'), 'Request id', row, required=True)
        pickup_point = self._clean_category(record.get('Pickup point'), PickupPoint,
                                            self.PICKUP_POINT_MAP, 'Pickup point', row)
        driver_id = self._clean_int(record.get('Driver id'), 'Driver id', row)
        status = self._clean_category(record.get('Status'), TripStatus,
                                      self.STATUS_MAP, 'Status', row)
        request_ts = self._clean_timestamp(record.get('Request timestamp'), 'Request timestamp', row,
                                           required=True)
        drop_ts = self._clean_timestamp(record.get('Drop timestamp'), 'Drop timestamp', row)

        if driver_id is None:
            self.missing_driver_count += 1
        if drop_ts is None:
            self.missing_drop_count += 1

        trip = TripRequest(
            request_id=request_id,
            pickup_point=pickup_point,
            driver_id=driver_id,
            status=status,
            request_timestamp=request_ts,
            drop_timestamp=drop_ts,
        )
        self._check_invariants(trip, row)
        return trip

    def _is_missing(self, value: Any) -> bool:
        return value is None or str(value).strip() in self.na_values

    def _clean_int(self, value: Any, column: str, row: Optional[int],
                   required: bool = False) -> Optional[int]:
        """Converts an id cell to int; missing is allowed unless required."""
        if self._is_missing(value):
            if required:
                raise ValidationError(f"{column} is required", row=row, column=column, value=value)
            return None

        text = str(value).strip()
        # The source export writes some ids as floats ("12.0")
        if text.endswith('.0'):
            text = text[:-2]
        try:
            return int(text)
        except ValueError:
            raise ValidationError(f"{column} is not an integer", row=row, column=column, value=value)

    def _clean_category(self, value: Any, enum_type: Type[E], mapping: Dict[str, E],
                        column: str, row: Optional[int]) -> E:
        """Map a raw category onto its enum member, ignoring case and surrounding whitespace."""
        key = str(value).strip().lower() if value is not None else ''
        if key not in mapping:
            allowed = ', '.join(member.value for member in enum_type)
            raise ValidationError(f"{column} must be one of: {allowed}", row=row, column=column, value=value)
        return mapping[key]

    def _clean_timestamp(self, value: Any, column: str, row: Optional[int],
                         required: bool = False) -> Optional[datetime]:
        if self._is_missing(value):
            if required:
                raise ParseError(f"{column} is required", row=row, column=column, value=value)
            return None

        raw = str(value)
        normalized = normalize_timestamp(raw)
        if normalized != raw:
            self.timestamps_normalized += 1

        if not _TIMESTAMP_PATTERN.match(normalized):
            raise ParseError(f"{column} does not match {TIMESTAMP_FORMAT}", row=row, column=column, value=raw)
        try:
            return datetime.strptime(normalized, TIMESTAMP_FORMAT)
        except ValueError:
            # Right shape, impossible values (e.g. month 13)
            raise ParseError(f"{column} is not a valid date-time", row=row, column=column, value=raw)

    def _check_invariants(self, trip: TripRequest, row: Optional[int]) -> None:
        """Driver is absent only when no car was available; drop time only exists for completed trips."""
        if (trip.driver_id is None) != (trip.status is TripStatus.NO_CARS_AVAILABLE):
            raise ValidationError(
                f"Driver id presence inconsistent with status '{trip.status.value}'",
                row=row, column='Driver id', value=trip.driver_id,
            )
        if (trip.drop_timestamp is not None) != trip.is_completed:
            raise ValidationError(
                f"Drop timestamp presence inconsistent with status '{trip.status.value}'",
                row=row, column='Drop timestamp', value=trip.drop_timestamp,
            )

    def get_statistics(self) -> Dict[str, int]:
        """Get cleaning statistics."""
        return {
            'records_processed': self.records_processed,
            'missing_driver_id': self.missing_driver_count,
            'missing_drop_timestamp': self.missing_drop_count,
            'timestamps_normalized': self.timestamps_normalized,
        }


def find_duplicate_rows(records: Iterable[Dict[str, str]]) -> List[Dict[str, str]]:
    """Return every raw record that is fully identical to an earlier one."""
    seen = set()
    duplicates = []
    for record in records:
        key = tuple(record.items())
        if key in seen:
            duplicates.append(record)
        else:
            seen.add(key)
    return duplicates


def find_duplicate_request_ids(trips: Iterable[TripRequest]) -> List[int]:
    """Return request ids that occur more than once, in ascending order."""
    counts = Counter(trip.request_id for trip in trips)
    return sorted(request_id for request_id, count in counts.items() if count > 1)
