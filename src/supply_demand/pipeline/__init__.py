# ========================
# src/supply_demand/pipeline/__init__.py
# ========================

"""
Pipeline Package

Core stages of the supply/demand pipeline:
- ingestion: CSV loading
- cleaning: timestamp normalization, typing and validation
- features: day, hour and time slot derivation
- transformation: supply/demand aggregation
- storage: output files
- orchestrator: pipeline coordination
"""

from .errors import PipelineError, LoadError, ParseError, ValidationError
from .models import PickupPoint, TripStatus, TimeSlot, TripRequest, DerivedTrip, SupplyDemandRow
from .ingestion import CSVReader
from .cleaning import DataCleaner, normalize_timestamp
from .features import FeatureDeriver, time_slot_for_hour
from .transformation import SupplyDemandAggregator, build_supply_demand
from .storage import DataSaver, sort_by_gap
from .orchestrator import DataPipeline

__all__ = [
    'PipelineError',
    'LoadError',
    'ParseError',
    'ValidationError',
    'PickupPoint',
    'TripStatus',
    'TimeSlot',
    'TripRequest',
    'DerivedTrip',
    'SupplyDemandRow',
    'CSVReader',
    'DataCleaner',
    'normalize_timestamp',
    'FeatureDeriver',
    'time_slot_for_hour',
    'SupplyDemandAggregator',
    'build_supply_demand',
    'DataSaver',
    'sort_by_gap',
    'DataPipeline',
]
