# ========================
# src/supply_demand/__init__.py
# ========================

"""
Cab Supply/Demand Gap Analysis

Cleans a cab request export and summarises unmet demand by time slot and
pickup point.
"""

__version__ = "1.0.0"
