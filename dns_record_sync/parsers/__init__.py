"""
Snapshot parsers.

This package reads record snapshots from CSV, JSON and YAML files.
"""

from .csv import CSVParser
from .snapshot import load_snapshot, parse_records

__all__ = ["CSVParser", "load_snapshot", "parse_records"]
