"""
Snapshot loading - Read record snapshots from files

Snapshots are lists of records stored as CSV, JSON or YAML. JSON and YAML
files hold either a list of records or a mapping with a ``records`` key.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

import yaml

from .csv import CSVParser
from ..core.records import CanonicalRecord, LocalRecord

logger = logging.getLogger(__name__)


def load_snapshot(
    path: str, local: bool = False, domain_id: str = ""
) -> List[Union[CanonicalRecord, LocalRecord]]:
    """
    Load a record snapshot from a file.

    Args:
        path: CSV, JSON or YAML file
        local: Build LocalRecords instead of provider records
        domain_id: Domain assigned to local records that do not name one

    Returns:
        Records in file order
    """
    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        return CSVParser(path, local=local, domain_id=domain_id).parse()

    with open(path, "r") as f:
        if suffix == ".json":
            data = json.load(f)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported snapshot format: {path}")

    return parse_records(data, local=local, domain_id=domain_id)


def parse_records(
    data: Any, local: bool = False, domain_id: str = ""
) -> List[Union[CanonicalRecord, LocalRecord]]:
    """Build records from already decoded snapshot data."""
    if isinstance(data, dict):
        data = data.get("records", [])
    if not isinstance(data, list):
        raise ValueError("Snapshot must be a list of records")

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"Snapshot entry {index} is not a mapping: {item}")
        try:
            if local:
                item = {"domain_id": domain_id, **item}
                records.append(LocalRecord.from_dict(item))
            else:
                records.append(CanonicalRecord.from_dict(item))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Snapshot entry {index} is missing field {e}") from e

    logger.info(f"Loaded {len(records)} {'local' if local else 'remote'} records")
    return records
