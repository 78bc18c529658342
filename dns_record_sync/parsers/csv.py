import csv
import logging
from typing import Any, Dict, List, Union

from ..core.records import CanonicalRecord, LocalRecord, normalize_priority

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("remote_id", "type", "name", "content", "ttl")


class CSVParser:
    """Parse a record snapshot from a CSV file.

    Required columns are ``remote_id,type,name,content,ttl``; ``priority``,
    ``proxied`` and ``local_id`` are optional. With ``local=True`` rows become
    LocalRecords and ``local_id`` is required.

    Rows are taken as the provider reported them: record types and values
    are not validated. A row whose ttl or priority is not a number raises
    ValueError naming the row.
    """

    def __init__(self, csv_path: str, local: bool = False, domain_id: str = ""):
        self.csv_path = csv_path
        self.local = local
        self.domain_id = domain_id

    def parse(self) -> List[Union[CanonicalRecord, LocalRecord]]:
        """Parse CSV file into records."""
        records = []

        try:
            with open(self.csv_path, "r", newline="") as f:
                reader = csv.DictReader(f)

                fieldnames = reader.fieldnames or []
                missing = [c for c in REQUIRED_COLUMNS if c not in fieldnames]
                if self.local and "local_id" not in fieldnames:
                    missing.append("local_id")
                if missing:
                    raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

                for row_num, row in enumerate(reader, start=2):
                    records.append(self._parse_row(row, row_num))

            logger.info(f"Successfully parsed {len(records)} records from CSV")

        except FileNotFoundError:
            raise FileNotFoundError(f"CSV file not found: {self.csv_path}")

        return records

    def _parse_row(self, row: Dict[str, Any], row_num: int) -> Union[CanonicalRecord, LocalRecord]:
        data = {key: (value or "").strip() for key, value in row.items() if key}

        try:
            data["ttl"] = int(data["ttl"])
            data["priority"] = normalize_priority(data.get("priority"))
        except ValueError as e:
            raise ValueError(f"Invalid number at row {row_num}: {e}") from e

        if self.local:
            data["domain_id"] = data.get("domain_id") or self.domain_id
            return LocalRecord.from_dict(data)
        return CanonicalRecord.from_dict(data)
