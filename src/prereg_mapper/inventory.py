"""
Survey columns eligible for manual DV/IV/control selection.
"""

from typing import Iterable, List, Optional

from prereg_mapper.config import settings
from prereg_mapper.model import AnalysisSpec


# Survey-platform metadata columns (compared lowercased)
METADATA_COLUMNS = frozenset({
    "responseid",
    "recipientlastname",
    "recipientfirstname",
    "recipientemail",
    "externalreference",
    "locationlatitude",
    "locationlongitude",
    "distributionchannel",
    "userlanguage",
    "startdate",
    "enddate",
    "status",
    "ipaddress",
    "progress",
    "durationinseconds",
    "finished",
})


def analyzable_columns(columns: Iterable[Optional[str]], reserved_prefix: Optional[str] = None) -> List[str]:
    """
    Filter a survey column list down to analyzable variables.

    Drops empty names, platform metadata columns and survey-internal
    question IDs, then sorts ignoring case. Repeated column names appear
    once. The result does not depend on the input order.
    """
    prefix = (settings.reserved_column_prefix if reserved_prefix is None else reserved_prefix).lower()
    kept = set()
    for col in columns:
        if not col:
            continue
        lower = col.lower()
        if lower in METADATA_COLUMNS:
            continue
        if prefix and lower.startswith(prefix):
            continue
        kept.add(col)
    return sorted(kept, key=lambda c: (c.lower(), c))


def spec_inventory(spec: Optional[AnalysisSpec]) -> List[str]:
    if spec is None:
        return []
    return analyzable_columns(spec.data_contract.expected_columns)
