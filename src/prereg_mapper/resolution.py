"""
Mapping Resolution Store.

Holds the chosen survey column for each prereg variable. The only bulk
write is a full reseed from freshly generated rows; everything after that
changes exactly one variable at a time, so a manual override is never
clobbered behind the user's back.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from prereg_mapper.confidence import MappingRow
from prereg_mapper.model import AnalysisSpec, Confidence, ManualSelection, TemplateChoice, unique


def unresolved_low(rows: Iterable[MappingRow], selections: Mapping[str, str]) -> List[MappingRow]:
    """Low-confidence rows that still have no selection. Save is gated on this being empty."""
    return [
        row for row in rows
        if row.confidence == Confidence.LOW and not selections.get(row.prereg_var)
    ]


class ResolutionStore:
    """prereg variable -> chosen survey column."""

    def __init__(self, selections: Optional[Mapping[str, str]] = None):
        self._selections: Dict[str, str] = {}
        for prereg_var, key in (selections or {}).items():
            self.override(prereg_var, key)

    def auto_seed(self, rows: Iterable[MappingRow]) -> Dict[str, str]:
        """
        Replace all selections with the automatic choices for `rows`.

        High-confidence rows take their top candidate. Other rows keep a
        resolution the producer already made. The rest stay unresolved.

        Run once per newly generated spec, not on every refresh.
        """
        seeded: Dict[str, str] = {}
        for row in rows:
            if row.confidence == Confidence.HIGH and row.top_candidate:
                seeded[row.prereg_var] = row.top_candidate
            elif row.resolved_to:
                seeded[row.prereg_var] = row.resolved_to
        self._selections = seeded
        return self.selections

    def override(self, prereg_var: str, key: Optional[str]) -> None:
        """Set the selection for one variable. A falsy key means "no selection"."""
        if key:
            self._selections[prereg_var] = key
        else:
            self._selections.pop(prereg_var, None)

    def accept_suggested(self, row: MappingRow) -> bool:
        """One-click accept of the top candidate. Returns False if there is none."""
        if not row.top_candidate:
            return False
        self.override(row.prereg_var, row.top_candidate)
        return True

    def selection(self, prereg_var: str) -> Optional[str]:
        return self._selections.get(prereg_var)

    @property
    def selections(self) -> Dict[str, str]:
        return dict(self._selections)

    def unresolved_low(self, rows: Iterable[MappingRow]) -> List[MappingRow]:
        return unresolved_low(rows, self._selections)

    def __contains__(self, prereg_var: str) -> bool:
        return prereg_var in self._selections

    def __len__(self) -> int:
        return len(self._selections)


def seed_manual_selections(spec: AnalysisSpec, selections: Mapping[str, str]) -> ManualSelection:
    """
    Prefill the manual DV/IV/control pickers from the extracted main models,
    translated through the current selections.
    """
    def map_var(value: str) -> str:
        return selections.get(value) or value

    main = spec.models.main
    return ManualSelection(
        dv=unique(map_var(m.dv) for m in main),
        iv=unique(map_var(v) for m in main for v in m.iv),
        controls=unique(map_var(v) for m in main for v in m.controls),
    )


def default_template_choice(spec: AnalysisSpec) -> TemplateChoice:
    return TemplateChoice.AUTO if spec.models.main else TemplateChoice.FACTORIAL_2X2
