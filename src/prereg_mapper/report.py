"""
Resolution Report — read-only summary of where mapping resolution stands.

This module provides lightweight diagnostics of a spec plus selections:
    - Confidence tier counts
    - Which variables were auto-accepted
    - Which suggestions still await a click
    - Which low-confidence variables block saving
    - Open producer warnings

IMPORTANT: This does NOT modify the spec or the selections.
It only produces read-only reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

from prereg_mapper.confidence import mapping_rows
from prereg_mapper.model import AnalysisSpec, Confidence, SpecWarning
from prereg_mapper.mutator import apply_mappings


@dataclass
class ResolutionReport:
    """Summary of one spec's resolution state."""

    total_mappings: int = 0
    tier_counts: Dict[str, int] = field(default_factory=lambda: {c.value: 0 for c in Confidence})

    auto_accepted: List[str] = field(default_factory=list)
    pending_medium: List[str] = field(default_factory=list)
    unresolved_low: List[str] = field(default_factory=list)
    overridden: List[str] = field(default_factory=list)

    open_warnings: List[SpecWarning] = field(default_factory=list)

    # Warnings and flags
    warnings: List[str] = field(default_factory=list)

    @property
    def can_save(self) -> bool:
        return not self.unresolved_low

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def summarize_resolution(spec: AnalysisSpec, selections: Mapping[str, str]) -> ResolutionReport:
    """
    Summarize the resolution of `spec` under `selections`.

    open_warnings are the warnings that would remain after the selections
    were applied.
    """
    report = ResolutionReport()
    rows = mapping_rows(spec)
    report.total_mappings = len(rows)

    for row in rows:
        report.tier_counts[row.confidence.value] += 1
        chosen = selections.get(row.prereg_var)

        if row.confidence == Confidence.HIGH and chosen and chosen == row.top_candidate:
            report.auto_accepted.append(row.prereg_var)
        elif chosen and chosen != row.top_candidate:
            report.overridden.append(row.prereg_var)

        if row.confidence == Confidence.MEDIUM and not chosen:
            report.pending_medium.append(row.prereg_var)
        if row.confidence == Confidence.LOW and not chosen:
            report.unresolved_low.append(row.prereg_var)

    report.open_warnings = apply_mappings(spec, selections).warnings

    if report.unresolved_low:
        report.add_warning(
            f"Low-confidence mappings need a selection: {', '.join(sorted(report.unresolved_low))}"
        )

    if report.pending_medium:
        report.add_warning(
            f"Suggested matches not yet accepted: {', '.join(sorted(report.pending_medium))}"
        )

    if not spec.models.main:
        report.add_warning("No models extracted from the pre-registration; layouts come from manual selection")

    return report


def format_warnings(warnings: Iterable[SpecWarning]) -> List[str]:
    lines = [f"{w.code}: {w.message}" for w in warnings]
    return lines or ["No warnings."]
