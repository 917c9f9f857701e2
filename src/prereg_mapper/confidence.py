"""
Confidence Classifier: tiers a mapping by its top candidate score.

    high    score >= 0.90
    medium  0.75 <= score < 0.90
    low     everything else, including mappings with no candidates

Rows are a derived view. They are recomputed from the spec on every call
and never stored, so they cannot drift from the scores they describe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from prereg_mapper.config import settings
from prereg_mapper.model import AnalysisSpec, Confidence, MappingCandidate, VariableMapping


@dataclass
class MappingRow:
    """One mapping as shown to the person resolving it."""
    prereg_var: str
    resolved_to: Optional[str]
    top_candidate: Optional[str]
    top_score: float
    candidates: List[MappingCandidate] = field(default_factory=list)
    confidence: Confidence = Confidence.LOW


def classify_score(
    score: float,
    high: Optional[float] = None,
    medium: Optional[float] = None,
) -> Confidence:
    high = settings.high_confidence if high is None else high
    medium = settings.medium_confidence if medium is None else medium
    if score >= high:
        return Confidence.HIGH
    if score >= medium:
        return Confidence.MEDIUM
    return Confidence.LOW


def classify_mapping(mapping: VariableMapping) -> MappingRow:
    """Build the row for a mapping. Total: never raises."""
    top = mapping.candidates[0] if mapping.candidates else None
    top_score = top.score if top is not None else 0.0
    return MappingRow(
        prereg_var=mapping.prereg_var,
        resolved_to=mapping.resolved_to,
        top_candidate=top.key if top is not None else None,
        top_score=top_score,
        candidates=list(mapping.candidates),
        confidence=classify_score(top_score),
    )


def mapping_rows(spec: Optional[AnalysisSpec]) -> List[MappingRow]:
    if spec is None:
        return []
    return [classify_mapping(m) for m in spec.variable_mappings if m.prereg_var]
