"""
Spec Mutator.

Writes resolutions back onto a spec and prunes the UNRESOLVED_VARIABLE
warnings they settle.

Every function here returns a new AnalysisSpec. The input is never
modified, so confidence rows can still be recomputed from the
pre-mutation spec. Warnings are only ever removed here, never created.
"""

from __future__ import annotations

import copy
from typing import Iterable, List, Mapping, Set, Tuple

from prereg_mapper.model import UNRESOLVED_VARIABLE, AnalysisSpec, SpecWarning, VariableMapping


def prune_resolved_warnings(
    warnings: Iterable[SpecWarning],
    unresolved: Set[str],
    ignore_case: bool = False,
) -> List[SpecWarning]:
    """Keep UNRESOLVED_VARIABLE warnings only for variables in `unresolved`."""
    if ignore_case:
        unresolved = {v.lower() for v in unresolved}
    kept = []
    for warning in warnings:
        if warning.code != UNRESOLVED_VARIABLE:
            kept.append(warning)
            continue
        prereg_var = warning.prereg_var or ""
        if ignore_case:
            prereg_var = prereg_var.lower()
        if prereg_var in unresolved:
            kept.append(warning)
    return kept


def _unresolved_vars(spec: AnalysisSpec) -> Set[str]:
    return {m.prereg_var for m in spec.variable_mappings if not m.resolved_to}


def apply_mappings(spec: AnalysisSpec, selections: Mapping[str, str]) -> AnalysisSpec:
    """
    Apply resolution selections to a copy of `spec`.

    Each mapping resolves to its selection, else its existing resolution,
    else None. UNRESOLVED_VARIABLE warnings survive only for variables that
    are still unresolved afterwards; other warnings pass through.
    """
    updated = copy.deepcopy(spec)
    for mapping in updated.variable_mappings:
        mapping.resolved_to = selections.get(mapping.prereg_var) or mapping.resolved_to or None
    updated.warnings = prune_resolved_warnings(updated.warnings, _unresolved_vars(updated))
    return updated


def resolve_mappings(spec: AnalysisSpec, updates: Iterable[Tuple[str, str]]) -> AnalysisSpec:
    """
    Apply a batch of (prereg_var, column) updates to a copy of `spec`.

    Variables are matched case-insensitively. An update for a variable the
    spec does not know is appended as a new mapping with no candidates.
    Updates with an empty column are ignored.
    """
    updated = copy.deepcopy(spec)
    for prereg_var, resolved_to in updates:
        if not prereg_var or not resolved_to:
            continue
        target = _find_mapping(updated, prereg_var)
        if target is None:
            updated.variable_mappings.append(VariableMapping(prereg_var=prereg_var, resolved_to=resolved_to))
        else:
            target.resolved_to = resolved_to
    updated.warnings = prune_resolved_warnings(updated.warnings, _unresolved_vars(updated), ignore_case=True)
    return updated


def carry_forward_mappings(spec: AnalysisSpec, saved: AnalysisSpec) -> AnalysisSpec:
    """
    Reapply resolutions from a previously saved spec to a regenerated one.

    Only non-null saved resolutions are carried; unmatched variables are
    left alone.
    """
    updated = copy.deepcopy(spec)
    for mapping in updated.variable_mappings:
        previous = _find_mapping(saved, mapping.prereg_var)
        if previous is not None and previous.resolved_to:
            mapping.resolved_to = previous.resolved_to
    updated.warnings = prune_resolved_warnings(updated.warnings, _unresolved_vars(updated), ignore_case=True)
    return updated


def _find_mapping(spec: AnalysisSpec, prereg_var: str):
    wanted = prereg_var.lower()
    for mapping in spec.variable_mappings:
        if mapping.prereg_var.lower() == wanted:
            return mapping
    return None

