"""
Tests for the Spec Mutator.

Tests verify:
    - Selections are written onto a copy, never the input
    - Existing resolutions survive unless a selection replaces them
    - UNRESOLVED_VARIABLE warnings are pruned iff the variable resolves
    - Other warning codes pass through
    - Batch updates and carry-forward behave like apply
"""

import copy

from prereg_mapper.confidence import mapping_rows
from prereg_mapper.examples import build_example_spec
from prereg_mapper.model import (
    UNRESOLVED_VARIABLE,
    AnalysisSpec,
    MappingCandidate,
    SpecWarning,
    VariableMapping,
)
from prereg_mapper.mutator import (
    apply_mappings,
    carry_forward_mappings,
    prune_resolved_warnings,
    resolve_mappings,
)
from prereg_mapper.serialization import spec_from_dict, spec_to_dict


def example_spec():
    return spec_from_dict(build_example_spec())


def unresolved_warning(prereg_var):
    return SpecWarning(code=UNRESOLVED_VARIABLE, message=f"{prereg_var} unmapped", details={"preregVar": prereg_var})


def test_apply_does_not_mutate_input():
    spec = example_spec()
    before = spec_to_dict(spec)
    apply_mappings(spec, {"cond": "cond_assign", "group": "frame_group"})
    assert spec_to_dict(spec) == before


def test_apply_sets_selections():
    updated = apply_mappings(example_spec(), {"anx": "Q5_anxiety", "cond": "cond_assign"})
    assert updated.get_mapping("anx").resolved_to == "Q5_anxiety"
    assert updated.get_mapping("cond").resolved_to == "cond_assign"
    assert updated.get_mapping("group").resolved_to is None


def test_apply_keeps_existing_resolution():
    """trust was resolved by the producer and has no selection."""
    updated = apply_mappings(example_spec(), {})
    assert updated.get_mapping("trust").resolved_to == "Q6_trust"


def test_selection_replaces_existing_resolution():
    updated = apply_mappings(example_spec(), {"trust": "Q5_anxiety"})
    assert updated.get_mapping("trust").resolved_to == "Q5_anxiety"


def test_candidates_untouched():
    spec = example_spec()
    updated = apply_mappings(spec, {"group": "frame_group"})
    assert updated.get_mapping("group").candidates == spec.get_mapping("group").candidates


def test_warnings_pruned_for_resolved_vars():
    updated = apply_mappings(example_spec(), {"cond": "cond_assign"})
    codes = [(w.code, w.prereg_var) for w in updated.warnings]
    assert (UNRESOLVED_VARIABLE, "cond") not in codes
    assert (UNRESOLVED_VARIABLE, "group") in codes
    assert ("LLM_ENRICHMENT_SKIPPED", None) in codes


def test_all_resolved_leaves_only_other_warnings():
    updated = apply_mappings(example_spec(), {"cond": "cond_assign", "group": "frame_group"})
    assert [w.code for w in updated.warnings] == ["LLM_ENRICHMENT_SKIPPED"]


def test_no_warning_references_a_resolved_var():
    spec = example_spec()
    spec.warnings.append(unresolved_warning("trust"))
    updated = apply_mappings(spec, {"group": "frame_group"})
    resolved = {m.prereg_var for m in updated.variable_mappings if m.resolved_to}
    for warning in updated.warnings:
        if warning.code == UNRESOLVED_VARIABLE:
            assert warning.prereg_var not in resolved


def test_rows_still_computable_from_original():
    spec = example_spec()
    rows_before = mapping_rows(spec)
    apply_mappings(spec, {"group": "frame_group"})
    assert mapping_rows(spec) == rows_before


def test_prune_keeps_other_codes():
    warnings = [unresolved_warning("a"), SpecWarning(code="OTHER", details={"preregVar": "a"})]
    kept = prune_resolved_warnings(warnings, set())
    assert [w.code for w in kept] == ["OTHER"]


def test_prune_ignore_case():
    kept = prune_resolved_warnings([unresolved_warning("Anx")], {"anx"}, ignore_case=True)
    assert len(kept) == 1
    assert prune_resolved_warnings([unresolved_warning("Anx")], {"anx"}) == []


def test_resolve_mappings_updates_case_insensitively():
    updated = resolve_mappings(example_spec(), [("GROUP", "frame_group")])
    assert updated.get_mapping("group").resolved_to == "frame_group"
    assert all(w.prereg_var != "group" for w in updated.warnings)


def test_resolve_mappings_appends_unknown_var():
    updated = resolve_mappings(example_spec(), [("income", "Q9_income")])
    mapping = updated.get_mapping("income")
    assert mapping.resolved_to == "Q9_income"
    assert mapping.candidates == []


def test_resolve_mappings_ignores_empty_updates():
    spec = example_spec()
    updated = resolve_mappings(spec, [("cond", ""), ("", "x")])
    assert spec_to_dict(updated) == spec_to_dict(spec)


def test_carry_forward_saved_resolutions():
    saved = apply_mappings(example_spec(), {"cond": "cond_assign", "group": "frame_group"})
    regenerated = example_spec()
    updated = carry_forward_mappings(regenerated, saved)
    assert updated.get_mapping("cond").resolved_to == "cond_assign"
    assert updated.get_mapping("group").resolved_to == "frame_group"
    assert [w.code for w in updated.warnings] == ["LLM_ENRICHMENT_SKIPPED"]
    assert regenerated.get_mapping("cond").resolved_to is None


def test_carry_forward_skips_null_saved():
    saved = AnalysisSpec(variable_mappings=[VariableMapping("trust", resolved_to=None)])
    updated = carry_forward_mappings(example_spec(), saved)
    assert updated.get_mapping("trust").resolved_to == "Q6_trust"


def test_mutator_never_adds_warnings():
    spec = AnalysisSpec(variable_mappings=[VariableMapping("x", candidates=[MappingCandidate("a", 0.1)])])
    assert apply_mappings(spec, {}).warnings == []
    assert resolve_mappings(spec, []).warnings == []
