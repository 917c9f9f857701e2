"""
Tests for spec ingestion and serialization.

Ingestion must validate and default-fill producer payloads, dropping
malformed entries with a UserWarning. Serialization must keep unknown
producer keys so a saved spec carries everything that was loaded.
"""

import pytest

from prereg_mapper.examples import build_example_spec
from prereg_mapper.model import LayoutKind, ModelLayout, ModelType
from prereg_mapper.serialization import (
    SpecFormatError,
    layout_to_dict,
    spec_from_dict,
    spec_from_json,
    spec_from_yaml,
    spec_to_dict,
    spec_to_json,
    spec_to_yaml,
)


def test_example_spec_ingests():
    spec = spec_from_dict(build_example_spec())
    assert [m.prereg_var for m in spec.variable_mappings] == ["anx", "trust", "cond", "group"]
    assert spec.get_mapping("trust").resolved_to == "Q6_trust"
    assert spec.get_mapping("anx").candidates[0].key == "Q5_anxiety"
    assert spec.models.main[1].family == "binomial(link = logit)"
    assert len(spec.models.exploratory) == 1
    assert spec.warnings[0].prereg_var == "cond"


def test_unknown_keys_are_kept():
    spec = spec_from_dict(build_example_spec())
    assert spec.extra["projectId"] == "proj-framing"
    assert "templateBindings" in spec.extra
    assert spec.data_contract.extra["idColumns"] == {"response": "ResponseId"}


def test_non_mapping_payload_rejected():
    with pytest.raises(SpecFormatError):
        spec_from_dict(["not", "a", "spec"])


def test_missing_sections_default_to_empty():
    spec = spec_from_dict({})
    assert spec.variable_mappings == []
    assert spec.models.main == []
    assert spec.models.robustness == []
    assert spec.data_contract.expected_columns == []
    assert spec.warnings == []


def test_malformed_mapping_dropped_with_warning():
    """Mappings without a prereg variable are dropped, not propagated."""
    raw = {
        "variableMappings": [
            {"preregVar": "", "candidates": []},
            "garbage",
            {"preregVar": "anx", "candidates": [{"key": "Q5", "score": 0.9}]},
        ]
    }
    with pytest.warns(UserWarning):
        spec = spec_from_dict(raw)
    assert [m.prereg_var for m in spec.variable_mappings] == ["anx"]


def test_malformed_candidate_dropped_with_warning():
    raw = {"variableMappings": [{"preregVar": "anx", "candidates": [{"score": 0.9}, {"key": "Q5", "score": "n/a"}]}]}
    with pytest.warns(UserWarning):
        spec = spec_from_dict(raw)
    candidates = spec.get_mapping("anx").candidates
    assert len(candidates) == 1
    assert candidates[0].key == "Q5"
    assert candidates[0].score == 0.0


def test_duplicate_mapping_dropped_with_warning():
    raw = {"variableMappings": [{"preregVar": "anx"}, {"preregVar": "anx", "resolvedTo": "Q5"}]}
    with pytest.warns(UserWarning):
        spec = spec_from_dict(raw)
    assert len(spec.variable_mappings) == 1
    assert spec.variable_mappings[0].resolved_to is None


def test_empty_resolution_becomes_none():
    spec = spec_from_dict({"variableMappings": [{"preregVar": "anx", "resolvedTo": ""}]})
    assert spec.get_mapping("anx").resolved_to is None


def test_json_roundtrip():
    spec = spec_from_dict(build_example_spec())
    before = spec_to_dict(spec)
    restored = spec_from_json(spec_to_json(spec))
    assert spec_to_dict(restored) == before


def test_yaml_roundtrip():
    spec = spec_from_dict(build_example_spec())
    before = spec_to_dict(spec)
    restored = spec_from_yaml(spec_to_yaml(spec))
    assert spec_to_dict(restored) == before


def test_spec_to_dict_uses_camel_case():
    d = spec_to_dict(spec_from_dict(build_example_spec()))
    assert d["variableMappings"][0]["preregVar"] == "anx"
    assert "expectedColumns" in d["dataContract"]
    assert d["projectId"] == "proj-framing"


def test_layout_to_dict():
    layout = ModelLayout(
        name="H1",
        model_type=ModelType.LOGIT,
        outcome_var="y",
        treatment_var="x",
        layout=LayoutKind.INTERACTION,
        interaction_var="g",
        covariates="age, sex",
    )
    assert layout_to_dict(layout) == {
        "name": "H1",
        "modelType": "logit",
        "outcomeVar": "y",
        "treatmentVar": "x",
        "layout": "interaction",
        "interactionVar": "g",
        "covariates": "age, sex",
        "idVar": "id",
        "timeVar": "time",
        "figures": ["coef_plot"],
        "includeInMainTable": True,
    }


def test_free_text_robustness_and_exploratory_entries_kept():
    raw = {"models": {"robustness": ["drop outliers"], "exploratory": ["by age", {"id": "E1"}]}}
    spec = spec_from_dict(raw)
    assert spec.models.robustness == ["drop outliers"]
    assert spec.models.exploratory[0] == "by age"
    assert spec.models.exploratory[1].id == "E1"

    models = spec_to_dict(spec)["models"]
    assert models["robustness"] == ["drop outliers"]
    assert models["exploratory"][0] == "by age"
    assert models["exploratory"][1]["id"] == "E1"


def test_non_object_main_model_dropped_with_warning():
    with pytest.warns(UserWarning, match="main model"):
        spec = spec_from_dict({"models": {"main": ["H1: anx ~ cond"]}})
    assert spec.models.main == []


def test_warning_details_kept_as_given():
    raw = {"warnings": [{"code": "PARSE_NOTE", "message": "m", "details": "line 12"}]}
    spec = spec_from_dict(raw)
    assert spec.warnings[0].details == "line 12"
    assert spec.warnings[0].prereg_var is None
    assert spec_to_dict(spec)["warnings"][0]["details"] == "line 12"
