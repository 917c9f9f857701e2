"""
Tests for Core Spec Model Objects

These tests verify:
    - Basic model creation and defaults
    - Retrieval methods
    - Warning detail accessors
    - Manual selection normalization
"""

import pytest
from prereg_mapper.model import (
    AnalysisSpec,
    ExtractedModel,
    FigureKind,
    LayoutKind,
    ManualSelection,
    MappingCandidate,
    ModelLayout,
    ModelType,
    SpecWarning,
    TemplateChoice,
    VariableMapping,
    unique,
)


class TestVariableMapping:
    """Test VariableMapping objects."""

    def test_defaults_to_unresolved(self):
        """A new mapping has no resolution and no candidates."""
        mapping = VariableMapping(prereg_var="anx")
        assert mapping.resolved_to is None
        assert mapping.candidates == []

    def test_candidates_keep_given_order(self):
        """Candidates are not re-sorted."""
        mapping = VariableMapping(
            prereg_var="anx",
            candidates=[MappingCandidate("b", 0.2), MappingCandidate("a", 0.9)],
        )
        assert [c.key for c in mapping.candidates] == ["b", "a"]


class TestAnalysisSpec:
    """Test AnalysisSpec container."""

    def test_empty_spec(self):
        spec = AnalysisSpec()
        assert spec.variable_mappings == []
        assert spec.models.main == []
        assert spec.data_contract.expected_columns == []
        assert spec.warnings == []

    def test_get_mapping(self):
        """Should retrieve a mapping by prereg variable."""
        spec = AnalysisSpec(variable_mappings=[VariableMapping("anx"), VariableMapping("cond")])
        assert spec.get_mapping("cond").prereg_var == "cond"

    def test_get_missing_mapping(self):
        """Should return None for an unknown variable."""
        spec = AnalysisSpec(variable_mappings=[VariableMapping("anx")])
        assert spec.get_mapping("nope") is None


class TestSpecWarning:
    """Test SpecWarning objects."""

    def test_prereg_var_from_details(self):
        warning = SpecWarning(code="UNRESOLVED_VARIABLE", details={"preregVar": "cond"})
        assert warning.prereg_var == "cond"

    def test_prereg_var_missing(self):
        warning = SpecWarning(code="OTHER")
        assert warning.prereg_var is None

    def test_prereg_var_with_non_object_details(self):
        warning = SpecWarning(code="OTHER", details=["cond"])
        assert warning.prereg_var is None


class TestModelLayout:
    """Test ModelLayout defaults."""

    def test_defaults(self):
        layout = ModelLayout(name="m")
        assert layout.model_type == ModelType.OLS
        assert layout.layout == LayoutKind.SIMPLE
        assert layout.interaction_var == ""
        assert layout.id_var == "id"
        assert layout.time_var == "time"
        assert layout.figures == [FigureKind.COEF_PLOT]
        assert layout.include_in_main_table is True

    def test_figures_are_not_shared(self):
        """Each layout gets its own figure list."""
        a = ModelLayout(name="a")
        b = ModelLayout(name="b")
        a.figures.append(FigureKind.RESIDUAL_PLOT)
        assert b.figures == [FigureKind.COEF_PLOT]


class TestManualSelection:
    """Test ManualSelection normalization."""

    def test_drops_duplicates_and_blanks(self):
        selection = ManualSelection(dv=["y", "", "y"], iv=["x1", "x2", "x1"], controls=[])
        assert selection.dv == ["y"]
        assert selection.iv == ["x1", "x2"]
        assert selection.controls == []

    def test_unique_keeps_first_seen_order(self):
        assert unique(["b", "a", "b", None, "c"]) == ["b", "a", "c"]


def test_enum_values_match_wire_strings():
    assert TemplateChoice("factorial_2x2") == TemplateChoice.FACTORIAL_2X2
    assert ModelType("event_study") == ModelType.EVENT_STUDY
    assert ExtractedModel().family == "gaussian"
