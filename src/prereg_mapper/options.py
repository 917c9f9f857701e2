"""
Options Projector.

Flattens resolution state into the configuration the template wizard
is prefilled from.

to_options() is pure and is meant to be called again whenever any of its
inputs change. Nothing here is cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from prereg_mapper.layouts import derive_layouts
from prereg_mapper.model import AnalysisSpec, ManualSelection, ModelLayout, ModelType, TemplateChoice, unique


DEFAULT_DESCRIPTIVES = ["summary_stats", "missingness", "group_summary"]
DEFAULT_PLOTS = ["boxplot", "coef_plot"]
DEFAULT_BALANCE_CHECKS = ["baseline_table", "randomization_check"]
DEFAULT_TABLES = ["table1_descriptives", "model_table", "balance_table"]


@dataclass
class WizardOptions:
    """Prefill for the analysis template wizard."""
    analysis_file_name: str = "analysis"
    outcome_var_hint: str = "y"
    treatment_var_hint: str = "treat"
    group_var_hint: str = "group"
    descriptives: List[str] = field(default_factory=lambda: list(DEFAULT_DESCRIPTIVES))
    plots: List[str] = field(default_factory=lambda: list(DEFAULT_PLOTS))
    balance_checks: List[str] = field(default_factory=lambda: list(DEFAULT_BALANCE_CHECKS))
    models: List[ModelType] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)
    tables: List[str] = field(default_factory=lambda: list(DEFAULT_TABLES))
    robustness: List[str] = field(default_factory=list)
    model_layouts: List[ModelLayout] = field(default_factory=list)
    exploratory: bool = False
    export_artifacts: bool = True


def to_options(
    spec: AnalysisSpec,
    analysis_id: Optional[str],
    selections: Mapping[str, str],
    dv: Sequence[str],
    iv: Sequence[str],
    controls: Sequence[str],
    template_choice: TemplateChoice,
) -> WizardOptions:
    """
    Build wizard options from the current resolution state.

    Variable hints come from the first derived layout, then from the first
    manual picks, then from fixed placeholders.
    """
    manual = ManualSelection(dv=list(dv), iv=list(iv), controls=list(controls))
    layouts = derive_layouts(spec, selections, manual, template_choice)
    first = layouts[0] if layouts else None

    return WizardOptions(
        analysis_file_name=analysis_id or "analysis",
        outcome_var_hint=(first.outcome_var if first else "") or _at(manual.dv, 0) or "y",
        treatment_var_hint=(first.treatment_var if first else "") or _at(manual.iv, 0) or "treat",
        group_var_hint=(first.interaction_var if first else "") or _at(manual.iv, 1) or "group",
        models=unique(layout.model_type for layout in layouts),
        robustness=["alt_controls"] if spec.models.robustness else [],
        model_layouts=layouts,
        exploratory=bool(spec.models.exploratory),
        export_artifacts=True,
    )


def _at(values: Sequence[str], index: int) -> str:
    return values[index] if len(values) > index else ""


_DIAGNOSTICS_BY_MODEL = {
    ModelType.OLS: [
        "linearity",
        "normality_residuals",
        "homoskedasticity",
        "multicollinearity",
        "influential_points",
    ],
    ModelType.LOGIT: ["multicollinearity", "influential_points"],
    ModelType.POISSON: ["overdispersion"],
    ModelType.NEGBIN: ["overdispersion"],
    ModelType.DID: ["parallel_trends", "placebo_tests"],
    ModelType.EVENT_STUDY: ["parallel_trends", "placebo_tests"],
    ModelType.RD: ["bandwidth_sensitivity"],
}


def suggest_diagnostics(models: Sequence[ModelType]) -> List[str]:
    """Diagnostics worth offering for a set of model types."""
    return unique(d for model in models for d in _DIAGNOSTICS_BY_MODEL.get(model, []))
