"""
Model Layout Deriver.

Turns resolved mappings into ModelLayout objects by one of two strategies:

    From extracted models
        Each model mined from the pre-registration becomes one layout,
        with every variable translated through the resolution selections.

    From manual selection
        Layouts are synthesized from hand-picked DVs / IVs / controls
        and a fixed template (2x2 factorial or simple OLS).

derive_layouts() picks between them. Given the same spec, selections,
manual picks and template choice it always returns the same layouts in
the same order.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from prereg_mapper.model import (
    AnalysisSpec,
    ExtractedModel,
    LayoutKind,
    ManualSelection,
    ModelLayout,
    ModelType,
    TemplateChoice,
)


def family_to_model_type(family: str) -> ModelType:
    lower = (family or "").lower()
    if "binomial" in lower or "logit" in lower:
        return ModelType.LOGIT
    if "poisson" in lower:
        return ModelType.POISSON
    return ModelType.OLS


def extract_interaction_var(interactions: Sequence[str]) -> str:
    """
    Moderator named by the first "A:B" interaction term.

    A is taken to be the primary treatment already, so only B is returned.
    Further terms and higher-order components are ignored.
    """
    if not interactions:
        return ""
    parts = [p.strip() for p in str(interactions[0] or "").split(":")]
    parts = [p for p in parts if p]
    return parts[1] if len(parts) > 1 else ""


def _layout_from_model(model: ExtractedModel, index: int, selections: Mapping[str, str]) -> ModelLayout:
    def map_var(value: str) -> str:
        return selections.get(value) or value

    iv = [map_var(v) for v in model.iv]
    controls = [map_var(v) for v in model.controls]
    interaction = extract_interaction_var(model.interactions)
    if interaction:
        interaction = map_var(interaction)

    return ModelLayout(
        name=model.id or f"model_{index + 1}",
        model_type=family_to_model_type(model.family),
        outcome_var=map_var(model.dv or "y"),
        treatment_var=iv[0] if iv else "treat",
        layout=LayoutKind.INTERACTION if interaction else LayoutKind.SIMPLE,
        interaction_var=interaction,
        covariates=", ".join(controls),
    )


def build_layouts_from_extracted_models(spec: AnalysisSpec, selections: Mapping[str, str]) -> List[ModelLayout]:
    return [_layout_from_model(m, i, selections) for i, m in enumerate(spec.models.main)]


def build_layouts_from_manual_selection(
    dv: Sequence[str],
    iv: Sequence[str],
    controls: Sequence[str],
    template_choice: TemplateChoice,
) -> List[ModelLayout]:
    """
    Synthesize layouts from hand-picked variables.

    Needs at least one DV and one IV, otherwise returns []. One layout is
    produced per DV. FACTORIAL_2X2 with two or more IVs gives interaction
    layouts (IV[0] x IV[1]); anything else gives simple OLS layouts.
    """
    if not dv or not iv:
        return []

    covariates = ", ".join(controls)

    if template_choice == TemplateChoice.FACTORIAL_2X2 and len(iv) >= 2:
        return [
            ModelLayout(
                name=f"factorial_{i + 1}",
                model_type=ModelType.OLS,
                outcome_var=outcome,
                treatment_var=iv[0],
                layout=LayoutKind.INTERACTION,
                interaction_var=iv[1],
                covariates=covariates,
            )
            for i, outcome in enumerate(dv)
        ]

    return [
        ModelLayout(
            name=f"model_{i + 1}",
            model_type=ModelType.OLS,
            outcome_var=outcome,
            treatment_var=iv[0],
            layout=LayoutKind.SIMPLE,
            covariates=covariates,
        )
        for i, outcome in enumerate(dv)
    ]


def derive_layouts(
    spec: AnalysisSpec,
    selections: Mapping[str, str],
    manual: Optional[ManualSelection],
    template_choice: TemplateChoice,
) -> List[ModelLayout]:
    """Extracted-model layouts under AUTO when there are any, else manual layouts."""
    if template_choice == TemplateChoice.AUTO:
        extracted = build_layouts_from_extracted_models(spec, selections)
        if extracted:
            return extracted

    manual = manual or ManualSelection()
    return build_layouts_from_manual_selection(manual.dv, manual.iv, manual.controls, template_choice)


def formula_preview(layout: ModelLayout) -> str:
    """R-style formula for a layout, e.g. "y ~ (treat) * group + age"."""
    outcome = (layout.outcome_var or "").strip() or "y"
    treatment = (layout.treatment_var or "").strip() or "treat"
    interaction = (layout.interaction_var or "").strip() or "moderator_var"
    covariates = (layout.covariates or "").strip()

    if layout.layout == LayoutKind.INTERACTION:
        rhs = f"({treatment}) * {interaction}"
    else:
        rhs = treatment
    if covariates:
        rhs += f" + {covariates}"

    return f"{outcome} ~ {rhs}"
