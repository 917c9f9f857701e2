"""
Core Analysis Spec Objects

Defines the data structures the mapping engine works on.

These are plain data classes representing:
    - Mapping candidates and variable mappings (prereg variable -> survey column)
    - Extracted statistical models (mined from the pre-registration)
    - The data contract (survey column inventory)
    - Warnings emitted by the spec producer
    - The analysis spec (root container)
    - Model layouts (normalized model descriptions for the wizard)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about the producer that scored the candidates
        - Know nothing about template rendering
        - Are fully serializable
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


UNRESOLVED_VARIABLE = "UNRESOLVED_VARIABLE"


class Confidence(Enum):
    """Reliability tier of a mapping's top candidate."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ModelType(Enum):
    """Statistical model families the template generator understands."""
    OLS = "ols"
    LOGIT = "logit"
    POISSON = "poisson"
    NEGBIN = "negbin"
    MIXED_EFFECTS = "mixed_effects"
    FIXED_EFFECTS = "fixed_effects"
    SURVIVAL = "survival"
    RD = "rd"
    DID = "did"
    EVENT_STUDY = "event_study"


class LayoutKind(Enum):
    """Formula shape of a model layout."""
    SIMPLE = "simple"              # outcome ~ treatment + covariates
    INTERACTION = "interaction"    # outcome ~ (treatment) * moderator + covariates


class FigureKind(Enum):
    COEF_PLOT = "coef_plot"
    FITTED_PLOT = "fitted_plot"
    RESIDUAL_PLOT = "residual_plot"
    EVENT_STUDY_PLOT = "event_study_plot"


class TemplateChoice(Enum):
    """
    How model layouts are derived.

    AUTO uses the models extracted from the pre-registration when there are
    any. The other two synthesize layouts from manually chosen variables.
    """
    AUTO = "auto"
    FACTORIAL_2X2 = "factorial_2x2"
    SIMPLE_OLS = "simple_ols"


@dataclass
class MappingCandidate:
    """
    A scored survey column proposed for a prereg variable.

    Properties:
        key: Survey column name (export tag or embedded data field)
        score: Similarity score in [0, 1]
    """

    key: str
    score: float = 0.0


@dataclass
class VariableMapping:
    """
    Maps one pre-registration variable onto the survey inventory.

    Properties:
        prereg_var:
            Variable name as declared in the pre-registration (never empty)

        resolved_to:
            Chosen survey column, or None while unresolved

        candidates:
            Scored candidates, best first. The producer orders them;
            nothing here re-sorts them.

    INVARIANT:
        Resolving a mapping only ever changes resolved_to.
        Candidates are never removed by resolution.
    """

    prereg_var: str
    resolved_to: Optional[str] = None
    candidates: List[MappingCandidate] = field(default_factory=list)


@dataclass
class ExtractedModel:
    """
    A statistical model mined from the pre-registration text.

    Variable names (dv, iv, controls, interactions) are prereg names.
    They are translated to survey columns through the resolution
    selections when layouts are derived.

    Properties:
        id: Model identifier from the pre-registration (e.g. "H1")
        family: Free-text family ("gaussian", "binomial(link = logit)", ...)
        dv: Dependent variable
        iv: Independent variables, primary treatment first
        controls: Control variables
        interactions: Interaction terms written as "A:B"
        formula: Formula text as extracted, kept for reference
        unresolved_variables: Variables the producer could not map
    """

    id: str = ""
    family: str = "gaussian"
    dv: str = ""
    iv: List[str] = field(default_factory=list)
    controls: List[str] = field(default_factory=list)
    interactions: List[str] = field(default_factory=list)
    formula: str = ""
    unresolved_variables: List[str] = field(default_factory=list)


@dataclass
class ModelsSpec:
    """
    Extracted models by role.

    Only main models drive layouts. Robustness and exploratory entries
    are whatever the producer declared: object entries are read as
    ExtractedModel, anything else (e.g. a free-text description) is kept
    as the raw value.
    """

    main: List[ExtractedModel] = field(default_factory=list)
    robustness: List[Any] = field(default_factory=list)
    exploratory: List[Any] = field(default_factory=list)


@dataclass
class DataContract:
    """
    Survey-side data contract.

    Only expected_columns is interpreted here. Everything else the producer
    puts in the contract (id columns, label map, exclusions, ...) is kept
    in `extra` and written back unchanged.
    """

    expected_columns: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SpecWarning:
    """
    A warning attached to the spec by the producer.

    Properties:
        code: Machine-readable code (e.g. "UNRESOLVED_VARIABLE")
        message: Human-readable message
        details: Free-form payload, kept as given. When it is an object,
            "preregVar" names the variable concerned
    """

    code: str
    message: str = ""
    details: Any = field(default_factory=dict)

    @property
    def prereg_var(self) -> Optional[str]:
        if not isinstance(self.details, dict):
            return None
        value = self.details.get("preregVar")
        return None if value is None else str(value)


@dataclass
class AnalysisSpec:
    """
    Root container for a generated analysis spec.

    This is what the producer hands over and what persistence writes back.

    Properties:
        variable_mappings: One mapping per prereg variable
        models: Extracted main / robustness / exploratory models
        data_contract: Survey column inventory
        warnings: Producer warnings
        extra: Every other top-level producer key, preserved verbatim

    INVARIANTS:
        - prereg_var is unique per mapping and never empty
        - After mappings are applied, no UNRESOLVED_VARIABLE warning
          names a variable that has a resolution
    """

    variable_mappings: List[VariableMapping] = field(default_factory=list)
    models: ModelsSpec = field(default_factory=ModelsSpec)
    data_contract: DataContract = field(default_factory=DataContract)
    warnings: List[SpecWarning] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def get_mapping(self, prereg_var: str) -> Optional[VariableMapping]:
        """
        Retrieve a mapping by prereg variable name.

        Args:
            prereg_var: Prereg variable name (exact match)

        Returns:
            VariableMapping or None if not found
        """
        for mapping in self.variable_mappings:
            if mapping.prereg_var == prereg_var:
                return mapping
        return None


@dataclass
class ModelLayout:
    """
    A normalized description of one statistical model, ready for the
    template wizard.

    Properties:
        name: Unique within one derivation batch
        model_type: ModelType
        outcome_var: Dependent variable (survey column)
        treatment_var: Primary regressor
        layout: SIMPLE or INTERACTION
        interaction_var: Moderator for INTERACTION layouts, "" otherwise
        covariates: Controls joined with ", "
        id_var / time_var: Panel identifiers (defaults "id" / "time")
        figures: Figure kinds, duplicate-free
        include_in_main_table: Whether the model appears in the main table

    Owned by the wizard session. Only persisted on explicit save.
    """

    name: str
    model_type: ModelType = ModelType.OLS
    outcome_var: str = "y"
    treatment_var: str = "treat"
    layout: LayoutKind = LayoutKind.SIMPLE
    interaction_var: str = ""
    covariates: str = ""
    id_var: str = "id"
    time_var: str = "time"
    figures: List[FigureKind] = field(default_factory=lambda: [FigureKind.COEF_PLOT])
    include_in_main_table: bool = True


@dataclass
class ManualSelection:
    """
    Variables picked by hand from the survey inventory.

    Lists are ordered and duplicate-free: the first IV is the treatment,
    the second IV is the interaction variable for factorial templates.
    """

    dv: List[str] = field(default_factory=list)
    iv: List[str] = field(default_factory=list)
    controls: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.dv = unique(self.dv)
        self.iv = unique(self.iv)
        self.controls = unique(self.controls)


def unique(values) -> List:
    """Drop falsy values and duplicates, keeping first-seen order."""
    seen = set()
    out = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out
