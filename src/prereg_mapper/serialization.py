"""
Serialization helpers for analysis spec objects.

Producer output arrives as loosely structured camelCase dicts. The
`*_from_dict` functions are the ingestion boundary: they validate and
default-fill every entry so the rest of the package only ever sees typed
objects. Entries that cannot be salvaged are dropped with a UserWarning.

The `*_to_dict` functions produce the camelCase shape persistence and the
wizard expect. Unknown producer keys survive the round trip via `extra`.
"""
from __future__ import annotations

import json
import warnings
from typing import Any, Dict, List, Optional

import yaml

from prereg_mapper.model import (
    AnalysisSpec,
    DataContract,
    ExtractedModel,
    MappingCandidate,
    ModelLayout,
    ModelsSpec,
    SpecWarning,
    VariableMapping,
)


class SpecFormatError(ValueError):
    """Raised when a producer payload is not a spec at all."""
    pass


_SPEC_KEYS = {"variableMappings", "models", "dataContract", "warnings"}


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None and str(v) != ""]


def _score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def candidate_to_dict(c: MappingCandidate) -> Dict[str, Any]:
    return {"key": c.key, "score": c.score}


def candidate_from_dict(d: Any) -> Optional[MappingCandidate]:
    if not isinstance(d, dict) or not d.get("key"):
        return None
    return MappingCandidate(key=str(d["key"]), score=_score(d.get("score", 0)))


def mapping_to_dict(m: VariableMapping) -> Dict[str, Any]:
    return {
        "preregVar": m.prereg_var,
        "resolvedTo": m.resolved_to,
        "candidates": [candidate_to_dict(c) for c in m.candidates],
    }


def mapping_from_dict(d: Any) -> Optional[VariableMapping]:
    if not isinstance(d, dict):
        return None
    prereg_var = str(d.get("preregVar") or "").strip()
    if not prereg_var:
        return None

    candidates = []
    for raw in d.get("candidates") or []:
        candidate = candidate_from_dict(raw)
        if candidate is None:
            warnings.warn(f"Dropped malformed candidate for {prereg_var}: {raw!r}", UserWarning)
            continue
        candidates.append(candidate)

    resolved_to = d.get("resolvedTo")
    return VariableMapping(
        prereg_var=prereg_var,
        resolved_to=str(resolved_to) if resolved_to else None,
        candidates=candidates,
    )


def extracted_model_to_dict(m: ExtractedModel) -> Dict[str, Any]:
    return {
        "id": m.id,
        "family": m.family,
        "dv": m.dv,
        "iv": list(m.iv),
        "controls": list(m.controls),
        "interactions": list(m.interactions),
        "formula": m.formula,
        "unresolvedVariables": list(m.unresolved_variables),
    }


def extracted_model_from_dict(d: Any) -> Optional[ExtractedModel]:
    if not isinstance(d, dict):
        return None
    return ExtractedModel(
        id=str(d.get("id") or ""),
        family=str(d.get("family") or "gaussian"),
        dv=str(d.get("dv") or ""),
        iv=_str_list(d.get("iv")),
        controls=_str_list(d.get("controls")),
        interactions=_str_list(d.get("interactions")),
        formula=str(d.get("formula") or ""),
        unresolved_variables=_str_list(d.get("unresolvedVariables")),
    )


def _models_from_list(section: str, items: Any, keep_raw: bool = False) -> List[Any]:
    models = []
    for raw in items or []:
        model = extracted_model_from_dict(raw)
        if model is None:
            if keep_raw and raw is not None:
                models.append(raw)
                continue
            warnings.warn(f"Dropped malformed {section} model: {raw!r}", UserWarning)
            continue
        models.append(model)
    return models


def _model_entry_to_dict(m: Any) -> Any:
    return extracted_model_to_dict(m) if isinstance(m, ExtractedModel) else m


def models_to_dict(m: ModelsSpec) -> Dict[str, Any]:
    return {
        "main": [extracted_model_to_dict(x) for x in m.main],
        "robustness": [_model_entry_to_dict(x) for x in m.robustness],
        "exploratory": [_model_entry_to_dict(x) for x in m.exploratory],
    }


def models_from_dict(d: Any) -> ModelsSpec:
    if not isinstance(d, dict):
        return ModelsSpec()
    return ModelsSpec(
        main=_models_from_list("main", d.get("main")),
        robustness=_models_from_list("robustness", d.get("robustness"), keep_raw=True),
        exploratory=_models_from_list("exploratory", d.get("exploratory"), keep_raw=True),
    )


def data_contract_to_dict(c: DataContract) -> Dict[str, Any]:
    out = dict(c.extra)
    out["expectedColumns"] = list(c.expected_columns)
    return out


def data_contract_from_dict(d: Any) -> DataContract:
    if not isinstance(d, dict):
        return DataContract()
    columns = d.get("expectedColumns") or []
    extra = {k: v for k, v in d.items() if k != "expectedColumns"}
    return DataContract(
        expected_columns=[str(c) for c in columns if c is not None],
        extra=extra,
    )


def warning_to_dict(w: SpecWarning) -> Dict[str, Any]:
    return {"code": w.code, "message": w.message, "details": w.details}


def warning_from_dict(d: Any) -> Optional[SpecWarning]:
    if not isinstance(d, dict) or not d.get("code"):
        return None
    return SpecWarning(
        code=str(d["code"]),
        message=str(d.get("message") or ""),
        details=d["details"] if "details" in d else {},
    )


def spec_to_dict(s: AnalysisSpec) -> Dict[str, Any]:
    out = dict(s.extra)
    out.update({
        "variableMappings": [mapping_to_dict(m) for m in s.variable_mappings],
        "models": models_to_dict(s.models),
        "dataContract": data_contract_to_dict(s.data_contract),
        "warnings": [warning_to_dict(w) for w in s.warnings],
    })
    return out


def spec_from_dict(d: Any) -> AnalysisSpec:
    if not isinstance(d, dict):
        raise SpecFormatError(f"Expected a spec object, got {type(d).__name__}")

    s = AnalysisSpec(extra={k: v for k, v in d.items() if k not in _SPEC_KEYS})

    seen = set()
    for raw in d.get("variableMappings") or []:
        mapping = mapping_from_dict(raw)
        if mapping is None:
            warnings.warn(f"Dropped malformed variable mapping: {raw!r}", UserWarning)
            continue
        if mapping.prereg_var in seen:
            warnings.warn(f"Duplicate variable mapping for {mapping.prereg_var}", UserWarning)
            continue
        seen.add(mapping.prereg_var)
        s.variable_mappings.append(mapping)

    s.models = models_from_dict(d.get("models"))
    s.data_contract = data_contract_from_dict(d.get("dataContract"))

    for raw in d.get("warnings") or []:
        warning = warning_from_dict(raw)
        if warning is None:
            warnings.warn(f"Dropped malformed warning: {raw!r}", UserWarning)
            continue
        s.warnings.append(warning)
    return s


def spec_to_json(s: AnalysisSpec) -> str:
    return json.dumps(spec_to_dict(s), sort_keys=True)


def spec_from_json(s: str) -> AnalysisSpec:
    d = json.loads(s)
    return spec_from_dict(d)


def spec_to_yaml(s: AnalysisSpec) -> str:
    return yaml.safe_dump(spec_to_dict(s))


def spec_from_yaml(s: str) -> AnalysisSpec:
    d = yaml.safe_load(s)
    return spec_from_dict(d)


def layout_to_dict(l: ModelLayout) -> Dict[str, Any]:
    return {
        "name": l.name,
        "modelType": l.model_type.value,
        "outcomeVar": l.outcome_var,
        "treatmentVar": l.treatment_var,
        "layout": l.layout.value,
        "interactionVar": l.interaction_var,
        "covariates": l.covariates,
        "idVar": l.id_var,
        "timeVar": l.time_var,
        "figures": [f.value for f in l.figures],
        "includeInMainTable": l.include_in_main_table,
    }


def options_to_dict(o) -> Dict[str, Any]:
    """Wizard configuration contract for a WizardOptions object."""
    return {
        "analysisFileName": o.analysis_file_name,
        "outcomeVarHint": o.outcome_var_hint,
        "treatmentVarHint": o.treatment_var_hint,
        "groupVarHint": o.group_var_hint,
        "descriptives": list(o.descriptives),
        "plots": list(o.plots),
        "balanceChecks": list(o.balance_checks),
        "models": [m.value for m in o.models],
        "diagnostics": list(o.diagnostics),
        "tables": list(o.tables),
        "robustness": list(o.robustness),
        "modelLayouts": [layout_to_dict(l) for l in o.model_layouts],
        "exploratory": o.exploratory,
        "exportArtifacts": o.export_artifacts,
    }
