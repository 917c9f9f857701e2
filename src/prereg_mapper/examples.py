"""
Example producer output for a small 2x2 framing experiment.

Mirrors what the spec generator returns for a pre-registration declaring
two hypotheses (anxiety and trust, each on condition x group with age as a
control) matched against a Qualtrics export. Covers all three confidence
tiers: "anx" is high, "cond" is medium, "group" is low.
"""
import copy
from typing import Any, Dict


_EXAMPLE_SPEC: Dict[str, Any] = {
    "projectId": "proj-framing",
    "studyId": "study-1",
    "analysisId": "analysis",
    "inputs": {
        "qsf": {"path": "03_build/survey.qsf", "sha256": "0" * 64},
        "prereg": {"path": "01_prereg/prereg.md", "sha256": "1" * 64},
    },
    "dataContract": {
        "source": "qualtrics_csv",
        "idColumns": {"response": "ResponseId"},
        "expectedColumns": [
            "ResponseId",
            "StartDate",
            "Finished",
            "QID12",
            "Q5_anxiety",
            "Q6_trust",
            "cond_assign",
            "frame_group",
            "age",
            "",
        ],
        "labelMap": {},
        "exclusions": [],
        "missingness": None,
        "derivedVariables": [],
    },
    "variableMappings": [
        {
            "preregVar": "anx",
            "resolvedTo": None,
            "candidates": [
                {"key": "Q5_anxiety", "score": 0.95},
                {"key": "Q6_trust", "score": 0.41},
            ],
        },
        {
            "preregVar": "trust",
            "resolvedTo": "Q6_trust",
            "candidates": [{"key": "Q6_trust", "score": 0.99}],
        },
        {
            "preregVar": "cond",
            "resolvedTo": None,
            "candidates": [
                {"key": "cond_assign", "score": 0.82},
                {"key": "frame_group", "score": 0.77},
            ],
        },
        {
            "preregVar": "group",
            "resolvedTo": None,
            "candidates": [
                {"key": "frame_group", "score": 0.61},
                {"key": "cond_assign", "score": 0.58},
            ],
        },
    ],
    "models": {
        "main": [
            {
                "id": "H1",
                "family": "gaussian",
                "dv": "anx",
                "iv": ["cond", "group"],
                "controls": ["age"],
                "interactions": ["cond:group"],
                "formula": "anx ~ cond * group + age",
                "unresolvedVariables": [],
            },
            {
                "id": "H2",
                "family": "binomial(link = logit)",
                "dv": "trust",
                "iv": ["cond"],
                "controls": ["age"],
                "interactions": [],
                "formula": "trust ~ cond + age",
                "unresolvedVariables": [],
            },
        ],
        "robustness": [],
        "exploratory": [
            {"id": "E1", "family": "poisson", "dv": "trust", "iv": ["group"], "controls": [], "interactions": []},
        ],
    },
    "outputs": {"tables": ["model_table"], "figures": ["coef_plot"]},
    "templateBindings": {
        "templateSet": "apa_v1",
        "styleProfile": "apa_flextable_ggpubr",
        "paths": {},
        "packages": ["flextable", "ggpubr"],
    },
    "warnings": [
        {
            "code": "UNRESOLVED_VARIABLE",
            "message": "Unable to map prereg variable 'cond' to QSF column.",
            "details": {"preregVar": "cond"},
        },
        {
            "code": "UNRESOLVED_VARIABLE",
            "message": "Unable to map prereg variable 'group' to QSF column.",
            "details": {"preregVar": "group"},
        },
        {
            "code": "LLM_ENRICHMENT_SKIPPED",
            "message": "No local model configured; used deterministic extraction only.",
            "details": {},
        },
    ],
}


def build_example_spec() -> Dict[str, Any]:
    """Fresh copy of the raw example payload."""
    return copy.deepcopy(_EXAMPLE_SPEC)


def example_producer(request: Dict[str, Any]) -> Dict[str, Any]:
    """Stand-in producer that answers every request with the example payload."""
    spec = build_example_spec()
    for key in ("projectId", "studyId", "analysisId"):
        if request.get(key):
            spec[key] = request[key]
    return spec
