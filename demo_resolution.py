"""
Demo: Run a mapping session against the example spec and print the result.
"""

import json
import logging

from prereg_mapper.examples import example_producer
from prereg_mapper.layouts import formula_preview
from prereg_mapper.report import format_warnings
from prereg_mapper.serialization import options_to_dict
from prereg_mapper.session import AnalysisSession


def print_report(session):
    """Pretty-print the resolution state of a session."""
    report = session.report
    print()
    print("=" * 70)
    print(f"MAPPING RESOLUTION: {session.analysis_id} [{session.state.value}]")
    print("=" * 70)
    print()

    print("📊 MAPPINGS")
    for row in session.rows:
        chosen = session.selections.get(row.prereg_var, "-")
        print(f"  {row.prereg_var:<10} {row.confidence.value:<7} top {row.top_score:.2f}  -> {chosen}")
    print()

    print("📈 TIERS")
    for tier, count in report.tier_counts.items():
        print(f"  {tier:<7} {count}")
    print()

    print("📐 MODEL LAYOUTS")
    for layout in session.layouts:
        print(f"  {layout.name:<12} {layout.model_type.value:<6} {formula_preview(layout)}")
    print()

    print("⚠️  OPEN WARNINGS")
    for line in format_warnings(report.open_warnings):
        print(f"  {line}")
    for flag in report.warnings:
        print(f"  * {flag}")
    print()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    saved = []
    session = AnalysisSession(
        project_id="proj-framing",
        study_id="study-1",
        producer=example_producer,
        persistence=saved.append,
    )
    session.generate("03_build/survey.qsf", "01_prereg/prereg.md")
    print_report(session)

    # Save is refused until the low-confidence "group" mapping is chosen
    session.save()
    print(f"Status: {session.status}")

    session.accept_suggested("cond")
    session.override("group", "frame_group")
    session.save()
    print(f"Status: {session.status}")
    print_report(session)

    print(json.dumps(options_to_dict(session.options), indent=2))
