"""
Mapping session: the stateful shell around the pure engine.

One AnalysisSession owns the spec, the resolution selections, the manual
picks and the template choice for a single analysis. It is the only thing
that talks to the external collaborators:

    producer(request: dict) -> dict
        Generates the raw spec from a QSF and a pre-registration.

    persistence(payload: dict) -> None
        Writes the resolved spec. Raising signals failure.

State machine:

    idle -> generating -> ready -> resolving -> blocked | resolved
    resolved -> saving -> saved | resolved (on failure)

Illegal moves raise InvalidTransition. Collaborator failures never raise
out of an action: they are recorded in `error` / `status` and the
selections made so far are kept.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from prereg_mapper.config import settings
from prereg_mapper.confidence import MappingRow, mapping_rows
from prereg_mapper.inventory import spec_inventory
from prereg_mapper.layouts import derive_layouts
from prereg_mapper.model import AnalysisSpec, ManualSelection, ModelLayout, TemplateChoice
from prereg_mapper.mutator import apply_mappings, carry_forward_mappings
from prereg_mapper.options import WizardOptions, to_options
from prereg_mapper.report import ResolutionReport, summarize_resolution
from prereg_mapper.resolution import (
    ResolutionStore,
    default_template_choice,
    seed_manual_selections,
)
from prereg_mapper.serialization import spec_from_dict, spec_to_dict

logger = logging.getLogger(__name__)


Producer = Callable[[Dict[str, Any]], Dict[str, Any]]
Persistence = Callable[[Dict[str, Any]], None]


class SessionError(Exception):
    """Base class for failures reported by a session action."""
    pass


class ProducerFailure(SessionError):
    """The spec producer call failed or returned something unusable."""
    pass


class ValidationBlocked(SessionError):
    """Low-confidence mappings are still unresolved."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(
            f"Select mappings for low-confidence items before continuing: {', '.join(self.missing)}"
        )


class SaveFailure(SessionError):
    """Persisting or publishing the spec failed."""
    pass


class InvalidTransition(RuntimeError):
    """An action was attempted in a state that does not allow it."""
    pass


def format_error(err: BaseException) -> str:
    message = str(err)
    return message if message else "Unknown error"


class SessionState(Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READY = "ready"
    RESOLVING = "resolving"
    BLOCKED = "blocked"
    RESOLVED = "resolved"
    SAVING = "saving"
    SAVED = "saved"


_TRANSITIONS = {
    SessionState.IDLE: {SessionState.GENERATING},
    SessionState.GENERATING: {
        SessionState.IDLE,
        SessionState.READY,
        SessionState.BLOCKED,
        SessionState.RESOLVED,
        SessionState.SAVED,
    },
    SessionState.READY: {SessionState.GENERATING, SessionState.RESOLVING},
    SessionState.RESOLVING: {SessionState.BLOCKED, SessionState.RESOLVED},
    SessionState.BLOCKED: {SessionState.GENERATING, SessionState.RESOLVING},
    SessionState.RESOLVED: {SessionState.GENERATING, SessionState.RESOLVING, SessionState.SAVING},
    SessionState.SAVING: {SessionState.SAVED, SessionState.RESOLVED},
    SessionState.SAVED: {SessionState.GENERATING, SessionState.RESOLVING},
}


class SpecPublisher:
    """
    Publishes the latest saved spec to whoever else in the host needs it.

    Stands in for a process-wide "current analysis spec": the session
    pushes into it, consumers read `current` / `warnings` or subscribe.
    """

    def __init__(self):
        self.current: Optional[AnalysisSpec] = None
        self.warnings: List = []
        self._subscribers: List[Callable[[AnalysisSpec], None]] = []

    def subscribe(self, callback: Callable[[AnalysisSpec], None]) -> None:
        self._subscribers.append(callback)

    def publish(self, spec: AnalysisSpec) -> None:
        """Make `spec` current. If any subscriber raises, the previous spec stays current."""
        previous, previous_warnings = self.current, self.warnings
        self.current = spec
        self.warnings = list(spec.warnings)
        try:
            for callback in self._subscribers:
                callback(spec)
        except Exception:
            self.current, self.warnings = previous, previous_warnings
            raise


class AnalysisSession:
    """Resolution workflow for one analysis of one study."""

    def __init__(
        self,
        project_id: str,
        study_id: str,
        producer: Producer,
        persistence: Persistence,
        analysis_id: Optional[str] = None,
        publisher: Optional[SpecPublisher] = None,
    ):
        self.project_id = project_id
        self.study_id = study_id
        self.analysis_id = analysis_id or settings.default_analysis_id
        self.producer = producer
        self.persistence = persistence
        self.publisher = publisher or SpecPublisher()

        self.state = SessionState.IDLE
        self.spec: Optional[AnalysisSpec] = None
        self.store = ResolutionStore()
        self.manual = ManualSelection()
        self.template_choice = TemplateChoice.AUTO
        self.status = ""
        self.error: Optional[SessionError] = None

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _move(self, target: SessionState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"Cannot go from {self.state.value} to {target.value}")
        logger.debug("session %s: %s -> %s", self.analysis_id, self.state.value, target.value)
        self.state = target

    def _require_spec(self) -> None:
        if self.spec is None or self.state in (SessionState.IDLE, SessionState.GENERATING):
            raise InvalidTransition(f"No spec to resolve in state {self.state.value}")

    def _settle(self) -> None:
        self._move(SessionState.RESOLVING)
        if self.unresolved_low:
            self._move(SessionState.BLOCKED)
        else:
            self._move(SessionState.RESOLVED)

    # ------------------------------------------------------------------
    # Derived views (recomputed on every access)
    # ------------------------------------------------------------------

    @property
    def selections(self) -> Dict[str, str]:
        return self.store.selections

    @property
    def rows(self) -> List[MappingRow]:
        return mapping_rows(self.spec)

    @property
    def inventory(self) -> List[str]:
        return spec_inventory(self.spec)

    @property
    def unresolved_low(self) -> List[MappingRow]:
        return self.store.unresolved_low(self.rows)

    @property
    def layouts(self) -> List[ModelLayout]:
        if self.spec is None:
            return []
        return derive_layouts(self.spec, self.selections, self.manual, self.template_choice)

    @property
    def options(self) -> Optional[WizardOptions]:
        if self.spec is None:
            return None
        return to_options(
            self.spec,
            self.analysis_id,
            self.selections,
            self.manual.dv,
            self.manual.iv,
            self.manual.controls,
            self.template_choice,
        )

    @property
    def report(self) -> Optional[ResolutionReport]:
        if self.spec is None:
            return None
        return summarize_resolution(self.spec, self.selections)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def generate(self, qsf_path: str, prereg_path: str, saved: Optional[AnalysisSpec] = None) -> bool:
        """
        Ask the producer for a new spec and seed the resolution state from it.

        Args:
            qsf_path: Survey definition to map against
            prereg_path: Pre-registration document
            saved: Previously saved spec whose resolutions should carry over

        Returns:
            True once the new spec is ingested and published. On failure the
            previous spec, selections and state are left as they were and
            `error` holds a ProducerFailure.
        """
        previous = self.state
        self._move(SessionState.GENERATING)
        self.status = "Generating mapping + model suggestions..."
        request = {
            "projectId": self.project_id,
            "studyId": self.study_id,
            "analysisId": self.analysis_id,
            "qsfPath": qsf_path,
            "preregPath": prereg_path,
            "templateSet": settings.template_set,
            "styleProfile": settings.style_profile,
        }

        try:
            spec = spec_from_dict(self.producer(request))
            if saved is not None:
                spec = carry_forward_mappings(spec, saved)
            self.publisher.publish(spec)
        except Exception as e:
            self.error = ProducerFailure(format_error(e))
            self.status = f"Error: {self.error}"
            logger.error("Spec generation failed for %s: %s", self.analysis_id, self.error)
            self._move(previous)
            return False

        self.spec = spec
        self.store.auto_seed(mapping_rows(spec))
        self.manual = seed_manual_selections(spec, self.selections)
        self.template_choice = default_template_choice(spec)
        self.error = None
        self._move(SessionState.READY)
        self.status = "Review mappings and plan, then continue to model builder."
        logger.info(
            "Generated spec for %s: %d mappings, %d auto-selected, %d extracted models",
            self.analysis_id,
            len(spec.variable_mappings),
            len(self.store),
            len(spec.models.main),
        )
        return True

    def override(self, prereg_var: str, key: Optional[str]) -> None:
        """Choose a column for one variable; a falsy key clears the choice."""
        self._require_spec()
        self.store.override(prereg_var, key)
        self._settle()

    def clear_selection(self, prereg_var: str) -> None:
        self.override(prereg_var, None)

    def accept_suggested(self, prereg_var: str) -> bool:
        """Accept the top candidate for one variable."""
        self._require_spec()
        for row in self.rows:
            if row.prereg_var == prereg_var:
                accepted = self.store.accept_suggested(row)
                self._settle()
                return accepted
        return False

    def set_manual_selection(
        self,
        dv: Optional[Sequence[str]] = None,
        iv: Optional[Sequence[str]] = None,
        controls: Optional[Sequence[str]] = None,
    ) -> None:
        """Replace whichever of the manual DV / IV / control picks are given."""
        self._require_spec()
        self.manual = ManualSelection(
            dv=list(self.manual.dv if dv is None else dv),
            iv=list(self.manual.iv if iv is None else iv),
            controls=list(self.manual.controls if controls is None else controls),
        )
        self._settle()

    def set_template_choice(self, choice: TemplateChoice) -> None:
        self._require_spec()
        self.template_choice = TemplateChoice(choice)
        self._settle()

    def save(self) -> bool:
        """
        Persist the resolved spec and publish it.

        Refused, without touching persistence, while any low-confidence
        mapping lacks a selection.

        Returns:
            True once both the write and the publish succeeded.
        """
        self._require_spec()

        if self.state != SessionState.RESOLVED:
            self._settle()

        missing = [row.prereg_var for row in self.unresolved_low]
        if missing:
            self.error = ValidationBlocked(missing)
            self.status = str(self.error)
            logger.info("Save blocked for %s: %s", self.analysis_id, ", ".join(missing))
            return False

        self._move(SessionState.SAVING)
        updated = apply_mappings(self.spec, self.selections)
        try:
            self.persistence({
                "projectId": self.project_id,
                "studyId": self.study_id,
                "analysisId": self.analysis_id,
                "spec": spec_to_dict(updated),
            })
            self.publisher.publish(updated)
        except Exception as e:
            self.error = SaveFailure(format_error(e))
            self.status = f"Error: {self.error}"
            logger.error("Saving spec for %s failed: %s", self.analysis_id, self.error)
            self._move(SessionState.RESOLVED)
            return False

        self.spec = updated
        self.error = None
        self._move(SessionState.SAVED)
        self.status = "Saved spec. Opening model builder..."
        logger.info("Saved spec for %s", self.analysis_id)
        return True
