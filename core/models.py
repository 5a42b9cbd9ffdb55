# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the consultation engine)
# =============================================================================
#
# These dataclasses define the shape of a consultation as it moves through
# the engine and as it sits on disk.  They carry almost no behavior: the only
# methods here convert a Session to and from a plain dict so the store can
# write it as JSON.
#
# OWNERSHIP:
#   A Session owns its consultation_steps and dialogue_history lists.  Nothing
#   else keeps references to them; every mutation happens on the Session
#   loaded for the current request and is written back through the store.
# =============================================================================

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def utc_now() -> str:
    """ISO-8601 timestamp in UTC, the format every record uses."""
    return datetime.now(timezone.utc).isoformat()


# -----------------------------------------------------------------------------
# Phase — the fixed, totally ordered diagnostic sequence
# -----------------------------------------------------------------------------
# The first four phases are interactive (they wait for the patient).  The
# remaining ones are analytical and run back-to-back.  COMPLETED is terminal.
# -----------------------------------------------------------------------------
class Phase(str, Enum):
    CHIEF_COMPLAINT = "CHIEF_COMPLAINT"
    SYMPTOM_ANALYSIS = "SYMPTOM_ANALYSIS"
    MEDICAL_HISTORY = "MEDICAL_HISTORY"
    PHYSICAL_EXAMINATION = "PHYSICAL_EXAMINATION"
    DIFFERENTIAL_DIAGNOSIS = "DIFFERENTIAL_DIAGNOSIS"
    INVESTIGATION_PLANNING = "INVESTIGATION_PLANNING"
    DIAGNOSIS_FORMULATION = "DIAGNOSIS_FORMULATION"
    TREATMENT_PLANNING = "TREATMENT_PLANNING"
    PATIENT_EDUCATION = "PATIENT_EDUCATION"
    COMPLETED = "COMPLETED"

    @property
    def order(self) -> int:
        return PHASE_ORDER.index(self)


PHASE_ORDER: list[Phase] = list(Phase)


class StepKind(str, Enum):
    QUESTION = "question"
    ANALYSIS = "analysis"
    COMPLETION = "completion"


class Speaker(str, Enum):
    SYSTEM = "system"
    DOCTOR = "doctor"
    PATIENT = "patient"
    AI_ANALYSIS = "ai_analysis"
    AI_REASONING = "ai_reasoning"


# -----------------------------------------------------------------------------
# Step — one visit to a phase
# -----------------------------------------------------------------------------
@dataclass
class Step:
    """One phase visit, as shown to the caller in the rendered session."""

    step: int                              # 1-based, equals position in consultation_steps
    phase: Phase
    kind: StepKind
    content: str                           # question text or generated analysis
    guidance: str = ""                     # short annotation, e.g. "阶段 2/9 · 症状详询"
    timestamp: str = field(default_factory=utc_now)
    patient_response: Optional[str] = None
    doctor_analysis: Optional[str] = None  # supplementary text attached after the fact
    reasoning: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(
            step=data["step"],
            phase=Phase(data["phase"]),
            kind=StepKind(data["kind"]),
            content=data["content"],
            guidance=data.get("guidance", ""),
            timestamp=data["timestamp"],
            patient_response=data.get("patient_response"),
            doctor_analysis=data.get("doctor_analysis"),
            reasoning=data.get("reasoning"),
        )


# -----------------------------------------------------------------------------
# DialogueRecord — one turn in the audit log
# -----------------------------------------------------------------------------
@dataclass
class DialogueRecord:
    """A single logged turn.  Finer-grained than Step; never read by the engine."""

    speaker: Speaker
    content: str
    phase: Phase
    timestamp: str = field(default_factory=utc_now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DialogueRecord":
        return cls(
            speaker=Speaker(data["speaker"]),
            content=data["content"],
            phase=Phase(data["phase"]),
            timestamp=data["timestamp"],
            metadata=dict(data.get("metadata") or {}),
        )


# -----------------------------------------------------------------------------
# Session — one conversation instance
# -----------------------------------------------------------------------------
@dataclass
class Session:
    """A consultation, from the first complaint to the completion summary.

    Invariants kept by the engine (checked at every tool boundary):
      - current_phase only moves forward in PHASE_ORDER
      - waiting_for_input implies the last step is a question
      - completed implies current_phase is COMPLETED and completed_at is set
    """

    id: str
    problem: str
    current_phase: Phase = Phase.CHIEF_COMPLAINT
    collected_info: dict[str, str] = field(default_factory=dict)
    waiting_for_input: bool = False
    current_question: str = ""
    current_guidance: str = ""
    consultation_steps: list[Step] = field(default_factory=list)
    dialogue_history: list[DialogueRecord] = field(default_factory=list)
    completed: bool = False
    created_at: str = field(default_factory=utc_now)
    completed_at: Optional[str] = None

    # --- Written once by specific phases ---
    final_diagnosis: Optional[str] = None
    treatment_plan: Optional[str] = None
    completion_analysis: Optional[str] = None

    # --- Explicit completion metadata (the only field writable after completion) ---
    summary: Optional[str] = None

    total_phases: int = len(PHASE_ORDER)

    @property
    def latest_step(self) -> Optional[Step]:
        return self.consultation_steps[-1] if self.consultation_steps else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict (enums become their string values)."""
        return _plain(asdict(self))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        return cls(
            id=data["id"],
            problem=data["problem"],
            current_phase=Phase(data["current_phase"]),
            collected_info=dict(data.get("collected_info") or {}),
            waiting_for_input=bool(data.get("waiting_for_input", False)),
            current_question=data.get("current_question", ""),
            current_guidance=data.get("current_guidance", ""),
            consultation_steps=[Step.from_dict(s) for s in data.get("consultation_steps", [])],
            dialogue_history=[DialogueRecord.from_dict(r) for r in data.get("dialogue_history", [])],
            completed=bool(data.get("completed", False)),
            created_at=data["created_at"],
            completed_at=data.get("completed_at"),
            final_diagnosis=data.get("final_diagnosis"),
            treatment_plan=data.get("treatment_plan"),
            completion_analysis=data.get("completion_analysis"),
            summary=data.get("summary"),
            total_phases=data.get("total_phases", len(PHASE_ORDER)),
        )


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
