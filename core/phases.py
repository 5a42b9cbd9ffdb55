# =============================================================================
# core/phases.py  —  Phase State Machine
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Describes the diagnostic sequence as DATA (PHASE_TABLE) and decides, for a
#   given session, what the next step is.  One generic function, decide(),
#   reads the table; there is no per-phase branching anywhere else.
#
# THE TABLE:
#   Each phase maps to a PhaseSpec:
#     - response_key : collected_info key it waits for (interactive phases only)
#     - kind         : the Step kind produced when the phase is entered
#     - next_phase   : where the machine goes after this phase
#     - output_field : Session attribute filled with the phase's content
#
# decide() NEVER mutates the session.  It returns a NextStep describing the
# transition, and the auto-advance controller (core/advance.py) applies it.
# =============================================================================

from dataclasses import dataclass
from typing import Mapping, Optional

from core import guidance
from core.models import Phase, Session, StepKind


@dataclass(frozen=True)
class PhaseSpec:
    kind: StepKind
    next_phase: Optional[Phase]
    response_key: Optional[str] = None
    output_field: Optional[str] = None

    @property
    def interactive(self) -> bool:
        return self.response_key is not None


PHASE_TABLE: dict[Phase, PhaseSpec] = {
    Phase.CHIEF_COMPLAINT: PhaseSpec(
        StepKind.QUESTION, Phase.SYMPTOM_ANALYSIS, response_key=guidance.CHIEF_COMPLAINT_KEY,
    ),
    Phase.SYMPTOM_ANALYSIS: PhaseSpec(
        StepKind.QUESTION, Phase.MEDICAL_HISTORY, response_key=guidance.SYMPTOM_DETAILS_KEY,
    ),
    Phase.MEDICAL_HISTORY: PhaseSpec(
        StepKind.QUESTION, Phase.PHYSICAL_EXAMINATION, response_key=guidance.MEDICAL_HISTORY_KEY,
    ),
    Phase.PHYSICAL_EXAMINATION: PhaseSpec(
        StepKind.QUESTION, Phase.DIFFERENTIAL_DIAGNOSIS, response_key=guidance.RECENT_TESTS_KEY,
    ),
    Phase.DIFFERENTIAL_DIAGNOSIS: PhaseSpec(StepKind.ANALYSIS, Phase.INVESTIGATION_PLANNING),
    Phase.INVESTIGATION_PLANNING: PhaseSpec(StepKind.ANALYSIS, Phase.DIAGNOSIS_FORMULATION),
    Phase.DIAGNOSIS_FORMULATION: PhaseSpec(
        StepKind.ANALYSIS, Phase.TREATMENT_PLANNING, output_field="final_diagnosis",
    ),
    Phase.TREATMENT_PLANNING: PhaseSpec(
        StepKind.ANALYSIS, Phase.PATIENT_EDUCATION, output_field="treatment_plan",
    ),
    Phase.PATIENT_EDUCATION: PhaseSpec(StepKind.ANALYSIS, Phase.COMPLETED),
    Phase.COMPLETED: PhaseSpec(StepKind.COMPLETION, None, output_field="completion_analysis"),
}


@dataclass(frozen=True)
class NextStep:
    """A transition decided by the state machine, not yet applied."""

    phase: Phase                 # phase the session will be in after applying
    kind: StepKind
    content: str
    guidance: str
    wait_for_input: bool
    reasoning: str
    reprompt: bool = False       # True: same phase asked again, no new Step

    @property
    def completes(self) -> bool:
        return self.phase is Phase.COMPLETED


def is_interactive(phase: Phase) -> bool:
    return PHASE_TABLE[phase].interactive


def response_key(phase: Phase) -> Optional[str]:
    return PHASE_TABLE[phase].response_key


def is_satisfied(phase: Phase, collected_info: Mapping[str, str], min_length: int) -> bool:
    """Completeness predicate: the phase's captured answer is long enough."""
    key = PHASE_TABLE[phase].response_key
    if key is None:
        return True
    answer = collected_info.get(key)
    return answer is not None and len(answer.strip()) >= min_length


def open_phase(phase: Phase, collected_info: Mapping[str, str], reasoning: str = "") -> NextStep:
    """Build the step produced by entering `phase`."""
    spec = PHASE_TABLE[phase]
    return NextStep(
        phase=phase,
        kind=spec.kind,
        content=guidance.generate(phase, collected_info),
        guidance=guidance.phase_guidance(phase),
        wait_for_input=spec.interactive,
        reasoning=reasoning,
    )


def decide(session: Session, min_length: int) -> Optional[NextStep]:
    """Decide the next step for `session`, or None once COMPLETED.

    Interactive phase, answer long enough  -> enter the next phase.
    Interactive phase, answer too short    -> ask the same question again.
    Analytical phase                       -> enter the next phase unconditionally.
    """
    current = session.current_phase
    spec = PHASE_TABLE[current]
    if spec.next_phase is None:
        return None

    if spec.interactive and not is_satisfied(current, session.collected_info, min_length):
        return NextStep(
            phase=current,
            kind=spec.kind,
            content=guidance.generate(current, session.collected_info, {"reprompt": True}),
            guidance=guidance.phase_guidance(current),
            wait_for_input=True,
            reasoning=(
                f"{guidance.phase_title(current)}信息不足（少于{min_length}个字符），"
                "重新提问，停留在当前阶段"
            ),
            reprompt=True,
        )

    target = spec.next_phase
    if spec.interactive:
        why = f"{guidance.phase_title(current)}信息已完整"
    else:
        why = f"{guidance.phase_title(current)}已完成"
    return open_phase(
        target,
        session.collected_info,
        reasoning=f"{why}，进入{guidance.phase_title(target)}",
    )
