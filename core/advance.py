# =============================================================================
# core/advance.py  —  Auto-Advance Controller
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   After the caller supplies an answer (or polls while nothing is pending),
#   keep asking the state machine for the next step and apply it, so the
#   analytical phases (differential diagnosis -> investigation plan ->
#   diagnosis -> treatment -> education) run back-to-back in ONE tool call.
#
# THE LOOP STOPS WHEN:
#   - the step just applied waits for the patient       -> "waiting"
#   - the session reached COMPLETED                     -> "completed"
#   - decide() has nothing left to do                   -> "exhausted"
#   - max_iterations steps were applied without stopping -> "cap_reached"
#
#   On "cap_reached" a system record flags the safeguard and the session stays
#   in whatever phase it reached.  The next continue/poll resumes from there.
# =============================================================================

import logging
from dataclasses import dataclass

from core.dialogue import append_record
from core.models import Phase, Session, Speaker, Step, StepKind, utc_now
from core.phases import PHASE_TABLE, NextStep, decide

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10

WAITING = "waiting"
COMPLETED = "completed"
EXHAUSTED = "exhausted"
CAP_REACHED = "cap_reached"


@dataclass
class AdvanceOutcome:
    steps_added: int
    iterations: int
    stopped_reason: str


def record_step(session: Session, next_step: NextStep) -> Step:
    """Apply a NextStep that enters a new phase: append the Step and its records."""
    previous = session.current_phase
    session.current_phase = next_step.phase
    step = Step(
        step=len(session.consultation_steps) + 1,
        phase=next_step.phase,
        kind=next_step.kind,
        content=next_step.content,
        guidance=next_step.guidance,
        reasoning=next_step.reasoning or None,
    )
    session.consultation_steps.append(step)

    if next_step.reasoning:
        append_record(
            session, Speaker.AI_REASONING, next_step.reasoning,
            from_phase=previous.value, to_phase=next_step.phase.value,
        )
    if next_step.kind is StepKind.QUESTION:
        append_record(session, Speaker.DOCTOR, next_step.content, step=step.step, kind=step.kind.value)
    elif next_step.kind is StepKind.ANALYSIS:
        append_record(session, Speaker.AI_ANALYSIS, next_step.content, step=step.step, kind=step.kind.value)
    else:
        append_record(session, Speaker.SYSTEM, next_step.content, step=step.step, event="completed")

    output_field = PHASE_TABLE[next_step.phase].output_field
    if output_field and getattr(session, output_field) is None:
        setattr(session, output_field, next_step.content)

    _sync_pending(session, next_step)
    return step


def _apply_reprompt(session: Session, next_step: NextStep) -> None:
    step = session.latest_step
    step.content = next_step.content
    step.guidance = next_step.guidance
    step.reasoning = next_step.reasoning
    append_record(session, Speaker.AI_REASONING, next_step.reasoning, reprompt=True)
    append_record(session, Speaker.DOCTOR, next_step.content, step=step.step, reprompt=True)
    _sync_pending(session, next_step)


def _sync_pending(session: Session, next_step: NextStep) -> None:
    session.waiting_for_input = next_step.wait_for_input
    session.current_question = next_step.content
    session.current_guidance = next_step.guidance
    if next_step.completes:
        session.completed = True
        if session.completed_at is None:
            session.completed_at = utc_now()


class AutoAdvanceController:
    """Drives decide() in a counted loop until caller input is needed."""

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS, min_response_length: int = 5):
        self.max_iterations = max_iterations
        self.min_response_length = min_response_length

    def run(self, session: Session) -> AdvanceOutcome:
        steps_added = 0
        for iteration in range(1, self.max_iterations + 1):
            next_step = decide(session, self.min_response_length)
            if next_step is None:
                return AdvanceOutcome(steps_added, iteration, EXHAUSTED)

            if next_step.reprompt:
                _apply_reprompt(session, next_step)
            else:
                record_step(session, next_step)
                steps_added += 1

            if next_step.wait_for_input:
                return AdvanceOutcome(steps_added, iteration, WAITING)
            if session.current_phase is Phase.COMPLETED:
                return AdvanceOutcome(steps_added, iteration, COMPLETED)

        logger.warning(
            "Auto-advance cap (%d) reached for session %s at phase %s",
            self.max_iterations, session.id, session.current_phase.value,
        )
        append_record(
            session, Speaker.SYSTEM,
            f"自动推进已达到单次上限（{self.max_iterations}步），暂停在当前阶段，再次调用 continue 将继续。",
            safeguard=True, max_iterations=self.max_iterations,
        )
        return AdvanceOutcome(steps_added, self.max_iterations, CAP_REACHED)
