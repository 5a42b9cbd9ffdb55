"""State machine and content policy tests (no storage involved)."""

import pytest

from core import guidance
from core.models import PHASE_ORDER, Phase, Session, StepKind
from core.phases import PHASE_TABLE, decide, is_interactive, is_satisfied, open_phase

INTERACTIVE = PHASE_ORDER[:4]
ANALYTICAL = PHASE_ORDER[4:9]


def _session(phase: Phase, **info) -> Session:
    return Session(id="medical_test", problem="头痛三天", current_phase=phase, collected_info=dict(info))


def test_phase_order_is_fixed():
    assert PHASE_ORDER[0] is Phase.CHIEF_COMPLAINT
    assert PHASE_ORDER[-1] is Phase.COMPLETED
    assert [p.order for p in PHASE_ORDER] == list(range(len(PHASE_ORDER)))


def test_table_chains_every_phase_forward():
    for phase in PHASE_ORDER[:-1]:
        assert PHASE_TABLE[phase].next_phase.order == phase.order + 1
    assert PHASE_TABLE[Phase.COMPLETED].next_phase is None


def test_only_first_four_phases_are_interactive():
    assert [p for p in PHASE_ORDER if is_interactive(p)] == INTERACTIVE


@pytest.mark.parametrize("answer,expected", [
    (None, False),
    ("", False),
    ("头痛", False),
    ("   头痛   ", False),
    ("头痛三天了", True),
])
def test_completeness_predicate(answer, expected):
    info = {} if answer is None else {guidance.CHIEF_COMPLAINT_KEY: answer}
    assert is_satisfied(Phase.CHIEF_COMPLAINT, info, min_length=5) is expected


def test_decide_reprompts_when_answer_missing():
    session = _session(Phase.CHIEF_COMPLAINT)
    step = decide(session, min_length=5)
    assert step.reprompt
    assert step.phase is Phase.CHIEF_COMPLAINT
    assert step.wait_for_input
    assert step.kind is StepKind.QUESTION


def test_decide_reprompts_when_answer_too_short():
    session = _session(Phase.SYMPTOM_ANALYSIS, symptom_details="胀痛")
    step = decide(session, min_length=5)
    assert step.reprompt
    assert step.phase is Phase.SYMPTOM_ANALYSIS
    assert step.content.startswith("您的回答有些简短")


def test_decide_advances_to_next_question():
    session = _session(Phase.CHIEF_COMPLAINT, chief_complaint="头痛三天了，太阳穴胀")
    step = decide(session, min_length=5)
    assert not step.reprompt
    assert step.phase is Phase.SYMPTOM_ANALYSIS
    assert step.kind is StepKind.QUESTION
    assert step.wait_for_input
    assert "进入症状详询" in step.reasoning


def test_decide_enters_analysis_after_last_interactive_phase():
    session = _session(Phase.PHYSICAL_EXAMINATION, recent_tests="没有做过其他检查")
    step = decide(session, min_length=5)
    assert step.phase is Phase.DIFFERENTIAL_DIAGNOSIS
    assert step.kind is StepKind.ANALYSIS
    assert not step.wait_for_input


@pytest.mark.parametrize("phase", ANALYTICAL[:-1])
def test_analytical_phases_advance_unconditionally(phase):
    step = decide(_session(phase), min_length=5)
    assert step.phase is PHASE_TABLE[phase].next_phase
    assert step.kind is StepKind.ANALYSIS
    assert not step.wait_for_input


def test_patient_education_completes():
    step = decide(_session(Phase.PATIENT_EDUCATION), min_length=5)
    assert step.phase is Phase.COMPLETED
    assert step.kind is StepKind.COMPLETION
    assert step.completes
    assert not step.wait_for_input


def test_completed_is_absorbing():
    assert decide(_session(Phase.COMPLETED), min_length=5) is None


def test_decide_does_not_mutate_session():
    session = _session(Phase.PHYSICAL_EXAMINATION, recent_tests="血压正常，没做别的")
    before = session.to_dict()
    decide(session, min_length=5)
    assert session.to_dict() == before


def test_open_phase_for_first_question():
    step = open_phase(Phase.CHIEF_COMPLAINT, {})
    assert step.wait_for_input
    assert step.content == guidance.generate(Phase.CHIEF_COMPLAINT, {})
    assert step.guidance.startswith("阶段 1/9")


def test_generate_is_deterministic_and_pure():
    info = {
        guidance.CHIEF_COMPLAINT_KEY: "头痛三天了",
        guidance.SYMPTOM_DETAILS_KEY: "胀痛，下午加重",
    }
    snapshot = dict(info)
    first = guidance.generate(Phase.DIAGNOSIS_FORMULATION, info)
    second = guidance.generate(Phase.DIAGNOSIS_FORMULATION, info)
    assert first == second
    assert "头痛三天了" in first
    assert info == snapshot


def test_investigation_plan_mentions_missing_tests():
    text = guidance.generate(Phase.INVESTIGATION_PLANNING, {})
    assert "缺少客观检查资料" in text


def test_overview_lists_nine_working_phases():
    assert len(guidance.overview().splitlines()) == 9
