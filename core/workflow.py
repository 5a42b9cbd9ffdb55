# =============================================================================
# core/workflow.py  —  The Consultation Workflow (single entry point)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Combines the store, the state machine, the auto-advance loop and the audit
#   log into the three actions the tool exposes:
#
#     start     create a session and ask the first question
#     continue  capture an answer (or poll) and auto-advance
#     complete  force the terminal state with a summary
#
#   plus two read-only views: the dialogue audit log and the session list.
#
# HOW A MUTATING CALL RUNS:
#   1. take the per-session lock          (serializes calls for the same id)
#   2. load a private copy from the store (cache, then disk)
#   3. mutate the copy
#   4. put it back                        (cache always; disk best-effort)
#
# ERROR BOUNDARY:
#   handle() is the ONLY place exceptions are turned into text.  Every
#   DiagnosisError becomes "❌ <message>"; anything unexpected is logged and
#   reported as an InternalFailure.  Nothing escapes to the MCP layer.
# =============================================================================

import copy
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from core.advance import AutoAdvanceController, record_step
from core.config import Settings
from core.dialogue import append_record
from core.errors import (
    DiagnosisError,
    InternalFailure,
    MissingRequiredField,
    SessionAlreadyCompleted,
    SessionNotFound,
)
from core.models import Phase, Session, Speaker
from core.phases import open_phase, response_key
from core.render import (
    render_created,
    render_dialogue,
    render_error,
    render_listing,
    render_session,
)
from core.store import SessionStore

logger = logging.getLogger(__name__)

ACTIONS = ("start", "continue", "complete")

DEFAULT_SUMMARY = "诊断过程已完成"


def generate_session_id() -> str:
    return f"medical_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


class DiagnosisWorkflow:
    """Façade over the consultation engine.  One instance per process."""

    def __init__(self, store: SessionStore, controller: AutoAdvanceController):
        self.store = store
        self.controller = controller
        # id -> [lock, holders]; an entry lives only while someone holds or waits on it
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, store: SessionStore, settings: Settings) -> "DiagnosisWorkflow":
        controller = AutoAdvanceController(
            max_iterations=settings.max_auto_advance,
            min_response_length=settings.min_response_length,
        )
        return cls(store, controller)

    # -------------------------------------------------------------------------
    # Locking and persistence
    # -------------------------------------------------------------------------
    @contextmanager
    def _session_lock(self, session_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(session_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[session_id]

    def _load(self, session_id: Optional[str]) -> Session:
        if not session_id:
            raise MissingRequiredField("sessionId", "继续或完成诊断时必须提供会话ID")
        return copy.deepcopy(self.store.get(session_id))

    def _save(self, session: Session) -> None:
        # A DurabilityWarning is logged by the store; the caller still gets the in-memory result.
        self.store.put(session)

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------
    def start(self, problem: Optional[str]) -> Session:
        problem = _clean(problem)
        if problem is None:
            raise MissingRequiredField("problem", "开始医疗诊断需要提供患者主诉或症状描述")

        session = Session(id=generate_session_id(), problem=problem)
        append_record(session, Speaker.SYSTEM, "医疗诊断会话已创建", event="created")
        append_record(session, Speaker.PATIENT, problem, event="initial_problem")
        record_step(session, open_phase(Phase.CHIEF_COMPLAINT, session.collected_info))

        with self._session_lock(session.id):
            self._save(session)
        logger.info("Created session %s", session.id)
        return session

    def continue_session(self, session_id: Optional[str], thought: Optional[str] = None) -> Session:
        thought = _clean(thought)
        with self._session_lock(session_id or ""):
            session = self._load(session_id)
            if session.completed:
                raise SessionAlreadyCompleted(session.id)

            if session.waiting_for_input:
                if thought is None:
                    return session
                self._capture_response(session, thought)
            elif thought is not None:
                self._attach_analysis(session, thought)

            outcome = self.controller.run(session)
            logger.info(
                "Session %s advanced %d step(s) in %d iteration(s), now %s (%s)",
                session.id, outcome.steps_added, outcome.iterations,
                session.current_phase.value, outcome.stopped_reason,
            )
            self._save(session)
            return session

    def complete(self, session_id: Optional[str], thought: Optional[str] = None) -> Session:
        summary = _clean(thought)
        with self._session_lock(session_id or ""):
            session = self._load(session_id)
            if session.completed:
                # Only the explicit completion summary may change now.
                if summary is not None:
                    session.summary = summary
                    append_record(session, Speaker.SYSTEM, summary, event="summary_updated")
                    self._save(session)
                return session

            append_record(
                session, Speaker.AI_REASONING,
                f"收到结束指令，从{session.current_phase.value}直接结束诊断流程",
                from_phase=session.current_phase.value, to_phase=Phase.COMPLETED.value, forced=True,
            )
            record_step(session, open_phase(Phase.COMPLETED, session.collected_info))
            session.summary = summary or DEFAULT_SUMMARY
            self._save(session)
            logger.info("Session %s completed on request", session.id)
            return session

    def _capture_response(self, session: Session, thought: str) -> None:
        key = response_key(session.current_phase)
        if key is not None:
            session.collected_info[key] = thought
        session.latest_step.patient_response = thought
        append_record(session, Speaker.PATIENT, thought, step=session.latest_step.step, key=key)

    def _attach_analysis(self, session: Session, thought: str) -> None:
        session.latest_step.doctor_analysis = thought
        append_record(session, Speaker.DOCTOR, thought, step=session.latest_step.step, supplementary=True)

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------
    def dialogue(self, session_id: Optional[str]) -> Session:
        return self._load(session_id)

    def sessions(self) -> list[Session]:
        return self.store.list()

    # -------------------------------------------------------------------------
    # Tool boundary
    # -------------------------------------------------------------------------
    def handle(
        self,
        action: str = "continue",
        problem: Optional[str] = None,
        thought: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> str:
        """Run one tool invocation and return its text payload.  Never raises."""
        try:
            if action == "start":
                return render_created(self.start(problem))
            if action == "continue":
                return render_session(self.continue_session(session_id, thought))
            if action == "complete":
                return render_session(self.complete(session_id, thought))
            raise MissingRequiredField("action", f"必须是 {', '.join(ACTIONS)} 之一，收到 {action!r}")
        except SessionNotFound as e:
            return render_error(f"{e}。请先使用 action='start' 创建新的诊断会话")
        except SessionAlreadyCompleted as e:
            return render_error(f"{e}。可以使用 action='start' 开始新的诊断会话")
        except DiagnosisError as e:
            return render_error(str(e))
        except Exception as e:
            logger.exception("Unexpected failure handling action=%s session=%s", action, session_id)
            return render_error(str(InternalFailure(str(e))))

    def handle_dialogue(self, session_id: Optional[str]) -> str:
        try:
            return render_dialogue(self.dialogue(session_id))
        except DiagnosisError as e:
            return render_error(str(e))
        except Exception as e:
            logger.exception("Unexpected failure reading dialogue for session=%s", session_id)
            return render_error(str(InternalFailure(str(e))))

    def handle_listing(self) -> str:
        try:
            return render_listing(self.sessions())
        except Exception as e:
            logger.exception("Unexpected failure listing sessions")
            return render_error(str(InternalFailure(str(e))))
