# =============================================================================
# core/dialogue.py  —  Dialogue Audit Log
# =============================================================================
#
# An append-only, per-session record of every turn: session creation, each
# question, each captured answer, each transition decision, each generated
# analysis and the completion event.
#
# The log is history only.  The state machine and the auto-advance loop never
# read it; it exists for the inspection tool and for later replay.
# =============================================================================

from collections import Counter
from typing import Any

from core.models import DialogueRecord, Session, Speaker


def append_record(session: Session, speaker: Speaker, content: str, **metadata: Any) -> DialogueRecord:
    """Append one record, stamped with the session's current phase."""
    record = DialogueRecord(
        speaker=speaker,
        content=content,
        phase=session.current_phase,
        metadata=metadata,
    )
    session.dialogue_history.append(record)
    return record


def speaker_counts(session: Session) -> dict[str, int]:
    """Number of records per speaker, every speaker listed (zero if silent)."""
    counts = Counter(record.speaker for record in session.dialogue_history)
    return {speaker.value: counts.get(speaker, 0) for speaker in Speaker}
