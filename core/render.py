# =============================================================================
# core/render.py  —  Text Rendering for the Tool Responses
# =============================================================================
#
# The tool contract returns ONE text payload.  This module owns its layout:
#
#   header  ->  current phase / progress  ->  WAITING block (if waiting)
#   ->  every step so far  ->  PENDING block or completion summary
#
# THE WAITING BLOCK IS A PROTOCOL CONTRACT.
#   The calling agent looks for WAITING_FOR_USER_INPUT and the STOP line to
#   halt generation and hand the question to the real patient.  Both strings
#   are emitted verbatim whenever session.waiting_for_input is true.
# =============================================================================

from datetime import datetime
from typing import Iterable

from core.dialogue import speaker_counts
from core.guidance import overview, phase_title
from core.models import Session, Step, StepKind

WAITING_MARKER = "WAITING_FOR_USER_INPUT"
STOP_LINE = "--- STOP GENERATION - WAITING FOR REAL USER INPUT ---"
PENDING_MARKER = "PENDING_AUTO_ADVANCE"
ERROR_PREFIX = "❌"

_SPEAKER_LABELS = {
    "system": "⚙️ 系统",
    "doctor": "👨‍⚕️ 医生",
    "patient": "👤 患者",
    "ai_analysis": "🩺 AI分析",
    "ai_reasoning": "🧠 AI推理",
}


def _step_status(step: Step, session: Session) -> str:
    if step is session.latest_step and not session.completed:
        return "🔄 进行中"
    return "✅ 已完成"


def render_step(step: Step, session: Session) -> str:
    lines = [f"**步骤 {step.step}** {_step_status(step, session)} · {step.guidance}"]
    if step.kind is StepKind.QUESTION:
        lines.append(f"👨‍⚕️ 医生: {step.content}")
    elif step.kind is StepKind.ANALYSIS:
        lines.append(f"🩺 医生分析: {step.content}")
    else:
        lines.append(f"🎉 {step.content}")
    if step.patient_response:
        lines.append(f"👤 患者: {step.patient_response}")
    if step.doctor_analysis:
        lines.append(f"🔍 医生诊断分析: {step.doctor_analysis}")
    lines.append("---")
    return "\n".join(lines)


def render_session(session: Session) -> str:
    """Render the full session as the tool's text payload."""
    out = [
        "🏥 **医疗诊断过程**",
        f"📋 主诉: {session.problem}",
        f"🆔 会话ID: {session.id}",
        f"📍 当前阶段: {phase_title(session.current_phase)} ({session.current_phase.value})",
        f"🎯 进度: {len(session.consultation_steps)}/{session.total_phases}",
        "",
    ]

    if session.waiting_for_input:
        out += [
            f"🔴 **状态: {WAITING_MARKER}**",
            f"👨‍⚕️ 医生提问: {session.current_question}",
            "",
            "⚠️ **重要提示**: 这是一个真实的医患对话，需要用户（患者）真实回答。AI助手不应该代替患者回答问题。",
            "💡 请等待用户回答上述医生问题。",
            "",
            STOP_LINE,
            "",
        ]

    out += [render_step(step, session) for step in session.consultation_steps]

    if session.completed:
        out += [
            "",
            "🎉 **诊断过程完成**",
            f"🩺 诊断意见: {session.final_diagnosis or '（未形成）'}",
            f"💊 治疗方案: {session.treatment_plan or '（未制定）'}",
            f"📝 诊断总结: {session.summary or session.completion_analysis or '已完成完整的医疗诊断流程'}",
        ]
    elif not session.waiting_for_input:
        out += [
            "",
            f"⏩ **状态: {PENDING_MARKER}**",
            f"当前停留在「{phase_title(session.current_phase)}」，后续分析尚未完成。"
            "请再次调用 action='continue'（无需 thought）以继续自动推进。",
        ]
    return "\n".join(out)


def render_created(session: Session) -> str:
    return (
        "🏥 **医疗诊断会话已创建**\n\n"
        f"📋 患者主诉: {session.problem}\n"
        f"🆔 会话ID: {session.id}\n"
        "👨‍⚕️ 开始诊断流程...\n\n"
        f"🧭 **诊断步骤:**\n{overview()}\n\n"
        f"{render_session(session)}"
    )


def render_error(message: str) -> str:
    return f"{ERROR_PREFIX} {message}"


def _format_time(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return timestamp


def render_listing(sessions: Iterable[Session]) -> str:
    sessions = list(sessions)
    if not sessions:
        return "📝 暂无活跃的医疗诊断会话"

    out = ["🏥 **医疗诊断会话列表**", ""]
    for session in sessions:
        status = "✅ 已完成" if session.completed else "🔄 进行中"
        waiting = " · 🔴 等待患者回答" if session.waiting_for_input else ""
        out.append(
            f"**{session.id}** {status} · 📊 {len(session.consultation_steps)}/{session.total_phases}"
            f" · 📍 {phase_title(session.current_phase)} ({session.current_phase.value}){waiting}"
            f" · 📋 {session.problem} · ⏰ {_format_time(session.created_at)}"
        )
    return "\n".join(out)


def render_dialogue(session: Session) -> str:
    counts = speaker_counts(session)
    out = [
        "🗂️ **对话审计记录**",
        f"🆔 会话ID: {session.id}",
        f"📋 主诉: {session.problem}",
        f"🧾 记录总数: {len(session.dialogue_history)}",
        "📊 按角色统计: " + ", ".join(f"{name}={count}" for name, count in counts.items()),
        "",
    ]
    for number, record in enumerate(session.dialogue_history, start=1):
        label = _SPEAKER_LABELS[record.speaker.value]
        out.append(
            f"{number}. [{_format_time(record.timestamp)}] [{record.phase.value}] {label}: {record.content}"
        )
    return "\n".join(out)
