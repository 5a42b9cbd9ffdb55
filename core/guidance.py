# =============================================================================
# core/guidance.py  —  Content-Generation Policy (what the doctor says)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Supplies the text for every phase: the doctor's question for interactive
#   phases, and a synthesized analysis for analytical phases that quotes back
#   what the patient told us.
#
# CONTRACT:
#   generate(phase, collected_info, extra=None) -> str
#     - deterministic: same inputs, same text (no randomness, no clock)
#     - never mutates collected_info
#   The state machine only depends on this signature.  Swapping the wording
#   (or plugging in an LLM-backed policy) does not touch core/phases.py.
# =============================================================================

from typing import Any, Mapping, Optional

from core.models import PHASE_ORDER, Phase

# collected_info keys, one per interactive phase
CHIEF_COMPLAINT_KEY = "chief_complaint"
SYMPTOM_DETAILS_KEY = "symptom_details"
MEDICAL_HISTORY_KEY = "medical_history"
RECENT_TESTS_KEY = "recent_tests"

PHASE_TITLES: dict[Phase, str] = {
    Phase.CHIEF_COMPLAINT: "主诉采集",
    Phase.SYMPTOM_ANALYSIS: "症状详询",
    Phase.MEDICAL_HISTORY: "病史采集",
    Phase.PHYSICAL_EXAMINATION: "辅助检查",
    Phase.DIFFERENTIAL_DIAGNOSIS: "鉴别诊断",
    Phase.INVESTIGATION_PLANNING: "检查计划",
    Phase.DIAGNOSIS_FORMULATION: "诊断形成",
    Phase.TREATMENT_PLANNING: "治疗方案",
    Phase.PATIENT_EDUCATION: "健康宣教",
    Phase.COMPLETED: "诊断完成",
}

_PHASE_ICONS: dict[Phase, str] = {
    Phase.CHIEF_COMPLAINT: "👨‍⚕️",
    Phase.SYMPTOM_ANALYSIS: "🗣️",
    Phase.MEDICAL_HISTORY: "📝",
    Phase.PHYSICAL_EXAMINATION: "🔍",
    Phase.DIFFERENTIAL_DIAGNOSIS: "🤔",
    Phase.INVESTIGATION_PLANNING: "🧪",
    Phase.DIAGNOSIS_FORMULATION: "🩺",
    Phase.TREATMENT_PLANNING: "💊",
    Phase.PATIENT_EDUCATION: "💬",
}

_QUESTIONS: dict[Phase, str] = {
    Phase.CHIEF_COMPLAINT: (
        "您好，请您放松。我是您的医生，会仔细倾听您的情况。请告诉我：今天是什么不舒服让您来看医生的？"
        "这个症状是什么时候开始的？现在感觉怎么样？"
    ),
    Phase.SYMPTOM_ANALYSIS: (
        "谢谢您的描述。为了更好地帮助您，我需要了解症状的细节。请详细描述一下：这个症状具体是什么感觉？"
        "如果是疼痛，是哪种痛法（刺痛、胀痛、绞痛等）？有什么情况会让它加重或减轻吗？还有其他伴随的不舒服吗？"
    ),
    Phase.MEDICAL_HISTORY: (
        "我理解您的担心。现在让我了解一下您的身体状况和病史。请告诉我：您之前有过类似的情况吗？"
        "有什么慢性疾病吗？家族中有类似的问题吗？您平时的生活作息、饮食习惯、工作压力怎么样？"
    ),
    Phase.PHYSICAL_EXAMINATION: (
        "请问您最近有做过相关检查吗？比如测过血压、心率、体温吗？有做过血检、心电图或其他检查吗？"
        "如果有的话，请告诉我结果。如果没有，也请告诉我“没有做过检查”，我会根据您提供的信息进行分析。"
    ),
}

_REPROMPT_PREFIX = "您的回答有些简短，为了准确判断，我需要更多细节。"

_NOT_PROVIDED = "（未提供）"


def phase_title(phase: Phase) -> str:
    return PHASE_TITLES[phase]


def phase_guidance(phase: Phase) -> str:
    """Short annotation shown next to a step, e.g. "阶段 3/9 · 病史采集"."""
    if phase is Phase.COMPLETED:
        return f"🎉 {PHASE_TITLES[phase]}"
    working = len(PHASE_ORDER) - 1
    return f"阶段 {phase.order + 1}/{working} · {_PHASE_ICONS[phase]} {PHASE_TITLES[phase]}"


def overview() -> str:
    """The numbered stage list shown when a consultation starts."""
    lines = []
    for phase in PHASE_ORDER:
        if phase is Phase.COMPLETED:
            continue
        lines.append(f"{phase.order + 1}. {_PHASE_ICONS[phase]} {PHASE_TITLES[phase]}")
    return "\n".join(lines)


def _excerpt(text: Optional[str], limit: int = 80) -> str:
    if not text:
        return _NOT_PROVIDED
    text = " ".join(text.split())
    return text if len(text) <= limit else text[:limit] + "…"


def generate(
    phase: Phase,
    collected_info: Mapping[str, str],
    extra: Optional[Mapping[str, Any]] = None,
) -> str:
    """Produce the doctor's text for a phase.

    Args:
        phase: The phase being entered (or re-prompted).
        collected_info: Answers captured so far, keyed by the *_KEY constants.
        extra: Optional hints.  {"reprompt": True} asks again for an
            interactive phase whose answer was too short.

    Returns:
        The question or analysis text.
    """
    extra = extra or {}

    if phase in _QUESTIONS:
        question = _QUESTIONS[phase]
        if extra.get("reprompt"):
            return f"{_REPROMPT_PREFIX}{question}"
        return question

    complaint = _excerpt(collected_info.get(CHIEF_COMPLAINT_KEY))
    details = _excerpt(collected_info.get(SYMPTOM_DETAILS_KEY))
    history = _excerpt(collected_info.get(MEDICAL_HISTORY_KEY))
    tests = _excerpt(collected_info.get(RECENT_TESTS_KEY))

    if phase is Phase.DIFFERENTIAL_DIAGNOSIS:
        return (
            "现在让我整理和分析您提供的所有信息。\n"
            f"  • 主诉：{complaint}\n"
            f"  • 症状特点：{details}\n"
            f"  • 既往史与生活史：{history}\n"
            f"  • 已有检查：{tests}\n"
            "根据症状特点、病史和检查情况，需要在常见病因与需要警惕的严重病因之间进行鉴别，"
            "先排除危险情况，再考虑最可能的原因。"
        )

    if phase is Phase.INVESTIGATION_PLANNING:
        if collected_info.get(RECENT_TESTS_KEY):
            basis = f"结合您已有的检查（{tests}），"
        else:
            basis = "由于目前缺少客观检查资料，"
        return (
            f"{basis}我建议您做一些进一步的检查来明确诊断：\n"
            "  1. 基础生命体征复测（血压、心率、体温）\n"
            "  2. 血常规及基础生化检查\n"
            "  3. 根据症状部位选择相应的影像学或专科检查\n"
            "每项检查的目的都是帮助排除严重疾病并确认最可能的原因。"
        )

    if phase is Phase.DIAGNOSIS_FORMULATION:
        return (
            f"根据所有的信息，我给您一个初步的诊断意见：您的主要问题是“{complaint}”，"
            f"结合症状表现（{details}）和既往情况（{history}），目前考虑为功能性或常见原因所致的可能性较大，"
            "最终诊断需要结合进一步检查结果确认。"
        )

    if phase is Phase.TREATMENT_PLANNING:
        return (
            "治疗建议：\n"
            "  1. 一般处理：规律作息、充足休息、清淡饮食、适量饮水\n"
            "  2. 对症处理：在医生指导下针对主要不适进行对症治疗\n"
            "  3. 随访：完成建议的检查后复诊，根据结果调整方案\n"
            f"方案会根据您的具体情况（{history}）进一步个体化。"
        )

    if phase is Phase.PATIENT_EDUCATION:
        return (
            "最后给您一些健康建议：注意观察症状变化，记录发作时间和诱因。"
            "如果出现症状突然加重、持续高热、剧烈疼痛、意识改变等情况，请立即就医。"
            "保持良好的生活习惯，有任何疑问随时来复诊。"
        )

    if phase is Phase.COMPLETED:
        return (
            f"本次问诊已完成。针对您的主诉“{complaint}”，我们完成了病情采集、分析、"
            "检查建议、诊断意见、治疗方案和健康宣教。祝您早日康复！"
        )

    raise ValueError(f"No content defined for phase {phase.value}")
