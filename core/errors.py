# =============================================================================
# core/errors.py  —  Error Taxonomy
# =============================================================================
#
# Core modules raise these; only the workflow façade (core/workflow.py)
# catches them and turns them into a "❌ ..." text response.  Nothing raises
# across the MCP tool boundary.
# =============================================================================


class DiagnosisError(Exception):
    """Base class for every failure the consultation engine reports."""

    message = "处理医疗诊断时出错"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)


class MissingRequiredField(DiagnosisError):
    message = "缺少必填字段"

    def __init__(self, field_name: str, hint: str = ""):
        self.field_name = field_name
        super().__init__(f"{field_name} {hint}".strip())


class SessionNotFound(DiagnosisError):
    message = "无效的会话ID"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(session_id)


class SessionAlreadyCompleted(DiagnosisError):
    message = "该诊断会话已完成"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(session_id)


class DurabilityWarning(DiagnosisError):
    """A durable write failed; the in-memory session is still current."""

    message = "会话持久化失败"

    def __init__(self, session_id: str, cause: Exception):
        self.session_id = session_id
        self.cause = cause
        super().__init__(f"{session_id} ({cause})")


class InternalFailure(DiagnosisError):
    message = "处理医疗诊断时出错"
