# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (the medical_diagnosis tools)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the consultation engine as MCP tools.  Each tool is a thin wrapper
#   around core.workflow.DiagnosisWorkflow — it logs the call, delegates, and
#   returns the text payload.  No consultation logic lives here.
#
# THE TOOLS:
#   - assistant-doctor                 start / continue / complete a consultation
#   - get_assistant_doctor_dialogue    full audit log of one session
#   - list_assistant_doctor_sessions   one line per in-memory session
#
# THE WAITING CONTRACT:
#   When a response contains WAITING_FOR_USER_INPUT, the calling agent must
#   stop generating and let the real patient answer.  The tool description
#   says so, because the LLM reads it to decide how to behave.
#
# RUNNING THIS SERVER:
#     a) Standalone:  python -m tools.mcp_server
#     b) Spawned by the host agent over stdio (agent/doctor_agent.py)
# =============================================================================

import logging
import sys
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

# Allow "python tools/mcp_server.py" (the host agent spawns it that way).
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from core.config import load_settings
from core.store import JsonFileStore, SessionStore
from core.workflow import DiagnosisWorkflow

load_dotenv()
settings = load_settings()

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT is the MCP transport, so every log line goes to STDERR.
#   - CYAN for incoming requests (tool name + parameters)
#   - GREEN for responses
#   - YELLOW for status messages
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: str) -> str:
    """Log the first line and size of a text response in GREEN, then return it."""
    first_line = result.splitlines()[0] if result else ""
    logging.info(f"{_GREEN}  ← {tool_name} response ({len(result)} chars): {first_line}{_RESET}")
    return result


# =============================================================================
# Engine wiring
# =============================================================================
# One store and one workflow per process.  The JSON file store is the durable
# tier; swap JsonFileStore for any object with read/write/keys to change it.
# =============================================================================
durable = JsonFileStore(settings.sessions_dir)
store = SessionStore(durable)
workflow = DiagnosisWorkflow.from_settings(store, settings)

mcp = FastMCP("medical_diagnosis")


# =============================================================================
# TOOL 1: assistant_doctor
# =============================================================================
@mcp.tool(name="assistant-doctor")
def assistant_doctor(
    problem: Optional[str] = None,
    thought: Optional[str] = None,
    sessionId: Optional[str] = None,
    action: Literal["start", "continue", "complete"] = "continue",
) -> str:
    """医疗诊断辅助工具。这是一个交互式诊断流程，当工具返回'WAITING_FOR_USER_INPUT'状态时，
    AI助手必须停止生成内容，等待真实用户的回答。AI不应该代替用户回答医生的问题。
    包括主诉采集、症状详询、病史采集、辅助检查、鉴别诊断、检查计划、诊断形成、治疗方案和健康宣教。

    WHEN TO CALL THIS:
      - action="start" with `problem` to open a new consultation
      - action="continue" with `sessionId` and the patient's answer in `thought`
      - action="continue" with no `thought` when the response shows
        PENDING_AUTO_ADVANCE (the analysis will resume)
      - action="complete" with `sessionId` (and an optional summary in `thought`)

    Args:
        problem: 患者主诉或医疗问题（新开始时必填）
        thought: 患者回答或医生分析内容
        sessionId: 诊断会话ID（继续已有会话时使用）
        action: 操作类型 start / continue / complete

    Returns:
        The rendered consultation as text.  Errors start with "❌".
    """
    _log_request("assistant-doctor", problem=problem, thought=thought,
                 sessionId=sessionId, action=action)
    result = workflow.handle(action=action, problem=problem, thought=thought, session_id=sessionId)
    if "WAITING_FOR_USER_INPUT" in result:
        _log_status("Waiting for the patient's answer")
    return _log_response("assistant-doctor", result)


# =============================================================================
# TOOL 2: get_assistant_doctor_dialogue
# =============================================================================
@mcp.tool()
def get_assistant_doctor_dialogue(sessionId: str) -> str:
    """查看诊断会话的完整对话审计记录（按时间顺序）以及各角色的记录数。

    Args:
        sessionId: 诊断会话ID

    Returns:
        Every dialogue record of the session, in order, plus per-speaker counts.
    """
    _log_request("get_assistant_doctor_dialogue", sessionId=sessionId)
    return _log_response("get_assistant_doctor_dialogue", workflow.handle_dialogue(sessionId))


# =============================================================================
# TOOL 3: list_assistant_doctor_sessions
# =============================================================================
@mcp.tool()
def list_assistant_doctor_sessions() -> str:
    """查看医疗诊断会话列表（仅当前进程内存中的会话）。

    Returns:
        One line per session: id, status, progress, current phase.
    """
    _log_request("list_assistant_doctor_sessions")
    return _log_response("list_assistant_doctor_sessions", workflow.handle_listing())


# =============================================================================
# Server entry point
# =============================================================================
def main() -> None:
    durable.ensure_directory()
    logging.info("医疗诊断MCP服务器已启动...")
    logging.info(f"会话存储目录: {durable.directory.resolve()}")
    existing = store.persisted_count()
    if existing:
        _log_status(f"发现 {existing} 个已保存的会话文件")
    mcp.run()


if __name__ == "__main__":
    main()
