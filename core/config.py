# =============================================================================
# core/config.py  —  Runtime Settings
# =============================================================================
#
# Every knob is an environment variable, read once at process start.  The
# entry points (tools/mcp_server.py, main.py) call load_dotenv() first, so a
# local .env file works too:
#
#   DOCTOR_SESSIONS_DIR         where session JSON files live  (./medical_sessions)
#   DOCTOR_MIN_RESPONSE_LENGTH  shortest answer that completes a phase  (5)
#   DOCTOR_MAX_AUTO_ADVANCE     auto-advance iterations per call  (10, at most 10)
#   DOCTOR_LOG_LEVEL            logging level for the tool server  (INFO)
#   DOCTOR_AGENT_MODEL          LiteLlm model string for the host agent
# =============================================================================

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_SESSIONS_DIR = "./medical_sessions"
DEFAULT_MIN_RESPONSE_LENGTH = 5
DEFAULT_MAX_AUTO_ADVANCE = 10
# Hard ceiling: a single continue never appends more than this many steps.
MAX_AUTO_ADVANCE_LIMIT = 10
DEFAULT_AGENT_MODEL = "openrouter/openai/gpt-4o"


@dataclass(frozen=True)
class Settings:
    sessions_dir: str = DEFAULT_SESSIONS_DIR
    min_response_length: int = DEFAULT_MIN_RESPONSE_LENGTH
    max_auto_advance: int = DEFAULT_MAX_AUTO_ADVANCE
    log_level: str = "INFO"
    agent_model: str = DEFAULT_AGENT_MODEL


def _int_env(name: str, default: int, maximum: Optional[int] = None) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{name} must be <= {maximum}, got {value}")
    return value


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        sessions_dir=os.environ.get("DOCTOR_SESSIONS_DIR", DEFAULT_SESSIONS_DIR),
        min_response_length=_int_env("DOCTOR_MIN_RESPONSE_LENGTH", DEFAULT_MIN_RESPONSE_LENGTH),
        max_auto_advance=_int_env(
            "DOCTOR_MAX_AUTO_ADVANCE", DEFAULT_MAX_AUTO_ADVANCE, maximum=MAX_AUTO_ADVANCE_LIMIT
        ),
        log_level=os.environ.get("DOCTOR_LOG_LEVEL", "INFO").upper(),
        agent_model=os.environ.get("DOCTOR_AGENT_MODEL", DEFAULT_AGENT_MODEL),
    )
