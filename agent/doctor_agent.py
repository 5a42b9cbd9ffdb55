# =============================================================================
# agent/doctor_agent.py  —  Google ADK Host Agent (LiteLlm + MCP over stdio)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the ADK agent that talks to the patient and drives the
#   medical_diagnosis MCP server.  The agent holds no consultation logic:
#
#     agent/  → conversation with the patient (LLM + system prompt)
#     tools/  → MCP wrappers around the engine
#     core/   → the consultation engine itself
#
# MCP CONNECTION:
#   ADK spawns tools/mcp_server.py as a subprocess ("uv run python ...") and
#   talks to it over stdin/stdout.  "uv run" makes the subprocess use the
#   project's virtual environment.
#
# MODEL:
#   Any LiteLlm model string works; DOCTOR_AGENT_MODEL picks it
#   (default "openrouter/openai/gpt-4o", which reads OPENROUTER_API_KEY).
# =============================================================================

import os

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_doctor_assistant_prompt
from core.config import load_settings


def create_agent() -> Agent:
    """Create the consultation host agent wired to the medical_diagnosis tools."""
    settings = load_settings()

    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    mcp_server_path = os.path.join(project_root, "tools", "mcp_server.py")

    mcp_tools = MCPToolset(
        connection_params=StdioServerParameters(
            command="uv",
            args=["run", "python", mcp_server_path],
        ),
    )

    return Agent(
        name="medical_consultation_assistant",
        model=LiteLlm(model=settings.agent_model),
        instruction=get_doctor_assistant_prompt(),
        tools=[mcp_tools],
    )
