"""The FastMCP tool surface, called through an in-memory fastmcp Client."""

import asyncio
import importlib

import pytest
from fastmcp import Client

from core.render import WAITING_MARKER
from tests.conftest import ANSWERS


@pytest.fixture
def server(monkeypatch, tmp_path, workflow):
    monkeypatch.setenv("DOCTOR_SESSIONS_DIR", str(tmp_path / "server_sessions"))
    module = importlib.import_module("tools.mcp_server")
    monkeypatch.setattr(module, "workflow", workflow)
    return module


def _call(server, name, **arguments):
    async def run():
        async with Client(server.mcp) as client:
            result = await client.call_tool(name, arguments)
            return result.content[0].text

    return asyncio.run(run())


def _tool_names(server):
    async def run():
        async with Client(server.mcp) as client:
            return {tool.name for tool in await client.list_tools()}

    return asyncio.run(run())


def test_tools_are_registered(server):
    assert _tool_names(server) == {
        "assistant-doctor",
        "get_assistant_doctor_dialogue",
        "list_assistant_doctor_sessions",
    }


def test_assistant_doctor_maps_arguments_to_the_workflow(server, workflow):
    text = _call(server, "assistant-doctor", action="start", problem="头痛三天")
    assert WAITING_MARKER in text
    session = workflow.store.list()[0]
    assert session.id in text

    text = _call(server, "assistant-doctor", action="continue", sessionId=session.id, thought=ANSWERS[0])
    assert WAITING_MARKER in text
    assert workflow.store.get(session.id).collected_info["chief_complaint"] == ANSWERS[0]


def test_continue_is_the_default_action(server):
    text = _call(server, "assistant-doctor", sessionId="medical_missing")
    assert text.startswith("❌ 无效的会话ID")


def test_dialogue_and_listing_tools(server, workflow, started):
    dialogue = _call(server, "get_assistant_doctor_dialogue", sessionId=started.id)
    assert "🧾 记录总数:" in dialogue

    listing = _call(server, "list_assistant_doctor_sessions")
    assert started.id in listing
