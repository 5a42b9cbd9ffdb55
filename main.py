# =============================================================================
# main.py  —  Entry Point for the Medical Consultation Assistant
# =============================================================================
#
# HOW TO RUN:
#   uv run python main.py
#
# WHAT HAPPENS:
#   1. Creates the Google ADK agent (agent/doctor_agent.py), which spawns the
#      medical_diagnosis MCP server over stdio
#   2. Opens an in-memory ADK session for this console conversation
#   3. Sends each line you type to the agent and prints its reply
#
# THE CONSULTATION LOOP:
#   You describe a problem → the agent calls assistant-doctor(action="start")
#   → the tool asks a question and says WAITING_FOR_USER_INPUT → the agent
#   shows you the question and stops → you answer → the agent calls
#   assistant-doctor(action="continue") → ... until the analysis phases run
#   and the consultation completes.
# =============================================================================

import asyncio

from dotenv import load_dotenv

# LiteLlm reads the provider API key from the environment when it initializes.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.doctor_agent import create_agent

APP_NAME = "medical_consultation"
USER_ID = "patient"


async def run_agent():
    """Run the consultation assistant interactively in the console."""
    print("=" * 70)
    print("  医疗问诊助手 / MEDICAL CONSULTATION ASSISTANT")
    print("  Powered by Google ADK + LiteLlm + FastMCP")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=session_service,
    )
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Agent initialized and ready!\n")
    print("💬 请描述您的不适（输入 'quit' 退出）")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n👤 您: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 再见！")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 再见！")
            break

        if not user_input:
            continue

        user_message = types.Content(
            role="user",
            parts=[types.Part(text=user_input)],
        )

        print("\n🤖 助手正在思考...\n")
        print("-" * 70)

        final_response = ""
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if event.content and event.content.parts:
                for part in event.content.parts:
                    if hasattr(part, "text") and part.text:
                        final_response = part.text

                    if hasattr(part, "function_call") and part.function_call:
                        print(f"  🔧 Calling tool: {part.function_call.name}")

        print("-" * 70)
        if final_response:
            print(f"\n👨‍⚕️ 助手:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. The agent may have encountered an error.")

        print("\n" + "=" * 70)


if __name__ == "__main__":
    asyncio.run(run_agent())
