# =============================================================================
# agent/__init__.py
# =============================================================================
# This package contains the Google ADK host agent.
#
# ARCHITECTURAL ROLE:
#   The agent/ layer is the patient-facing side.  It:
#     1. Receives the patient's complaint and answers
#     2. Calls the assistant-doctor tool (via MCP) to run the consultation
#     3. Relays each doctor question and stops when the tool is waiting
#     4. Presents the final opinion once the consultation completes
#
# WHAT THE AGENT IS NOT:
#   - It is NOT the consultation engine (that's in core/)
#   - It is NOT the tool implementations (that's in tools/)
# =============================================================================
