# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between the agent host and the engine in
#   core/.  It logs each call, delegates to core.workflow.DiagnosisWorkflow
#   and returns the text payload.
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT contain consultation logic (that's in core/)
#   - They do NOT know about Google ADK (they're framework-agnostic)
# =============================================================================
