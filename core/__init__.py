# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the consultation engine: data models, the phase state
# machine, the auto-advance loop, the audit log, storage and rendering.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP, Google ADK or any orchestration
#   framework.  Every module here is plain Python and can be exercised
#   directly from tests.
# =============================================================================
