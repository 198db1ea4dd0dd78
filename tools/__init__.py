# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool wrappers.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between MCP and core/.  Each tool:
#     1. Unpacks its options (format, limit, path)
#     2. Calls a function from core/
#     3. Serialises the result as one text payload (JSON or markdown)
#     4. Reports failures as data, never as a protocol-level error
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT narrow, infer or render anything themselves (core/ does)
#   - They do NOT keep state beyond the one process-wide DataExplorer
# =============================================================================
