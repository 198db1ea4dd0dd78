# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains ALL logic of the backend explorer: fetching the ERD
# and Swagger documents, inspecting MongoDB, resolving entity names, narrowing
# payloads to an entity and rendering markdown.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP.  The tools/ layer wraps these
#   functions as MCP tools; everything here can be driven (and tested) from a
#   plain Python REPL.
# =============================================================================
