# =============================================================================
# tools/mcp_server.py  -  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines the four MCP tools.  Each tool is a thin wrapper around core/:
#   it unpacks the options, calls core logic, and serialises the result as
#   ONE text payload (pretty JSON or markdown).
#
# HOW IT WORKS (the flow):
#   1. An MCP client (Cursor, Claude Desktop, an agent...) calls a tool by name
#   2. FastMCP routes the call to the decorated coroutine below
#   3. The coroutine calls core/ (fetchers, store inspector, explorer)
#   4. Errors from core/ arrive as ExplorerError and are returned AS DATA:
#      {"error": true, "message": ...}.  A tool call never faults.
#
# TOOLS:
#   get_erd           ->  ERD document (json | markdown)
#   get_swagger       ->  OpenAPI document, optionally one exact path
#   mongodb_explorer  ->  listCollections / describeCollection / sampleData / query
#   data_explorer     ->  one free-text question answered from all three sources
#   All tools are read-only.
#
# RUNNING THIS SERVER:
#   Use main.py (it applies .env and CLI overrides first), or directly:
#     python -m tools.mcp_server
# =============================================================================

import asyncio
import functools
import logging
import os
import sys
from dataclasses import asdict
from typing import Any, Callable, Literal, Optional

from fastmcp import FastMCP
from pydantic import BaseModel, Field

from core.config import Settings, load_settings
from core.errors import ExplorerError, RenderFailure
from core.explorer import DataExplorer
from core.markdown import dump_json, render_erd, render_exploration, render_mongo, render_swagger

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because with the stdio transport the MCP protocol owns
# STDOUT; a stray log line there would corrupt the JSON-RPC stream.
#
# ANSI COLOR CODES:
#   - CYAN for incoming requests (tool name + parameters)
#   - GREEN for responses
#   - YELLOW for intermediate status/progress messages
# =============================================================================

# ANSI color codes for terminal output
_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

# Longest response excerpt written to the log
_RESPONSE_PREVIEW_CHARS = 300


def _log_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(
    level=_log_level(os.environ.get("LOG_LEVEL", "info")),
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


def _log_response(tool_name: str, text: str) -> str:
    """Log a compact excerpt of the response in GREEN, then return it."""
    preview = " ".join(text.split())
    if len(preview) > _RESPONSE_PREVIEW_CHARS:
        preview = preview[:_RESPONSE_PREVIEW_CHARS] + f"... ({len(text)} chars)"
    logging.info(f"{_GREEN}  ← {tool_name} response: {preview}{_RESET}")
    return text


def _error_response(tool_name: str, error: ExplorerError) -> str:
    _log_status(f"{type(error).__name__}: {error.message}")
    return _log_response(tool_name, dump_json(error.to_payload()))


def _render(tool_name: str, render: Callable[..., str], *args: Any) -> str:
    """Run a markdown renderer; a RenderFailure comes back as plain text."""
    try:
        return _log_response(tool_name, render(*args))
    except RenderFailure as e:
        _log_status(e.message)
        return _log_response(tool_name, e.message)


# =============================================================================
# Tool options
# =============================================================================
class FormatOptions(BaseModel):
    format: Literal["json", "markdown"] = Field(
        default="json", description="Response format: 'json' or 'markdown'"
    )


class SwaggerOptions(FormatOptions):
    path: Optional[str] = Field(
        default=None,
        description="Exact API path to keep (e.g. '/users'); other paths are dropped",
    )


class ResultOptions(FormatOptions):
    limit: int = Field(default=10, ge=1, description="Maximum number of documents to return")


# =============================================================================
# The explorer: created once, on first use, and kept for the process lifetime
# =============================================================================
@functools.lru_cache(maxsize=1)
def get_explorer() -> DataExplorer:
    return DataExplorer(load_settings())


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
mcp = FastMCP("backend-explorer")


# =============================================================================
# TOOL 1: get_erd
# =============================================================================
@mcp.tool()
async def get_erd(options: Optional[FormatOptions] = None) -> str:
    """Retrieve the Entity-Relationship Diagram (ERD) of the backend database.

    Use this to understand tables, their columns (type, required, PK/FK) and
    the relations between tables.

    Args:
        options: {"format": "json" | "markdown"}.  JSON (default) returns the
            raw ERD document; markdown renders one section per table.

    Returns:
        The ERD as JSON or markdown, or {"error": true, "message": ...}
        when ERD_API_URL is not configured or the request fails.
    """
    opts = options or FormatOptions()
    _log_request("get_erd", format=opts.format)

    try:
        document = await get_explorer().fetch_erd()
    except ExplorerError as e:
        return _error_response("get_erd", e)

    if opts.format == "markdown":
        return _render("get_erd", render_erd, document)
    return _log_response("get_erd", dump_json(document))


# =============================================================================
# TOOL 2: get_swagger
# =============================================================================
@mcp.tool()
async def get_swagger(options: Optional[SwaggerOptions] = None) -> str:
    """Retrieve the Swagger / OpenAPI documentation of the backend API.

    Use this to explore endpoints, their parameters, request bodies and
    response schemas.

    Args:
        options: {"format": "json" | "markdown", "path": optional exact path}.
            When `path` names an existing path (exact match, e.g. "/users")
            only that path is kept; otherwise the whole document is returned.

    Returns:
        The API documentation as JSON or markdown, or {"error": true, ...}
        when SWAGGER_API_URL is not configured or the request fails.
    """
    opts = options or SwaggerOptions()
    _log_request("get_swagger", format=opts.format, path=opts.path)

    try:
        document = await get_explorer().fetch_swagger(opts.path)
    except ExplorerError as e:
        return _error_response("get_swagger", e)

    if opts.format == "markdown":
        return _render("get_swagger", render_swagger, document)
    return _log_response("get_swagger", dump_json(document))


# =============================================================================
# TOOL 3: mongodb_explorer
# =============================================================================
@mcp.tool()
async def mongodb_explorer(
    action: Literal["listCollections", "describeCollection", "sampleData", "query"],
    collection: Optional[str] = None,
    query: Optional[str] = None,
    options: Optional[ResultOptions] = None,
) -> str:
    """Explore the MongoDB database: collections, inferred schemas, sample data, queries.

    Args:
        action: "listCollections" (name, document count, size of each
            collection), "describeCollection" (field names, types and how
            many of the first 100 documents contain them), "sampleData"
            (random documents) or "query" (run a filter).
        collection: Collection to operate on.  Required for every action
            except listCollections.
        query: MongoDB filter as a JSON string, e.g. '{"status": "active"}'.
            Required when action is "query".  Extended JSON such as
            {"_id": {"$oid": "..."}} is accepted.
        options: {"format": "json" | "markdown", "limit": 10}.

    Returns:
        The result as JSON or markdown, or {"error": true, "message": ...}.
    """
    opts = options or ResultOptions()
    _log_request("mongodb_explorer", action=action, collection=collection,
                 query=query, format=opts.format, limit=opts.limit)

    inspector = get_explorer().inspector
    try:
        if action == "listCollections":
            result: Any = await asyncio.to_thread(inspector.list_collections)
            payload: Any = {"collections": [asdict(stats) for stats in result]}
        else:
            if not collection:
                raise ExplorerError("Collection name is required.")
            if action == "describeCollection":
                result = await asyncio.to_thread(inspector.describe_collection, collection)
            elif action == "sampleData":
                result = await asyncio.to_thread(inspector.sample_data, collection, opts.limit)
            else:
                if not query:
                    raise ExplorerError("Query is required.")
                result = await asyncio.to_thread(inspector.query, collection, query, opts.limit)
            payload = result.to_dict()
    except ExplorerError as e:
        return _error_response("mongodb_explorer", e)

    _log_status(f"{action} on {collection or 'database'} succeeded")
    if opts.format == "markdown":
        return _render("mongodb_explorer", render_mongo, action, result, collection)
    return _log_response("mongodb_explorer", dump_json(payload))


# =============================================================================
# TOOL 4: data_explorer
# =============================================================================
@mcp.tool()
async def data_explorer(query: str, options: Optional[ResultOptions] = None) -> str:
    """Answer one question about a data entity from ERD, Swagger and MongoDB together.

    The entity is the first meaningful word of the query (e.g. "users" in
    "users table properties").  Each configured source is narrowed to that
    entity: the matching ERD table, the matching API paths and models, and
    the MongoDB collection of the same name with two sample documents.
    Sources that are not configured or have nothing on the entity say so in
    their own section instead of failing the call.

    Args:
        query: What you are looking for, e.g. "users table properties".
        options: {"format": "json" | "markdown", "limit": 10}.

    Returns:
        {"query", "entityName", "sources": {"erd", "swagger", "mongodb"}} as
        JSON, or one combined markdown report.
    """
    opts = options or ResultOptions()
    _log_request("data_explorer", query=query, format=opts.format, limit=opts.limit)

    try:
        exploration = await get_explorer().explore(query, opts.limit)
    except ExplorerError as e:
        return _error_response("data_explorer", e)

    _log_status(f"Entity '{exploration.entity_name}' from sources: "
                f"{', '.join(exploration.configured_sources()) or 'none'}")
    if opts.format == "markdown":
        return _render("data_explorer", render_exploration, exploration)
    return _log_response("data_explorer", dump_json(exploration.to_dict()))


# =============================================================================
# Server entry point
# =============================================================================
def serve(settings: Settings) -> None:
    """Run the server on the configured transport (stdio unless told otherwise)."""
    if settings.transport == "stdio":
        mcp.run()
    else:
        mcp.run(transport=settings.transport, host=settings.host, port=settings.port)


if __name__ == "__main__":
    serve(load_settings())
