# =============================================================================
# main.py  -  Entry Point for the Backend Explorer MCP server
# =============================================================================
#
# HOW TO RUN:
#   backend-explorer-mcp --erd-api-url http://localhost:8080/erd \
#                        --swagger-api-url=http://localhost:8080/v3/api-docs \
#                        --mongodb-uri mongodb://localhost:27017/app
#
# WHAT HAPPENS:
#   1. Loads a .env file into the environment (if present)
#   2. Applies command-line overrides (--key value or --key=value) on top
#   3. Logs which sources are configured
#   4. Starts the FastMCP server (stdio by default; --transport http|sse
#      listens on --host/--port instead)
#
# Step 2 must happen before tools.mcp_server is imported: that module reads
# LOG_LEVEL when it configures logging.
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

from core.config import apply_cli_overrides, load_settings


def _configured(flag: bool) -> str:
    return "configured" if flag else "not configured"


def main(argv=None) -> None:
    """Load configuration, report it, and run the MCP server."""
    load_dotenv()
    apply_cli_overrides(sys.argv[1:] if argv is None else argv)
    settings = load_settings()

    from tools.mcp_server import serve

    logging.info("Backend Explorer MCP server starting with configuration:")
    logging.info(f"- ERD API: {_configured(settings.erd_enabled)}")
    logging.info(f"- Swagger API: {_configured(settings.swagger_enabled)}")
    logging.info(f"- MongoDB: {_configured(settings.mongodb_enabled)}")
    logging.info(f"- Transport: {settings.transport}")
    if settings.transport != "stdio":
        logging.info(f"- Listening on: {settings.host}:{settings.port}")

    serve(settings)


if __name__ == "__main__":
    main()
