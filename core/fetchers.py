# =============================================================================
# core/fetchers.py  -  Remote Fetchers (ERD & Swagger)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Issues ONE HTTP GET against the configured ERD or Swagger URL and returns
#   the decoded JSON document.  Nothing is cached; every call fetches fresh.
#
# FAILURE CONTRACT:
#   - no URL configured            ->  ConfigurationMissing
#   - connect error / non-2xx / bad JSON  ->  TransportFailure
#   There are no retries and no explicit timeout beyond httpx's default.
#
# TESTING:
#   Every function accepts an optional httpx transport so tests can plug in
#   httpx.MockTransport instead of touching the network.
# =============================================================================

import copy
import logging
from typing import Any, Optional

import httpx

from core.errors import ConfigurationMissing, TransportFailure

logger = logging.getLogger(__name__)


async def fetch_json(
    url: str,
    what: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """GET `url` and decode the body as JSON.

    `what` names the source in error messages ("ERD", "Swagger").
    """
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning("%s fetch failed with HTTP %s", what, e.response.status_code)
        raise TransportFailure(
            f"Failed to retrieve {what} information: {e}",
            status=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        logger.warning("%s fetch failed: %s", what, e)
        raise TransportFailure(f"Failed to retrieve {what} information: {e}") from e

    try:
        return response.json()
    except ValueError as e:
        raise TransportFailure(
            f"Failed to retrieve {what} information: response is not valid JSON ({e})"
        ) from e


async def fetch_erd(
    url: Optional[str],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """Fetch the raw ERD document."""
    if not url:
        raise ConfigurationMissing("ERD_API_URL is not set in the environment variables")
    return await fetch_json(url, "ERD", transport)


def filter_swagger_paths(document: Any, path: Optional[str]) -> Any:
    """Restrict `document["paths"]` to exactly `path`, when that key exists.

    Exact match only: no prefix or substring matching.  When there is no
    match (or no path was given) the document comes back unchanged.
    """
    if not path or not isinstance(document, dict):
        return document
    paths = document.get("paths")
    if not isinstance(paths, dict) or path not in paths:
        return document
    filtered = copy.copy(document)
    filtered["paths"] = {path: paths[path]}
    return filtered


async def fetch_swagger(
    url: Optional[str],
    path_filter: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """Fetch the OpenAPI document, optionally narrowed to one exact path."""
    if not url:
        raise ConfigurationMissing("SWAGGER_API_URL is not set in the environment variables")
    document = await fetch_json(url, "Swagger", transport)
    return filter_swagger_paths(document, path_filter)
