# =============================================================================
# core/explorer.py  -  Data Explorer (the aggregator)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Answers one free-text question ("users table properties") from all three
#   sources at once:
#
#     1. resolve the entity name from the query (core/entity.py)
#     2. look the entity up in ERD, Swagger and MongoDB CONCURRENTLY
#     3. NARROW each full payload down to that entity
#     4. hand back an Exploration; the tools/ layer serialises it as JSON or
#        renders it with core/markdown.py
#
# PARTIAL FAILURE:
#   Each source fills its own slot.  A network error, a parse error or a
#   missing collection turns into a message in that slot and never touches
#   the other two.  The only error that aborts explore() is EntityUnresolved.
#
#   Unconfigured sources are not skipped: they get a "not configured" message,
#   so every source always appears in the result.
#
# NARROWING RULES:
#   ERD      first table (in source order) whose name equals or contains the
#            entity, case-insensitively
#   Swagger  exact path "/{entity}" with at least one method wins; otherwise
#            every path containing the entity plus every component schema
#            whose name contains it
#   MongoDB  the entity IS the collection name; schema plus 2 samples
# =============================================================================

import asyncio
import logging
from typing import Any, Optional

import httpx

from core import fetchers
from core.config import Settings
from core.entity import resolve_entity
from core.errors import ExplorerError, NotFound
from core.models import (
    ErdDocument,
    ErdTable,
    Exploration,
    MongoSlice,
    SourceOutcome,
    SwaggerSlice,
)
from core.store import MongoInspector

logger = logging.getLogger(__name__)

SAMPLE_DOCUMENTS = 2

ERD_NOT_CONFIGURED = (
    "ERD data source is not configured. Set ERD_API_URL in environment variables."
)
SWAGGER_NOT_CONFIGURED = (
    "Swagger data source is not configured. Set SWAGGER_API_URL in environment variables."
)
MONGODB_NOT_CONFIGURED = (
    "MongoDB data source is not configured. "
    "Set MONGODB_URI or MONGODB_CONNECTION_STRING in environment variables."
)


# =============================================================================
# Narrowing (pure)
# =============================================================================
def narrow_erd(document: Any, entity_name: str) -> Optional[ErdTable]:
    """First table whose name equals or contains `entity_name`."""
    erd = ErdDocument.from_dict(document)
    if erd is None:
        return None
    needle = entity_name.lower()
    for table in erd.tables:
        if needle in table.name.lower():
            return table
    return None


def narrow_swagger(document: Any, entity_name: str) -> Optional[SwaggerSlice]:
    """Paths and schemas relevant to `entity_name`, or None if nothing matches."""
    if not isinstance(document, dict):
        return None
    paths = document.get("paths")
    paths = paths if isinstance(paths, dict) else {}

    # Pass 1: exact "/{entity}" with a non-empty method map
    exact_path = f"/{entity_name}"
    if paths.get(exact_path):
        return SwaggerSlice(paths={exact_path: paths[exact_path]})

    # Pass 2: substring matches over paths and component schemas
    needle = entity_name.lower()
    matched_paths = {path: methods for path, methods in paths.items() if needle in path.lower()}

    components = document.get("components")
    schemas = components.get("schemas") if isinstance(components, dict) else None
    schemas = schemas if isinstance(schemas, dict) else {}
    matched_schemas = {name: schema for name, schema in schemas.items() if needle in name.lower()}

    if not matched_paths and not matched_schemas:
        return None
    return SwaggerSlice(paths=matched_paths, schemas=matched_schemas)


# =============================================================================
# DataExplorer
# =============================================================================
class DataExplorer:
    """Owns the per-process source handles and answers exploration queries."""

    def __init__(
        self,
        settings: Settings,
        inspector: Optional[MongoInspector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings
        self.inspector = inspector if inspector is not None else MongoInspector(settings.mongodb_uri)
        self._transport = transport
        logger.info("Available data sources: %s", ", ".join(self.available_sources()) or "none")

    def available_sources(self) -> list[str]:
        sources = []
        if self.settings.erd_enabled:
            sources.append("erd")
        if self.settings.swagger_enabled:
            sources.append("swagger")
        if self.inspector.configured:
            sources.append("mongodb")
        return sources

    # --- single-source fetches (used directly by get_erd / get_swagger) -------

    async def fetch_erd(self) -> Any:
        return await fetchers.fetch_erd(self.settings.erd_api_url, self._transport)

    async def fetch_swagger(self, path: Optional[str] = None) -> Any:
        return await fetchers.fetch_swagger(self.settings.swagger_api_url, path, self._transport)

    # --- per-source lookups -----------------------------------------------------

    async def _erd_outcome(self, entity_name: str) -> SourceOutcome:
        if not self.settings.erd_enabled:
            return SourceOutcome.unconfigured(ERD_NOT_CONFIGURED)
        table = narrow_erd(await self.fetch_erd(), entity_name)
        if table is None:
            raise NotFound(f"No ERD information found for '{entity_name}'")
        return SourceOutcome(data=table)

    async def _swagger_outcome(self, entity_name: str) -> SourceOutcome:
        if not self.settings.swagger_enabled:
            return SourceOutcome.unconfigured(SWAGGER_NOT_CONFIGURED)
        slice_ = narrow_swagger(await self.fetch_swagger(), entity_name)
        if slice_ is None:
            raise NotFound(f"No Swagger information found for '{entity_name}'")
        return SourceOutcome(data=slice_)

    async def _mongodb_outcome(self, entity_name: str) -> SourceOutcome:
        if not self.inspector.configured:
            return SourceOutcome.unconfigured(MONGODB_NOT_CONFIGURED)
        if not await asyncio.to_thread(self.inspector.has_collection, entity_name):
            raise NotFound(f"No MongoDB collection found with name '{entity_name}'")

        schema = await asyncio.to_thread(self.inspector.describe_collection, entity_name)
        try:
            samples = await asyncio.to_thread(
                self.inspector.sample_data, entity_name, SAMPLE_DOCUMENTS
            )
        except ExplorerError as e:
            logger.warning("Sample read for '%s' failed: %s", entity_name, e.message)
            return SourceOutcome(data=MongoSlice(
                schema=schema, samples_message="Could not retrieve sample data",
            ))
        return SourceOutcome(data=MongoSlice(schema=schema, samples=samples))

    @staticmethod
    def _settle(source: str, result: Any) -> SourceOutcome:
        """Turn a gathered task result (or exception) into that source's slot."""
        if isinstance(result, SourceOutcome):
            return result
        if isinstance(result, NotFound):
            return SourceOutcome(message=result.message)
        if isinstance(result, ExplorerError):
            logger.warning("%s lookup failed: %s", source, result.message)
            return SourceOutcome.failure(result.message)
        logger.error("%s lookup raised %r", source, result)
        return SourceOutcome.failure(f"{source} information retrieval failed: {result}")

    # --- public API ---------------------------------------------------------------

    async def explore(self, query: str, limit: int = 10) -> Exploration:
        """Resolve the entity in `query` and gather what every source knows about it.

        `limit` is accepted for parity with the other tools; the combined view
        always shows SAMPLE_DOCUMENTS sample documents.

        Raises:
            EntityUnresolved: if no entity name can be extracted from `query`.
        """
        entity_name = resolve_entity(query)

        erd, swagger, mongodb = await asyncio.gather(
            self._erd_outcome(entity_name),
            self._swagger_outcome(entity_name),
            self._mongodb_outcome(entity_name),
            return_exceptions=True,
        )

        return Exploration(
            query=query,
            entity_name=entity_name,
            erd=self._settle("ERD", erd),
            swagger=self._settle("Swagger", swagger),
            mongodb=self._settle("MongoDB", mongodb),
        )
