# =============================================================================
# core/store.py  -  MongoDB Store Inspector
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Lists collections, infers a flat field schema, returns random samples and
#   runs filter queries against the database named in the connection string.
#
# CONNECTION LIFECYCLE:
#   MongoInspector owns ONE MongoClient.  It is created on the first call that
#   needs it (under a lock, so concurrent first calls connect only once),
#   verified with a ping, and then reused for the life of the process.  A
#   failed attempt is not cached: the next call simply tries again, once.
#
# SCHEMA INFERENCE:
#   infer_fields() is a single flat pass over up to 100 documents ("the first
#   100 the server returns", not a random sample):
#     - nested dicts produce dot-joined paths ("address.city") and are
#       reported as "object" themselves
#     - lists are reported as "array" and NOT descended into
#     - None and ObjectId get their own labels ("null", "ObjectId"); dates
#       are "object"
#     - the first type seen for a path is the one reported
#
# The methods here are blocking (pymongo); the explorer runs them in worker
# threads with asyncio.to_thread.
# =============================================================================

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from bson import Decimal128, ObjectId, json_util
from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from core.errors import ConfigurationMissing, InvalidQuerySyntax, TransportFailure
from core.models import CollectionSchema, CollectionStats, FieldInfo, QueryResult, SampleSet

logger = logging.getLogger(__name__)

SCHEMA_SAMPLE_SIZE = 100
DEFAULT_DATABASE = "test"

# Type alias for MongoDB documents (schemaless)
MongoDocument = dict[str, Any]


def type_label(value: Any) -> str:
    """Map a BSON value to the type label shown in collection descriptors."""
    if value is None:
        return "null"
    if isinstance(value, ObjectId):
        return "ObjectId"
    if isinstance(value, (list, tuple)):
        return "array"
    # datetime reports as "object" but has no sub-fields to walk
    if isinstance(value, (dict, datetime)):
        return "object"
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal128)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def infer_fields(documents: Iterable[MongoDocument]) -> list[FieldInfo]:
    """Accumulate per-path type and occurrence counts over `documents`."""
    seen: dict[str, FieldInfo] = {}

    def walk(doc: MongoDocument, prefix: str) -> None:
        for key, value in doc.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            info = seen.get(path)
            if info is None:
                info = seen[path] = FieldInfo(name=path, type=type_label(value), count=0)
            info.count += 1
            if isinstance(value, dict):
                walk(value, path)

    for document in documents:
        walk(document, "")
    return list(seen.values())


def parse_filter(filter_json: str) -> dict:
    """Parse a MongoDB Extended JSON filter string.

    Raises:
        InvalidQuerySyntax: if it is not JSON, or not a JSON object.
    """
    try:
        parsed = json_util.loads(filter_json)
    except (ValueError, TypeError, BSONError) as e:
        raise InvalidQuerySyntax(f"Invalid query format: {e}") from e
    if not isinstance(parsed, dict):
        raise InvalidQuerySyntax(
            f"Invalid query format: expected a JSON object, got {type(parsed).__name__}"
        )
    return parsed


class MongoInspector:
    """Read-only introspection of one MongoDB database."""

    def __init__(
        self,
        uri: Optional[str],
        client_factory: Callable[[str], MongoClient] = MongoClient,
    ) -> None:
        self._uri = uri
        self._client_factory = client_factory
        self._client: Optional[MongoClient] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._uri)

    # --- connection -----------------------------------------------------------

    def _get_client(self) -> MongoClient:
        if self._client is not None:
            return self._client
        with self._lock:
            if self._client is None:
                if not self._uri:
                    raise ConfigurationMissing(
                        "MongoDB connection string not found in environment variables. "
                        "Please set MONGODB_URI or MONGODB_CONNECTION_STRING"
                    )
                client = None
                try:
                    client = self._client_factory(self._uri)
                    client.admin.command("ping")
                except PyMongoError as e:
                    if client is not None:
                        client.close()
                    raise TransportFailure(f"MongoDB operation failed: {e}") from e
                logger.info("Connected to MongoDB")
                self._client = client
        return self._client

    def _database(self) -> Database:
        return self._get_client().get_default_database(default=DEFAULT_DATABASE)

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    # --- operations -----------------------------------------------------------

    def list_collections(self) -> list[CollectionStats]:
        """Per-collection document count and storage size (one round trip each)."""
        db = self._database()
        try:
            stats = []
            for name in db.list_collection_names():
                count = db[name].count_documents({})
                coll_stats = db.command("collStats", name)
                stats.append(CollectionStats(name=name, count=count, size=int(coll_stats.get("size", 0))))
            return stats
        except PyMongoError as e:
            raise TransportFailure(f"MongoDB operation failed: {e}") from e

    def has_collection(self, name: str) -> bool:
        db = self._database()
        try:
            return name in db.list_collection_names()
        except PyMongoError as e:
            raise TransportFailure(f"MongoDB operation failed: {e}") from e

    def describe_collection(self, name: str) -> CollectionSchema:
        """Infer the field layout of `name`; an empty collection has no fields."""
        db = self._database()
        try:
            documents = list(db[name].find().limit(SCHEMA_SAMPLE_SIZE))
        except PyMongoError as e:
            raise TransportFailure(f"MongoDB operation failed: {e}") from e
        return CollectionSchema(name=name, fields=infer_fields(documents))

    def sample_data(self, name: str, limit: int) -> SampleSet:
        """Up to `limit` pseudo-random documents via $sample."""
        db = self._database()
        if limit <= 0:
            return SampleSet()
        try:
            documents = list(db[name].aggregate([{"$sample": {"size": limit}}]))
        except PyMongoError as e:
            raise TransportFailure(f"MongoDB operation failed: {e}") from e
        return SampleSet(data=documents)

    def query(self, name: str, filter_json: str, limit: int) -> QueryResult:
        """Run a filter, returning up to `limit` matches plus the total count."""
        criteria = parse_filter(filter_json)
        db = self._database()
        try:
            total = db[name].count_documents(criteria)
            # pymongo reads limit(0) as "no limit"
            documents = list(db[name].find(criteria).limit(limit)) if limit > 0 else []
        except PyMongoError as e:
            raise TransportFailure(f"MongoDB operation failed: {e}") from e
        return QueryResult(data=documents, count=len(documents), total=total, query=criteria)
