# =============================================================================
# core/models.py  -  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every payload that flows through the
# explorer: ERD documents, the narrowed Swagger slice, MongoDB collection
# descriptors and samples, and the combined exploration result.
#
# LOOSELY-SHAPED INPUT:
#   The ERD and MongoDB sources hand us arbitrary JSON.  Each model that is
#   built from such input has a from_dict() that checks every field for
#   presence explicitly, and a to_dict() that emits the original camelCase
#   keys (optional keys only when they were present).
#
#   OpenAPI documents are too large and too open-ended to model field by
#   field, so they stay plain dicts; only the narrowed SwaggerSlice is typed.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional


def _text(value: Any) -> Optional[str]:
    """Return value as a string, or None when it is absent or null."""
    if value is None:
        return None
    return str(value)


# -----------------------------------------------------------------------------
# ERD - tables, columns, relations
# -----------------------------------------------------------------------------
@dataclass
class ErdColumn:
    """One column of an ERD table."""

    name: str
    type: str
    description: Optional[str] = None
    required: bool = False
    is_primary_key: bool = False
    is_foreign_key: bool = False

    @property
    def key_label(self) -> str:
        """"PK" wins over "FK"; columns that are neither get an empty label."""
        if self.is_primary_key:
            return "PK"
        if self.is_foreign_key:
            return "FK"
        return ""

    @classmethod
    def from_dict(cls, data: dict) -> "ErdColumn":
        return cls(
            name=str(data.get("name", "")),
            type=str(data.get("type", "")),
            description=_text(data.get("description")),
            required=bool(data.get("required", False)),
            is_primary_key=bool(data.get("isPrimaryKey", False)),
            is_foreign_key=bool(data.get("isForeignKey", False)),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"name": self.name, "type": self.type}
        if self.description is not None:
            out["description"] = self.description
        if self.required:
            out["required"] = True
        if self.is_primary_key:
            out["isPrimaryKey"] = True
        if self.is_foreign_key:
            out["isForeignKey"] = True
        return out


@dataclass
class ErdRelation:
    """A relation between two table columns."""

    type: str
    source_table: str
    source_column: str
    target_table: str
    target_column: str
    description: Optional[str] = None

    @property
    def label(self) -> str:
        return self.description or self.type

    @classmethod
    def from_dict(cls, data: dict) -> "ErdRelation":
        return cls(
            type=str(data.get("type", "")),
            source_table=str(data.get("sourceTable", "")),
            source_column=str(data.get("sourceColumn", "")),
            target_table=str(data.get("targetTable", "")),
            target_column=str(data.get("targetColumn", "")),
            description=_text(data.get("description")),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "type": self.type,
            "sourceTable": self.source_table,
            "sourceColumn": self.source_column,
            "targetTable": self.target_table,
            "targetColumn": self.target_column,
        }
        if self.description is not None:
            out["description"] = self.description
        return out


@dataclass
class ErdTable:
    """One table of the ERD, with its columns and (optional) relations."""

    name: str
    columns: list[ErdColumn] = field(default_factory=list)
    description: Optional[str] = None
    relations: list[ErdRelation] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ErdTable":
        columns = data.get("columns")
        relations = data.get("relations")
        return cls(
            name=str(data.get("name", "")),
            columns=[ErdColumn.from_dict(c) for c in columns if isinstance(c, dict)]
            if isinstance(columns, list) else [],
            description=_text(data.get("description")),
            relations=[ErdRelation.from_dict(r) for r in relations if isinstance(r, dict)]
            if isinstance(relations, list) else [],
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            out["description"] = self.description
        out["columns"] = [c.to_dict() for c in self.columns]
        if self.relations:
            out["relations"] = [r.to_dict() for r in self.relations]
        return out


@dataclass
class ErdDocument:
    """The whole ERD: just a list of tables."""

    tables: list[ErdTable] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ErdDocument"]:
        """Build an ErdDocument, or None if the payload has no tables list."""
        if not isinstance(data, dict) or not isinstance(data.get("tables"), list):
            return None
        return cls(tables=[
            ErdTable.from_dict(t) for t in data["tables"] if isinstance(t, dict)
        ])


# -----------------------------------------------------------------------------
# Swagger - the entity-narrowed view of an OpenAPI document
# -----------------------------------------------------------------------------
@dataclass
class SwaggerSlice:
    """Paths and component schemas relevant to one entity."""

    paths: dict[str, dict] = field(default_factory=dict)
    schemas: dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"paths": self.paths, "schemas": self.schemas}


# -----------------------------------------------------------------------------
# MongoDB - collection stats, inferred schema, samples, query results
# -----------------------------------------------------------------------------
@dataclass
class CollectionStats:
    name: str
    count: int                         # live count_documents()
    size: int                          # bytes, from collStats


@dataclass
class FieldInfo:
    name: str                          # dot-path for nested fields ("address.city")
    type: str                          # null / ObjectId / array / object / string / ...
    count: int                         # occurrences across the sampled documents


@dataclass
class CollectionSchema:
    """Flat field list inferred from (at most) the first 100 documents."""

    name: str
    fields: list[FieldInfo] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fields": [
                {"name": f.name, "type": f.type, "count": f.count} for f in self.fields
            ],
        }


@dataclass
class SampleSet:
    data: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"data": self.data}


@dataclass
class QueryResult:
    data: list[dict]
    count: int                         # len(data), capped by the limit
    total: int                         # true number of matches
    query: dict                        # the parsed filter, echoed back

    def to_dict(self) -> dict:
        return {
            "data": self.data,
            "count": self.count,
            "total": self.total,
            "query": self.query,
        }


@dataclass
class MongoSlice:
    """Schema plus a couple of sample documents for one collection."""

    schema: CollectionSchema
    samples: Optional[SampleSet] = None
    samples_message: Optional[str] = None

    def to_dict(self) -> dict:
        if self.samples is not None:
            samples: dict = self.samples.to_dict()
        else:
            samples = {"message": self.samples_message or "Could not retrieve sample data"}
        return {"schema": self.schema.to_dict(), "samples": samples}


# -----------------------------------------------------------------------------
# Exploration - the data_explorer tool's combined result
# -----------------------------------------------------------------------------
@dataclass
class SourceOutcome:
    """One source's slot in an Exploration.

    Exactly one of `data` and `message` is set.  `error` marks messages that
    come from a failure (as opposed to "not configured" or "not found").
    """

    data: Any = None                   # ErdTable | SwaggerSlice | MongoSlice
    message: Optional[str] = None
    error: bool = False
    configured: bool = True

    @classmethod
    def unconfigured(cls, message: str) -> "SourceOutcome":
        return cls(message=message, configured=False)

    @classmethod
    def failure(cls, message: str) -> "SourceOutcome":
        return cls(message=message, error=True)

    def to_dict(self) -> dict:
        if self.data is not None:
            if isinstance(self.data, ErdTable):
                return {"table": self.data.to_dict()}
            return self.data.to_dict()
        out: dict[str, Any] = {"message": self.message}
        if self.error:
            out["error"] = True
        return out


@dataclass
class Exploration:
    query: str
    entity_name: str
    erd: SourceOutcome
    swagger: SourceOutcome
    mongodb: SourceOutcome

    def configured_sources(self) -> list[str]:
        labels = [("ERD", self.erd), ("Swagger", self.swagger), ("MongoDB", self.mongodb)]
        return [label for label, outcome in labels if outcome.configured]

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "entityName": self.entity_name,
            "sources": {
                "erd": self.erd.to_dict(),
                "swagger": self.swagger.to_dict(),
                "mongodb": self.mongodb.to_dict(),
            },
        }
