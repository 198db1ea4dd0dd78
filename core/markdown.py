# =============================================================================
# core/markdown.py  -  Markdown Rendering
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Pure functions that turn each document type into markdown:
#
#     render_erd(document)                     ->  full ERD
#     render_swagger(document)                 ->  full API documentation
#     render_mongo(action, result, collection) ->  one mongodb_explorer result
#     render_exploration(exploration)          ->  data_explorer combined report
#
#   No I/O happens here, so every renderer can be tested against literal
#   fixtures.  A template that trips over a malformed payload raises
#   RenderFailure, which the tools/ layer returns as text suggesting JSON.
# =============================================================================

import functools
import json
from typing import Any, Callable, Optional

from core.errors import RenderFailure
from core.models import (
    CollectionSchema,
    ErdDocument,
    ErdTable,
    Exploration,
    MongoSlice,
    QueryResult,
    SampleSet,
    SourceOutcome,
    SwaggerSlice,
)

# Operation keys of an OpenAPI path item
HTTP_METHODS = frozenset({"get", "put", "post", "delete", "patch", "options", "head", "trace"})


def dump_json(value: Any) -> str:
    """Pretty JSON; BSON values such as ObjectId and datetime are stringified."""
    return json.dumps(value, indent=2, default=str, ensure_ascii=False)


def _json_block(value: Any) -> str:
    return "```json\n" + dump_json(value) + "\n```\n\n"


def _renderer(source: str) -> Callable:
    """Convert template errors raised by the wrapped renderer into RenderFailure."""

    def decorate(fn: Callable[..., str]) -> Callable[..., str]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> str:
            try:
                return fn(*args, **kwargs)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise RenderFailure(
                    f"Failed to convert {source} data to markdown: {e}. "
                    "Please use JSON format instead."
                ) from e

        return wrapper

    return decorate


def _cell(value: Any) -> str:
    """Table cells: None renders empty, pipes and newlines are escaped."""
    if value is None:
        return ""
    return str(value).replace("|", "\\|").replace("\n", " ")


def _yes_no(flag: Any) -> str:
    return "Yes" if flag else "No"


# =============================================================================
# ERD
# =============================================================================
def _erd_table_section(table: ErdTable) -> str:
    md = f"### {table.name}\n\n"
    md += f"{table.description or 'No description'}\n\n"

    if table.columns:
        md += "| Column | Type | Description | Required | Key |\n"
        md += "|--------|------|-------------|----------|-----|\n"
        for column in table.columns:
            md += (
                f"| {_cell(column.name)} | {_cell(column.type)} | {_cell(column.description)} "
                f"| {_yes_no(column.required)} | {column.key_label} |\n"
            )
        md += "\n"

    if table.relations:
        md += "#### Relations\n\n"
        for relation in table.relations:
            md += (
                f"- {relation.label}: {relation.source_table}.{relation.source_column}"
                f" → {relation.target_table}.{relation.target_column}\n"
            )
        md += "\n"

    return md


@_renderer("ERD")
def render_erd(document: Any) -> str:
    md = "# Database ERD\n\n"
    erd = ErdDocument.from_dict(document)
    if erd is None:
        md += "ERD data could not be converted to markdown format. Please use JSON format instead.\n"
        return md

    md += "## Tables\n\n"
    for table in erd.tables:
        md += _erd_table_section(table)
    return md


# =============================================================================
# Swagger / OpenAPI
# =============================================================================
def _json_schema(container: Optional[dict]) -> Optional[dict]:
    """The application/json schema of a requestBody or response, if any."""
    if not isinstance(container, dict):
        return None
    content = container.get("content")
    if not isinstance(content, dict):
        return None
    media = content.get("application/json")
    if not isinstance(media, dict):
        return None
    return media.get("schema")


def _property_table(schema: dict) -> str:
    required = schema.get("required") or []
    md = "| Property | Type | Required | Description |\n"
    md += "|----------|------|----------|-------------|\n"
    for prop, details in schema["properties"].items():
        details = details or {}
        md += (
            f"| {_cell(prop)} | {_cell(details.get('type', ''))} "
            f"| {_yes_no(prop in required)} | {_cell(details.get('description', ''))} |\n"
        )
    return md + "\n"


def _operation_section(method: str, info: dict, heading: str) -> str:
    md = f"{heading} {method.upper()}\n\n"
    if not isinstance(info, dict):
        return md

    if info.get("summary"):
        md += f"**Summary**: {info['summary']}\n\n"
    if info.get("description"):
        md += f"**Description**: {info['description']}\n\n"

    parameters = info.get("parameters") or []
    if parameters:
        md += "**Parameters**:\n\n"
        md += "| Name | Location | Required | Type | Description |\n"
        md += "|------|----------|----------|------|-------------|\n"
        for param in parameters:
            param_type = param.get("type") or (param.get("schema") or {}).get("type") or ""
            md += (
                f"| {_cell(param.get('name'))} | {_cell(param.get('in'))} "
                f"| {_yes_no(param.get('required'))} | {_cell(param_type)} "
                f"| {_cell(param.get('description', ''))} |\n"
            )
        md += "\n"

    if info.get("requestBody"):
        md += "**Request Body**:\n\n"
        schema = _json_schema(info["requestBody"])
        if isinstance(schema, dict) and schema.get("properties"):
            md += _property_table(schema)

    responses = info.get("responses") or {}
    if responses:
        md += "**Responses**:\n\n"
        for code, response in responses.items():
            response = response or {}
            md += f"**{code}**: {response.get('description', '')}\n\n"
            schema = _json_schema(response)
            if schema is not None:
                md += "Response schema:\n"
                md += _json_block(schema)

    return md


def _paths_section(paths: dict, path_heading: str, method_heading: str) -> str:
    md = ""
    for path, item in paths.items():
        md += f"{path_heading} {path}\n\n"
        # path-level keys (parameters, summary, servers...) are not operations
        for method, info in (item or {}).items():
            if method.lower() in HTTP_METHODS:
                md += _operation_section(method, info, method_heading)
    return md


@_renderer("Swagger")
def render_swagger(document: Any) -> str:
    md = "# API Documentation (Swagger)\n\n"

    info = document.get("info")
    if info:
        md += f"## {info.get('title') or 'API Documentation'}\n\n"
        md += f"{info.get('description') or ''}\n\n"
        if info.get("version"):
            md += f"**Version**: {info['version']}\n\n"

    paths = document.get("paths")
    if paths:
        md += "## Endpoints\n\n"
        md += _paths_section(paths, "###", "####")

    return md


# =============================================================================
# MongoDB
# =============================================================================
def _schema_table(schema: CollectionSchema) -> str:
    md = "| Field Name | Type | Document Count |\n"
    md += "|------------|------|----------------|\n"
    for f in schema.fields:
        md += f"| {_cell(f.name)} | {f.type} | {f.count} |\n"
    return md


def _documents_section(samples: SampleSet, heading: str) -> str:
    md = ""
    for index, document in enumerate(samples.data, start=1):
        md += f"{heading} Document {index}\n\n"
        md += _json_block(document)
    return md


@_renderer("MongoDB")
def render_mongo(action: str, result: Any, collection: Optional[str] = None) -> str:
    md = "# MongoDB Explorer Results\n\n"

    if action == "listCollections":
        md += "## Collections\n\n"
        md += "| Collection Name | Document Count | Size (bytes) |\n"
        md += "|-----------------|---------------|---------------|\n"
        for stats in result:
            md += f"| {_cell(stats.name)} | {stats.count} | {stats.size} |\n"

    elif action == "describeCollection":
        md += f"## Collection Schema: {collection}\n\n"
        md += _schema_table(result)

    elif action == "sampleData":
        md += f"## Sample Data: {collection}\n\n"
        md += _documents_section(result, "###")

    elif action == "query":
        query_result: QueryResult = result
        md += f"## Query Results: {collection}\n\n"
        md += f"Executed query: `{json.dumps(query_result.query, default=str)}`\n\n"
        md += f"Total results: {query_result.total}\n\n"
        md += "### Results\n\n"
        md += _json_block(query_result.data)

    return md


# =============================================================================
# Combined report (data_explorer)
# =============================================================================
def _message_line(outcome: SourceOutcome, source: str) -> str:
    if outcome.error:
        return f"Error retrieving {source} information: {outcome.message}\n\n"
    return f"{outcome.message}\n\n"


def _swagger_slice_section(slice_: SwaggerSlice) -> str:
    md = ""
    if slice_.paths:
        md += "### API Endpoints\n\n"
        md += _paths_section(slice_.paths, "####", "#####")

    if slice_.schemas:
        md += "### API Models\n\n"
        for name, schema in slice_.schemas.items():
            md += f"#### {name}\n\n"
            if isinstance(schema, dict) and schema.get("properties"):
                md += _property_table(schema)
    return md


def _mongo_slice_section(slice_: MongoSlice) -> str:
    md = "### Collection Schema\n\n"
    if slice_.schema.fields:
        md += _schema_table(slice_.schema) + "\n"
    else:
        md += f"Collection '{slice_.schema.name}' has no documents to infer fields from.\n\n"

    if slice_.samples is not None and slice_.samples.data:
        md += "### Sample Documents\n\n"
        md += _documents_section(slice_.samples, "####")
    elif slice_.samples is None:
        md += f"{slice_.samples_message or 'Could not retrieve sample data'}\n\n"
    return md


@_renderer("combined")
def render_exploration(exploration: Exploration) -> str:
    md = f"# Comprehensive Information about '{exploration.entity_name}'\n\n"
    md += f'Query: "{exploration.query}"\n\n'

    configured = exploration.configured_sources()
    if len(configured) < 3:
        listed = ", ".join(configured) if configured else "none"
        md += f"> **Note:** Only the following data sources are configured: {listed}.\n\n"

    md += "## Database Schema (ERD)\n\n"
    if isinstance(exploration.erd.data, ErdTable):
        md += _erd_table_section(exploration.erd.data)
    else:
        md += _message_line(exploration.erd, "ERD")

    md += "## API Documentation (Swagger)\n\n"
    if isinstance(exploration.swagger.data, SwaggerSlice):
        md += _swagger_slice_section(exploration.swagger.data)
    else:
        md += _message_line(exploration.swagger, "Swagger")

    md += "## MongoDB Data\n\n"
    if isinstance(exploration.mongodb.data, MongoSlice):
        md += _mongo_slice_section(exploration.mongodb.data)
    else:
        md += _message_line(exploration.mongodb, "MongoDB")

    return md
