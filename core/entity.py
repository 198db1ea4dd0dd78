# =============================================================================
# core/entity.py  -  Entity Resolver
# =============================================================================
#
# Turns a free-text request ("users table properties", "what is the schema
# of orders") into the single lowercase token used to scope every source.
#
# This is a heuristic, not a parser:
#   - tokens are ASCII \b\w+\b matches of the lowercased query; other
#     scripts never form tokens
#   - stop words are dropped
#   - the FIRST surviving token wins
# No multi-word entities, no synonyms, no scoring.  A query whose only
# meaningful term is itself a stop word ("schema info") cannot be resolved.
# =============================================================================

import re

from core.errors import EntityUnresolved

STOP_WORDS: frozenset[str] = frozenset({
    "the", "about", "what", "how", "is", "are", "in", "of", "to", "for",
    "on", "with", "properties", "structure", "schema", "fields", "data",
    "info", "information", "internal", "property", "field",
})

_TOKEN_RE = re.compile(r"\b(\w+)\b", re.ASCII)


def tokenize(query: str) -> list[str]:
    return _TOKEN_RE.findall(query.lower())


def resolve_entity(query: str) -> str:
    """Return the entity name referenced by `query`.

    Raises:
        EntityUnresolved: if every token is a stop word (or there are none).
    """
    candidates = [token for token in tokenize(query) if token not in STOP_WORDS]
    if not candidates:
        raise EntityUnresolved(
            "Could not determine which data entity you're asking about. "
            "Please specify a collection/table/entity name in your query."
        )
    return candidates[0]
