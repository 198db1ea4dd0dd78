# =============================================================================
# core/errors.py  -  Error taxonomy
# =============================================================================
#
# Core functions RAISE these; the tools/ layer catches ExplorerError and turns
# it into a text payload, so a tool call always returns a well-formed response.
#
#   ConfigurationMissing  - required URL / connection string absent
#   TransportFailure      - network, HTTP or driver error
#   InvalidQuerySyntax    - the filter passed to the "query" action is not JSON
#   NotFound              - nothing matched the resolved entity
#   EntityUnresolved      - no usable token in the free-text query
#   RenderFailure         - markdown conversion failed
# =============================================================================

from typing import Optional


class ExplorerError(Exception):
    """Base class for every failure the explorer reports as data."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def to_payload(self) -> dict:
        payload: dict = {"error": True, "message": self.message}
        if self.status is not None:
            payload["status"] = self.status
        return payload


class ConfigurationMissing(ExplorerError):
    pass


class TransportFailure(ExplorerError):
    pass


class InvalidQuerySyntax(ExplorerError):
    pass


class NotFound(ExplorerError):
    pass


class EntityUnresolved(ExplorerError):
    pass


class RenderFailure(ExplorerError):
    pass
