"""Shared fixtures: in-memory stand-ins for pymongo and canned source documents."""

from __future__ import annotations

import random
from typing import Any

import httpx
import pytest
from pymongo.errors import ConnectionFailure

from core.config import Settings
from core.store import MongoInspector

# ---------------------------------------------------------------------------
# Fake pymongo objects
# ---------------------------------------------------------------------------


def _matches(document: dict, criteria: dict) -> bool:
    return all(document.get(key) == value for key, value in criteria.items())


class FakeCursor:
    def __init__(self, documents: list[dict]) -> None:
        self._documents = documents

    def limit(self, n: int) -> list[dict]:
        return self._documents[:n] if n else list(self._documents)


class FakeCollection:
    def __init__(self, documents: list[dict]) -> None:
        self.documents = documents

    def find(self, criteria: dict | None = None) -> FakeCursor:
        return FakeCursor([d for d in self.documents if _matches(d, criteria or {})])

    def count_documents(self, criteria: dict) -> int:
        return len([d for d in self.documents if _matches(d, criteria)])

    def aggregate(self, pipeline: list[dict]) -> list[dict]:
        size = pipeline[0]["$sample"]["size"]
        return random.sample(self.documents, min(size, len(self.documents)))


class FakeDatabase:
    def __init__(self, collections: dict[str, list[dict]]) -> None:
        self.collections = collections

    def list_collection_names(self) -> list[str]:
        return list(self.collections)

    def __getitem__(self, name: str) -> FakeCollection:
        return FakeCollection(self.collections.get(name, []))

    def command(self, name: str, collection: str) -> dict:
        assert name == "collStats"
        return {"size": 128 * len(self.collections[collection])}


class FakeAdmin:
    def __init__(self, reachable: bool) -> None:
        self.reachable = reachable

    def command(self, name: str) -> dict:
        if not self.reachable:
            raise ConnectionFailure("connection refused")
        return {"ok": 1}


class FakeMongoClient:
    def __init__(self, collections: dict[str, list[dict]], reachable: bool = True) -> None:
        self.db = FakeDatabase(collections)
        self.admin = FakeAdmin(reachable)
        self.closed = False

    def get_default_database(self, default: str | None = None) -> FakeDatabase:
        return self.db

    def close(self) -> None:
        self.closed = True


class ClientFactory:
    """Records how many clients were created."""

    def __init__(self, collections: dict[str, list[dict]], reachable: bool = True) -> None:
        self.collections = collections
        self.reachable = reachable
        self.calls: list[str] = []

    def __call__(self, uri: str) -> FakeMongoClient:
        self.calls.append(uri)
        return FakeMongoClient(self.collections, self.reachable)


# ---------------------------------------------------------------------------
# Canned documents
# ---------------------------------------------------------------------------

ERD_DOCUMENT: dict[str, Any] = {
    "tables": [
        {
            "name": "users",
            "description": "Registered accounts",
            "columns": [
                {"name": "id", "type": "int", "isPrimaryKey": True, "required": True},
                {"name": "email", "type": "varchar", "description": "Login e-mail", "required": True},
                {"name": "team_id", "type": "int", "isForeignKey": True},
            ],
            "relations": [
                {
                    "type": "many-to-one",
                    "sourceTable": "users",
                    "sourceColumn": "team_id",
                    "targetTable": "teams",
                    "targetColumn": "id",
                }
            ],
        },
        {
            "name": "teams",
            "columns": [{"name": "id", "type": "int", "isPrimaryKey": True}],
        },
    ]
}

SWAGGER_DOCUMENT: dict[str, Any] = {
    "openapi": "3.0.0",
    "info": {"title": "Shop API", "description": "Orders and invoices", "version": "2.1.0"},
    "paths": {
        "/orders": {
            "get": {
                "summary": "List orders",
                "parameters": [
                    {"name": "status", "in": "query", "required": False, "schema": {"type": "string"}}
                ],
                "responses": {
                    "200": {
                        "description": "OK",
                        "content": {"application/json": {"schema": {"type": "array"}}},
                    }
                },
            },
            "post": {
                "summary": "Create order",
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {
                                "type": "object",
                                "required": ["sku"],
                                "properties": {
                                    "sku": {"type": "string", "description": "Product code"},
                                    "quantity": {"type": "integer"},
                                },
                            }
                        }
                    }
                },
                "responses": {"201": {"description": "Created"}},
            },
        },
        "/orders/{id}": {"get": {"summary": "Get one order"}},
        "/invoices": {"get": {"summary": "List invoices"}},
    },
    "components": {
        "schemas": {
            "Invoice": {"type": "object", "properties": {"total": {"type": "number"}}},
            "InvoiceLine": {"type": "object"},
        }
    },
}


def json_transport(routes: dict[str, Any]) -> httpx.MockTransport:
    """Serve `routes` (url -> JSON body) and 404 everything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in routes:
            return httpx.Response(200, json=routes[url])
        return httpx.Response(404, json={"error": "not found"})

    return httpx.MockTransport(handler)


def exploding_transport() -> httpx.MockTransport:
    """A transport that fails the test if any request is made."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    return httpx.MockTransport(handler)


ERD_URL = "http://backend.test/erd"
SWAGGER_URL = "http://backend.test/v3/api-docs"
MONGO_URI = "mongodb://mongo.test:27017/app"


@pytest.fixture
def mongo_collections() -> dict[str, list[dict]]:
    return {
        "users": [
            {"_id": 1, "name": "Ada", "address": {"city": "London"}, "tags": ["admin"]},
            {"_id": 2, "name": "Linus", "address": {"city": "Helsinki"}, "tags": []},
            {"_id": 3, "name": "Grace", "address": None},
        ],
        "empty": [],
    }


@pytest.fixture
def client_factory(mongo_collections) -> ClientFactory:
    return ClientFactory(mongo_collections)


@pytest.fixture
def inspector(client_factory) -> MongoInspector:
    return MongoInspector(MONGO_URI, client_factory=client_factory)


@pytest.fixture
def full_settings() -> Settings:
    return Settings(erd_api_url=ERD_URL, swagger_api_url=SWAGGER_URL, mongodb_uri=MONGO_URI)
