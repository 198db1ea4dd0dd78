"""Tests for core.fetchers - ERD and Swagger HTTP fetches."""

from __future__ import annotations

import httpx
import pytest
from conftest import ERD_DOCUMENT, ERD_URL, SWAGGER_DOCUMENT, SWAGGER_URL, json_transport

from core.errors import ConfigurationMissing, TransportFailure
from core.fetchers import fetch_erd, fetch_swagger, filter_swagger_paths


class TestFetchErd:
    async def test_returns_the_raw_document(self) -> None:
        document = await fetch_erd(ERD_URL, json_transport({ERD_URL: ERD_DOCUMENT}))
        assert document == ERD_DOCUMENT

    async def test_missing_url_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationMissing) as exc_info:
            await fetch_erd(None)
        assert "ERD_API_URL" in exc_info.value.message

    async def test_http_error_status_is_a_transport_failure(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        with pytest.raises(TransportFailure) as exc_info:
            await fetch_erd(ERD_URL, transport)
        assert exc_info.value.status == 503
        assert exc_info.value.to_payload()["status"] == 503
        assert exc_info.value.message.startswith("Failed to retrieve ERD information")

    async def test_connection_error_is_a_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportFailure) as exc_info:
            await fetch_erd(ERD_URL, httpx.MockTransport(handler))
        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.message

    async def test_non_json_body_is_a_transport_failure(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(TransportFailure) as exc_info:
            await fetch_erd(ERD_URL, transport)
        assert "not valid JSON" in exc_info.value.message


class TestFetchSwagger:
    async def test_missing_url_is_a_configuration_error(self) -> None:
        with pytest.raises(ConfigurationMissing) as exc_info:
            await fetch_swagger("")
        assert "SWAGGER_API_URL" in exc_info.value.message

    async def test_path_filter_keeps_only_the_exact_path(self) -> None:
        document = await fetch_swagger(
            SWAGGER_URL, "/orders", json_transport({SWAGGER_URL: SWAGGER_DOCUMENT})
        )
        assert list(document["paths"]) == ["/orders"]
        assert document["info"] == SWAGGER_DOCUMENT["info"]
        assert document["components"] == SWAGGER_DOCUMENT["components"]

    async def test_unknown_path_returns_the_whole_document(self) -> None:
        document = await fetch_swagger(
            SWAGGER_URL, "/order", json_transport({SWAGGER_URL: SWAGGER_DOCUMENT})
        )
        assert document == SWAGGER_DOCUMENT


class TestFilterSwaggerPaths:
    def test_exact_match_only(self) -> None:
        filtered = filter_swagger_paths(SWAGGER_DOCUMENT, "/orders/{id}")
        assert filtered["paths"] == {"/orders/{id}": SWAGGER_DOCUMENT["paths"]["/orders/{id}"]}

    def test_original_document_is_not_mutated(self) -> None:
        filter_swagger_paths(SWAGGER_DOCUMENT, "/invoices")
        assert len(SWAGGER_DOCUMENT["paths"]) == 3

    @pytest.mark.parametrize("path", [None, "", "/ORDERS", "orders"])
    def test_no_match_is_a_no_op(self, path) -> None:
        assert filter_swagger_paths(SWAGGER_DOCUMENT, path) is SWAGGER_DOCUMENT

    def test_documents_without_paths_pass_through(self) -> None:
        assert filter_swagger_paths({"info": {}}, "/orders") == {"info": {}}
