"""Tests for core.config - environment settings and CLI overrides."""

from __future__ import annotations

from core.config import (
    DEFAULT_PORT,
    Settings,
    apply_cli_overrides,
    load_settings,
    parse_cli_overrides,
)


class TestLoadSettings:
    def test_empty_environment_disables_every_source(self) -> None:
        settings = load_settings({})
        assert settings == Settings()
        assert not settings.erd_enabled
        assert not settings.swagger_enabled
        assert not settings.mongodb_enabled
        assert settings.port == DEFAULT_PORT

    def test_reads_urls_and_server_options(self) -> None:
        settings = load_settings({
            "ERD_API_URL": "http://erd",
            "SWAGGER_API_URL": "http://swagger",
            "MONGODB_CONNECTION_STRING": "mongodb://db/app",
            "PORT": "8090",
            "LOG_LEVEL": "DEBUG",
            "MCP_TRANSPORT": "HTTP",
        })
        assert settings.erd_api_url == "http://erd"
        assert settings.swagger_api_url == "http://swagger"
        assert settings.mongodb_uri == "mongodb://db/app"
        assert settings.port == 8090
        assert settings.log_level == "debug"
        assert settings.transport == "http"

    def test_mongodb_uri_wins_over_connection_string(self) -> None:
        settings = load_settings({
            "MONGODB_URI": "mongodb://primary/app",
            "MONGODB_CONNECTION_STRING": "mongodb://secondary/app",
        })
        assert settings.mongodb_uri == "mongodb://primary/app"

    def test_blank_values_count_as_unset(self) -> None:
        settings = load_settings({"ERD_API_URL": "  ", "MONGODB_URI": ""})
        assert settings.erd_api_url is None
        assert settings.mongodb_uri is None

    def test_unparseable_port_falls_back_to_default(self) -> None:
        assert load_settings({"PORT": "not-a-port"}).port == DEFAULT_PORT


class TestCliOverrides:
    def test_space_and_equals_forms(self) -> None:
        overrides = parse_cli_overrides([
            "--erd-api-url", "http://erd",
            "--swagger-api-url=http://swagger",
            "--mongodb-uri", "mongodb://db/app",
            "--port=4000",
        ])
        assert overrides == {
            "ERD_API_URL": "http://erd",
            "SWAGGER_API_URL": "http://swagger",
            "MONGODB_URI": "mongodb://db/app",
            "PORT": "4000",
        }

    def test_unknown_flags_are_ignored(self) -> None:
        assert parse_cli_overrides(["--verbose", "--log-level", "debug"]) == {"LOG_LEVEL": "debug"}

    def test_overrides_replace_environment_values(self) -> None:
        environ = {"ERD_API_URL": "http://old", "PORT": "3000"}
        applied = apply_cli_overrides(["--erd-api-url=http://new"], environ)
        assert applied == {"ERD_API_URL": "http://new"}
        assert environ == {"ERD_API_URL": "http://new", "PORT": "3000"}
        assert load_settings(environ).erd_api_url == "http://new"
