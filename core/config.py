# =============================================================================
# core/config.py  -  Environment configuration & CLI overrides
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the explorer's configuration from environment variables, and lets
#   command-line flags override those variables before the server starts.
#
#   ERD_API_URL                  ->  ERD source (disabled when unset)
#   SWAGGER_API_URL              ->  Swagger source (disabled when unset)
#   MONGODB_URI                  ->  MongoDB source (disabled when both unset;
#   MONGODB_CONNECTION_STRING        MONGODB_URI wins when both are set)
#   PORT / HOST / MCP_TRANSPORT  ->  how the MCP server listens
#   LOG_LEVEL                    ->  logging verbosity
#
#   A missing source URL never fails startup; that source just reports
#   "not configured" when asked.
# =============================================================================

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, MutableMapping, Optional, Sequence

DEFAULT_PORT = 3333
DEFAULT_HOST = "127.0.0.1"
DEFAULT_TRANSPORT = "stdio"
DEFAULT_LOG_LEVEL = "info"

# CLI flag -> environment variable it overrides
_FLAG_TO_ENV: dict[str, str] = {
    "mongodb-uri": "MONGODB_URI",
    "mongodb-connection-string": "MONGODB_CONNECTION_STRING",
    "erd-api-url": "ERD_API_URL",
    "swagger-api-url": "SWAGGER_API_URL",
    "port": "PORT",
    "host": "HOST",
    "log-level": "LOG_LEVEL",
    "transport": "MCP_TRANSPORT",
}


@dataclass(frozen=True)
class Settings:
    """Snapshot of the explorer configuration."""

    erd_api_url: Optional[str] = None
    swagger_api_url: Optional[str] = None
    mongodb_uri: Optional[str] = None
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    transport: str = DEFAULT_TRANSPORT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def erd_enabled(self) -> bool:
        return bool(self.erd_api_url)

    @property
    def swagger_enabled(self) -> bool:
        return bool(self.swagger_api_url)

    @property
    def mongodb_enabled(self) -> bool:
        return bool(self.mongodb_uri)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment (os.environ by default)."""
    env = os.environ if environ is None else environ

    port_raw = env.get("PORT", "")
    try:
        port = int(port_raw) if port_raw else DEFAULT_PORT
    except ValueError:
        port = DEFAULT_PORT

    return Settings(
        erd_api_url=_blank_to_none(env.get("ERD_API_URL")),
        swagger_api_url=_blank_to_none(env.get("SWAGGER_API_URL")),
        mongodb_uri=_blank_to_none(env.get("MONGODB_URI"))
        or _blank_to_none(env.get("MONGODB_CONNECTION_STRING")),
        port=port,
        host=env.get("HOST") or DEFAULT_HOST,
        transport=(env.get("MCP_TRANSPORT") or DEFAULT_TRANSPORT).lower(),
        log_level=(env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).lower(),
    )


def parse_cli_overrides(argv: Sequence[str]) -> dict[str, str]:
    """Parse `--key value` / `--key=value` flags into {ENV_VAR: value}.

    Unknown flags are ignored so wrappers can pass their own arguments.
    """
    parser = argparse.ArgumentParser(
        prog="backend-explorer-mcp", add_help=False, allow_abbrev=False
    )
    for flag in _FLAG_TO_ENV:
        parser.add_argument(f"--{flag}", dest=flag.replace("-", "_"))
    known, _unknown = parser.parse_known_args(list(argv))

    overrides = {}
    for flag, env_name in _FLAG_TO_ENV.items():
        value = getattr(known, flag.replace("-", "_"))
        if value is not None:
            overrides[env_name] = value
    return overrides


def apply_cli_overrides(
    argv: Sequence[str],
    environ: Optional[MutableMapping[str, str]] = None,
) -> dict[str, str]:
    """Write CLI overrides into the environment and return what was applied."""
    env = os.environ if environ is None else environ
    overrides = parse_cli_overrides(argv)
    env.update(overrides)
    return overrides
