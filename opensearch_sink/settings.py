"""Environment-driven configuration utilities for the OpenSearch sink."""

import json
import os
from dataclasses import dataclass, field
from typing import Any

import httpx
from dotenv import load_dotenv

from opensearch_sink.config import RawConfig

ENV_PREFIX = "OPENSEARCH_"
JSON_KEYS = frozenset({"custom_headers", "parameters", "auth_type"})


def parse_host(raw: str) -> httpx.URL:
    """Parse a host entry, defaulting to plain http when no scheme is given."""
    cleaned = raw.strip()
    if "://" not in cleaned:
        cleaned = f"http://{cleaned}"
    return httpx.URL(cleaned)


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for the target hosts and raw sink options."""

    hosts: tuple[httpx.URL, ...]
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Every sink option maps to OPENSEARCH_<OPTION>, e.g. OPENSEARCH_BULK_PATH.
        Python-dotenv is used so a local .env file works without exporting
        variables globally.
        """
        load_dotenv()

        hosts_raw = os.getenv(f"{ENV_PREFIX}HOSTS", "").strip()
        if not hosts_raw:
            raise ValueError(f"{ENV_PREFIX}HOSTS is required but was not provided.")
        hosts = tuple(parse_host(entry) for entry in hosts_raw.split(",") if entry.strip())

        params: dict[str, Any] = {}
        for name in RawConfig.model_fields:
            env_name = f"{ENV_PREFIX}{name.upper()}"
            raw = os.getenv(env_name, "").strip()
            if not raw:
                continue
            if name in JSON_KEYS:
                try:
                    params[name] = json.loads(raw)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"{env_name} must be valid JSON.") from exc
            else:
                params[name] = raw

        return cls(hosts=hosts, params=params)
