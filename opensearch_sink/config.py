"""
Typed configuration records for the OpenSearch sink client.

`RawConfig` is the validated view over the user's key/value options; the
frozen dataclasses below are what the resolver hands to the HTTP client.
Absent options stay `None` so "unset" never collapses into "false".
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import NoneType
from typing import Any, Protocol, get_args

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from opensearch_sink.secrets import SecretValue, as_secret

EXTERNAL_VERSION_TYPES = frozenset({"external", "external_gt", "external_gte"})
VALID_ACTIONS = frozenset({"index", "create", "update", "delete"})


class ConfigurationError(ValueError):
    """Raised when the sink options are inconsistent or incomplete."""


class HostDescriptor(Protocol):
    """Minimal view of a target host; `httpx.URL` satisfies it."""

    @property
    def scheme(self) -> str: ...


class RawConfig(BaseModel):
    """User-supplied sink options, one named field per recognized key."""

    model_config = ConfigDict(frozen=True, extra="ignore", arbitrary_types_allowed=True)

    # Connection pool
    pool_max: int = 1000
    pool_max_per_route: int = 100
    validate_after_inactivity: int = 10000
    http_compression: bool = False
    custom_headers: dict[str, str] | None = None
    legacy_template: bool = True
    proxy: str | None = None
    parameters: dict[str, str] | None = None

    # Request/transport behaviour
    metric: Any = None
    resurrect_delay: float = 5
    sniffing: bool = False
    sniffing_delay: float = 5
    timeout: float | None = 60
    target_bulk_bytes: int = 20 * 1024 * 1024

    # Paths
    path: str | None = None
    bulk_path: str | None = None
    sniffing_path: str | None = None
    healthcheck_path: str | None = None

    # TLS
    ssl: bool | None = None
    ssl_certificate_verification: bool = True
    cacert: str | None = None
    truststore: str | None = None
    truststore_password: Any = None
    keystore: str | None = None
    keystore_password: Any = None
    tls_certificate: str | None = None
    tls_key: str | None = None

    # Authentication
    user: str | None = None
    password: Any = None
    auth_type: dict[str, Any] | None = None

    # Versioning and actions
    action: str = "index"
    version_type: str | None = None
    version: str | int | None = None
    document_id: str | None = None
    doc_as_upsert: bool = False
    scripted_upsert: bool = False
    script_var_name: str = "event"
    script_type: str = "inline"
    script_lang: str = "painless"

    @model_validator(mode="before")
    @classmethod
    def _drop_null_defaults(cls, data: Any) -> Any:
        # An explicit None means "not set": fall back to the default unless the option is nullable.
        if not isinstance(data, Mapping):
            return data
        return {
            name: value
            for name, value in data.items()
            if value is not None
            or name not in cls.model_fields
            or NoneType in get_args(cls.model_fields[name].annotation)
            or cls.model_fields[name].default is None
        }

    @field_validator("password", "truststore_password", "keystore_password", mode="before")
    @classmethod
    def _wrap_secret(cls, value: Any) -> SecretValue | None:
        return as_secret(value)

    @field_validator("action")
    @classmethod
    def _check_action(cls, value: str) -> str:
        # Event field references (sprintf style) are resolved per event later on.
        if value in VALID_ACTIONS or "%{" in value:
            return value
        raise ValueError(
            f"Action '{value}' is invalid! Pick one of {sorted(VALID_ACTIONS)} or use a sprintf style statement"
        )

    @classmethod
    def from_mapping(cls, params: "Mapping[str, Any] | RawConfig") -> "RawConfig":
        """Validate a raw mapping, reporting schema problems as ConfigurationError."""
        if isinstance(params, RawConfig):
            return params
        try:
            return cls.model_validate(dict(params))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid sink configuration: {exc}") from exc


@dataclass(frozen=True, slots=True)
class TlsSettings:
    enabled: bool
    ca_file: str | None = None
    truststore: str | None = None
    truststore_password: str | None = field(default=None, repr=False)
    keystore: str | None = None
    keystore_password: str | None = field(default=None, repr=False)
    client_cert: str | None = None
    client_key: str | None = None
    verify: bool = True


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Connection settings that fully determine how the HTTP client connects."""

    pool_max: int
    pool_max_per_route: int
    check_connection_timeout: int
    http_compression: bool
    headers: Mapping[str, str]
    legacy: bool
    proxy: str | None = None
    ssl: TlsSettings | None = None
    path: str | None = None
    parameters: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class Credentials:
    """Percent-encoded basic auth credentials."""

    user: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class UpdateOptions:
    doc_as_upsert: bool
    script_var_name: str
    script_type: str
    script_lang: str
    scripted_upsert: bool


@dataclass(frozen=True, slots=True)
class RequestPolicy:
    """Bulk action and versioning behaviour; `update` is only set for the update action."""

    action: str
    version_type: str | None = None
    version: str | int | None = None
    document_id: str | None = None
    update: UpdateOptions | None = None


@dataclass(frozen=True, slots=True)
class ClientOptions:
    """Everything the HTTP client constructor receives."""

    client_settings: ClientSettings
    hosts: tuple[HostDescriptor, ...]
    logger: logging.Logger = field(compare=False, repr=False)
    metric: Any
    resurrect_delay: float
    target_bulk_bytes: int
    bulk_path: str
    sniffing_path: str
    healthcheck_path: str
    policy: RequestPolicy
    sniffing: bool = False
    sniffer_delay: float | None = None
    timeout: float | None = None
    auth: Credentials | None = None
    auth_type: Mapping[str, Any] | None = None

