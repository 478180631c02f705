"""
Resolve raw sink options into the options consumed by the HTTP client.

`resolve` is a pure function of its inputs apart from log output: it never
writes back into the caller's mapping and returns frozen records only.
`build` hands the resolved options to a client constructor and returns
whatever that constructor returns.
"""

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

from opensearch_sink.client import SinkHttpClient
from opensearch_sink.config import (
    EXTERNAL_VERSION_TYPES,
    ClientOptions,
    ClientSettings,
    ConfigurationError,
    Credentials,
    HostDescriptor,
    RawConfig,
    RequestPolicy,
    TlsSettings,
    UpdateOptions,
)

logger = logging.getLogger(__name__)

_SLASHES = re.compile(r"/+")

UNSAFE_VERIFICATION_WARNING = "\n".join(
    [
        "** WARNING ** Detected UNSAFE options in opensearch output configuration!",
        "** WARNING ** You have enabled encryption but DISABLED certificate verification.",
        "** WARNING ** To make sure your data is secure change :ssl_certificate_verification to true",
    ]
)


def dedup_slashes(url: str) -> str:
    """Collapse every run of consecutive slashes into a single one."""
    return _SLASHES.sub("/", url)


@dataclass(frozen=True, slots=True)
class ResolvedPaths:
    base: str | None
    bulk: str
    sniffing: str
    healthcheck: str


def resolve_paths(config: RawConfig) -> ResolvedPaths:
    """Derive base, bulk, sniffing and healthcheck paths from the user's path options."""
    # A missing base path behaves like an empty one in the derived defaults.
    base = config.path if config.path is not None else ""
    return ResolvedPaths(
        base=dedup_slashes(f"/{config.path}/") if config.path is not None else None,
        bulk=dedup_slashes(
            f"/{config.bulk_path}" if config.bulk_path is not None else f"/{base}/_bulk"
        ),
        sniffing=dedup_slashes(
            f"/{config.sniffing_path}" if config.sniffing_path is not None else f"/{base}/_nodes/http"
        ),
        healthcheck=dedup_slashes(
            f"/{config.healthcheck_path}" if config.healthcheck_path is not None else f"/{base}"
        ),
    )


def setup_ssl(
    log: logging.Logger,
    config: RawConfig,
    hosts: Sequence[HostDescriptor],
) -> TlsSettings | None:
    """
    Reconcile TLS material into a TlsSettings record.

    Returns None when TLS was neither requested nor implied by an https host,
    and a disabled record when it was explicitly turned off.
    """
    ssl_enabled = config.ssl
    if any(host.scheme == "https" for host in hosts):
        ssl_enabled = True
    if ssl_enabled is None:
        return None
    if ssl_enabled is False:
        return TlsSettings(enabled=False)

    cacert, truststore = config.cacert, config.truststore
    client_cert, client_key = config.tls_certificate, config.tls_key
    has_client_cert, has_client_key = client_cert is not None, client_key is not None

    if cacert is not None and truststore is not None:
        raise ConfigurationError('Use either "cacert" or "truststore" when configuring the CA certificate')
    if has_client_cert and not has_client_key:
        raise ConfigurationError('"tls_key" is missing')
    if has_client_key and not has_client_cert:
        raise ConfigurationError('"tls_certificate" is missing')

    truststore_password = None
    if cacert is None and truststore is not None and config.truststore_password is not None:
        truststore_password = config.truststore_password.reveal()

    keystore_password = None
    if config.keystore is not None and config.keystore_password is not None:
        keystore_password = config.keystore_password.reveal()

    verify = config.ssl_certificate_verification
    if not verify:
        log.warning(UNSAFE_VERIFICATION_WARNING)

    return TlsSettings(
        enabled=True,
        ca_file=cacert,
        truststore=truststore,
        truststore_password=truststore_password,
        keystore=config.keystore,
        keystore_password=keystore_password,
        client_cert=client_cert,
        client_key=client_key,
        verify=verify,
    )


def setup_basic_auth(config: RawConfig) -> Credentials | None:
    """Percent-encode user and password when both are present."""
    if config.user is None or config.password is None:
        return None
    password = config.password.reveal()
    if not password:
        return None
    return Credentials(user=quote(config.user, safe=""), password=quote(password, safe=""))


def validate_request_policy(config: RawConfig) -> RequestPolicy:
    """Check action/versioning compatibility and build the request policy."""
    external_versioning = config.version_type in EXTERNAL_VERSION_TYPES

    if external_versioning and config.version is None:
        raise ConfigurationError("External versioning requires the presence of a version number.")
    if config.action == "create" and external_versioning:
        raise ConfigurationError("External versioning is not supported by the create action.")
    if config.doc_as_upsert and config.scripted_upsert:
        raise ConfigurationError("doc_as_upsert and scripted_upsert are mutually exclusive.")
    if config.action == "update" and not config.document_id:
        raise ConfigurationError("Specifying action => 'update' needs a document_id.")
    if config.action == "update" and external_versioning:
        raise ConfigurationError("External versioning is not supported by the update action.")

    update = None
    if config.action == "update":
        update = UpdateOptions(
            doc_as_upsert=config.doc_as_upsert,
            script_var_name=config.script_var_name,
            script_type=config.script_type,
            script_lang=config.script_lang,
            scripted_upsert=config.scripted_upsert,
        )
    return RequestPolicy(
        action=config.action,
        version_type=config.version_type,
        version=config.version,
        document_id=config.document_id,
        update=update,
    )


def resolve(
    log: logging.Logger | None,
    hosts: Sequence[HostDescriptor],
    params: Mapping[str, Any] | RawConfig,
) -> ClientOptions:
    """Turn raw options and target hosts into ClientOptions, or raise ConfigurationError."""
    log = log or logger
    config = RawConfig.from_mapping(params)
    paths = resolve_paths(config)

    if log.isEnabledFor(logging.DEBUG):
        log.debug(
            "Normalizing http path",
            extra={"path": config.path, "normalized": paths.base},
        )

    client_settings = ClientSettings(
        pool_max=config.pool_max,
        pool_max_per_route=config.pool_max_per_route,
        check_connection_timeout=config.validate_after_inactivity,
        http_compression=config.http_compression,
        headers=MappingProxyType(dict(config.custom_headers or {})),
        legacy=config.legacy_template,
        proxy=config.proxy,
        ssl=setup_ssl(log, config, hosts),
        path=paths.base,
        parameters=MappingProxyType(dict(config.parameters)) if config.parameters is not None else None,
    )
    auth = setup_basic_auth(config)
    policy = validate_request_policy(config)

    return ClientOptions(
        client_settings=client_settings,
        hosts=tuple(hosts),
        logger=log,
        metric=config.metric,
        resurrect_delay=config.resurrect_delay,
        sniffing=config.sniffing,
        sniffer_delay=config.sniffing_delay if config.sniffing else None,
        timeout=config.timeout,
        target_bulk_bytes=config.target_bulk_bytes,
        bulk_path=paths.bulk,
        sniffing_path=paths.sniffing,
        healthcheck_path=paths.healthcheck,
        auth=auth,
        policy=policy,
        auth_type=MappingProxyType(dict(config.auth_type)) if config.auth_type is not None else None,
    )


def build(
    log: logging.Logger | None,
    hosts: Sequence[HostDescriptor],
    params: Mapping[str, Any] | RawConfig,
    client_factory: Callable[[ClientOptions], Any] = SinkHttpClient.from_options,
) -> Any:
    """Resolve the options and pass them to the HTTP client constructor."""
    return client_factory(resolve(log, hosts, params))
