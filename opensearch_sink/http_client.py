"""HTTP client factory for talking to an OpenSearch cluster."""

import ssl
from urllib.parse import unquote

import httpx

from opensearch_sink.config import ClientOptions, ConfigurationError, TlsSettings


def _ssl_context(tls: TlsSettings) -> ssl.SSLContext:
    if tls.truststore is not None or tls.keystore is not None:
        raise ConfigurationError(
            '"truststore" and "keystore" are not supported by this client; use "cacert" and "tls_certificate"/"tls_key"'
        )
    context = ssl.create_default_context(cafile=tls.ca_file)
    if tls.client_cert is not None and tls.client_key is not None:
        context.load_cert_chain(certfile=tls.client_cert, keyfile=tls.client_key)
    if not tls.verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _auth(options: ClientOptions) -> httpx.BasicAuth | None:
    auth_type = (options.auth_type or {}).get("type", "basic")
    if auth_type != "basic":
        raise ConfigurationError(f"Unsupported auth_type '{auth_type}'.")
    if options.auth is None:
        return None
    return httpx.BasicAuth(unquote(options.auth.user), unquote(options.auth.password))


def _base_url(options: ClientOptions) -> httpx.URL:
    if not options.hosts:
        raise ConfigurationError("At least one host is required.")
    host = httpx.URL(str(options.hosts[0]))
    # Paths and credentials come from the "path" and "user"/"password" options only.
    if host.userinfo:
        raise ConfigurationError("Hosts must not carry credentials; use the \"user\" and \"password\" options instead.")
    if host.path not in ("", "/"):
        raise ConfigurationError(f"Host '{host}' must not carry a path; use the \"path\" option instead.")
    scheme = "https" if options.client_settings.ssl and options.client_settings.ssl.enabled else host.scheme
    return httpx.URL(scheme=scheme, host=host.host, port=host.port)


def create_http_client(options: ClientOptions) -> httpx.AsyncClient:
    """
    Build an AsyncClient configured from the resolved sink options.

    Only the first host is used as base URL; node pooling and sniffing are
    handled by callers that keep the full host list from the options.
    `check_connection_timeout` has no httpx counterpart and is not applied.
    """
    settings = options.client_settings
    verify: ssl.SSLContext | bool = True
    if settings.ssl is not None and settings.ssl.enabled:
        verify = _ssl_context(settings.ssl)

    return httpx.AsyncClient(
        base_url=_base_url(options),
        auth=_auth(options),
        headers=settings.headers,
        params=settings.parameters,
        proxy=settings.proxy,
        verify=verify,
        timeout=options.timeout,
        limits=httpx.Limits(
            max_connections=settings.pool_max,
            max_keepalive_connections=settings.pool_max_per_route,
        ),
    )
