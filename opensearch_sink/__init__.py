"""
OpenSearch sink client configuration.

Raw user options are resolved into frozen connection and request settings
by `opensearch_sink.builder`, then handed to the httpx-based client.
"""

from opensearch_sink.builder import build, resolve
from opensearch_sink.config import ClientOptions, ConfigurationError, RawConfig

__all__ = ["ClientOptions", "ConfigurationError", "RawConfig", "build", "resolve"]
