import logging

import httpx
import pytest


@pytest.fixture
def http_hosts() -> list[httpx.URL]:
    return [httpx.URL("http://localhost:9200")]


@pytest.fixture
def https_hosts() -> list[httpx.URL]:
    return [httpx.URL("http://node-1:9200"), httpx.URL("https://node-2:9200")]


@pytest.fixture
def sink_logger() -> logging.Logger:
    return logging.getLogger("tests.opensearch_sink")
