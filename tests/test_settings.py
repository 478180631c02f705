import httpx
import pytest

from opensearch_sink import settings as settings_module
from opensearch_sink.settings import Settings, parse_host


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: None)
    monkeypatch.setenv("OPENSEARCH_HOSTS", "localhost:9200, https://secure:9201")


def test_parse_host_defaults_to_http() -> None:
    assert parse_host(" node-1:9200 ") == httpx.URL("http://node-1:9200")
    assert parse_host("https://node-2").scheme == "https"


def test_load_reads_hosts_and_options(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENSEARCH_PATH", "/es")
    monkeypatch.setenv("OPENSEARCH_SSL", "false")
    monkeypatch.setenv("OPENSEARCH_CUSTOM_HEADERS", '{"X-Team": "ingest"}')
    monkeypatch.setenv("OPENSEARCH_USER", "   ")

    loaded = Settings.load()
    assert loaded.hosts == (httpx.URL("http://localhost:9200"), httpx.URL("https://secure:9201"))
    assert loaded.params == {"path": "/es", "ssl": "false", "custom_headers": {"X-Team": "ingest"}}


def test_hosts_are_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENSEARCH_HOSTS")
    with pytest.raises(ValueError, match="OPENSEARCH_HOSTS"):
        Settings.load()


def test_json_options_must_be_valid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENSEARCH_PARAMETERS", "pipeline=main")
    with pytest.raises(ValueError, match="OPENSEARCH_PARAMETERS must be valid JSON"):
        Settings.load()
