import pytest
from pydantic import SecretStr

from opensearch_sink.config import ConfigurationError, RawConfig
from opensearch_sink.secrets import Password, SecretValue, as_secret


class PlainSecret:
    def __init__(self, value: str) -> None:
        self._value = value

    def reveal(self) -> str:
        return self._value


def test_password_never_shows_plaintext() -> None:
    password = Password.of("hunter2")
    assert password.reveal() == "hunter2"
    assert "hunter2" not in repr(password)
    assert "hunter2" not in str(password)


def test_as_secret_accepts_supported_inputs() -> None:
    assert as_secret(None) is None
    assert as_secret("pw").reveal() == "pw"
    assert as_secret(SecretStr("pw")).reveal() == "pw"
    custom = PlainSecret("pw")
    assert as_secret(custom) is custom
    assert isinstance(custom, SecretValue)


def test_raw_config_wraps_password_fields() -> None:
    config = RawConfig.from_mapping(
        {"password": "a", "truststore_password": SecretStr("b"), "keystore_password": PlainSecret("c")}
    )
    assert config.password.reveal() == "a"
    assert config.truststore_password.reveal() == "b"
    assert config.keystore_password.reveal() == "c"


def test_raw_config_defaults() -> None:
    config = RawConfig.from_mapping({})
    assert config.ssl is None
    assert config.ssl_certificate_verification is True
    assert config.action == "index"
    assert config.pool_max == 1000
    assert config.timeout == 60
    assert config.path is None


def test_raw_config_ignores_unknown_keys() -> None:
    config = RawConfig.from_mapping({"hosts": ["x"], "index": "logs-%{+YYYY}"})
    assert not hasattr(config, "index")


def test_raw_config_coerces_string_values() -> None:
    config = RawConfig.from_mapping({"ssl": "true", "pool_max": "5", "version": "7"})
    assert config.ssl is True
    assert config.pool_max == 5
    assert config.version == "7"


def test_invalid_values_raise_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="pool_max"):
        RawConfig.from_mapping({"pool_max": "lots"})
    with pytest.raises(ConfigurationError, match="password"):
        RawConfig.from_mapping({"password": 1234})


def test_from_mapping_returns_existing_config() -> None:
    config = RawConfig(path="x")
    assert RawConfig.from_mapping(config) is config


def test_explicit_none_keeps_nullable_options_unset() -> None:
    config = RawConfig.from_mapping(
        {"timeout": None, "ssl": None, "doc_as_upsert": None, "action": None, "password": None}
    )
    assert config.timeout is None
    assert config.ssl is None
    assert config.doc_as_upsert is False
    assert config.action == "index"
    assert config.password is None
