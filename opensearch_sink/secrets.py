"""Secret value capability used for passwords in the sink configuration."""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from pydantic import SecretStr


@runtime_checkable
class SecretValue(Protocol):
    """Anything that can hand out a sensitive string on demand."""

    def reveal(self) -> str:
        """Return the plaintext value."""


@dataclass(frozen=True, slots=True)
class Password:
    """SecretValue backed by pydantic's SecretStr so it never shows up in reprs or logs."""

    _secret: SecretStr = field(repr=False)

    @classmethod
    def of(cls, value: str) -> "Password":
        return cls(SecretStr(value))

    def reveal(self) -> str:
        return self._secret.get_secret_value()

    def __str__(self) -> str:
        return "**********"


def as_secret(value: object) -> SecretValue | None:
    """Coerce raw input into a SecretValue, keeping absence as None."""
    if value is None:
        return None
    if isinstance(value, SecretValue):
        return value
    if isinstance(value, SecretStr):
        return Password(value)
    if isinstance(value, str):
        return Password.of(value)
    raise ValueError(f"Expected a secret or string, got {type(value).__name__}.")
