"""
OpenSearch sink client wrapper.

Typed helpers around the shared AsyncClient that talk to the resolved bulk,
sniffing and healthcheck endpoints with consistent error reporting.
"""

import gzip
import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from opensearch_sink.config import ClientOptions
from opensearch_sink.http_client import create_http_client

logger = logging.getLogger(__name__)

NDJSON = "application/x-ndjson"


class SinkApiError(RuntimeError):
    """Represents failures when communicating with the cluster."""


BulkAction = tuple[Mapping[str, Any], Mapping[str, Any] | None]


def _ndjson_line(document: Mapping[str, Any]) -> bytes:
    return json.dumps(document, separators=(",", ":")).encode() + b"\n"


def _ndjson_payloads(actions: Iterable[BulkAction], limit: int) -> Iterator[bytes]:
    """
    Serialize (action, source) pairs into NDJSON payloads of at most `limit` bytes.

    Payloads are only cut between pairs, so an action line always travels with
    its source line; a single pair larger than `limit` is sent on its own.
    Actions without a source (delete) contribute one line.
    """
    buffer: list[bytes] = []
    size = 0
    for action, source in actions:
        entry = _ndjson_line(action)
        if source is not None:
            entry += _ndjson_line(source)
        if buffer and size + len(entry) > limit:
            yield b"".join(buffer)
            buffer, size = [], 0
        buffer.append(entry)
        size += len(entry)
    if buffer:
        yield b"".join(buffer)


@dataclass(slots=True)
class SinkHttpClient:
    """Typed wrapper around the shared AsyncClient."""

    _client: httpx.AsyncClient
    options: ClientOptions

    @classmethod
    def from_options(cls, options: ClientOptions) -> "SinkHttpClient":
        """Factory that builds the client from resolved options."""
        return cls(create_http_client(options), options)

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def healthcheck(self) -> bool:
        """Return True when the healthcheck endpoint answers with a success status."""
        path = self.options.healthcheck_path
        response = await self._send("HEAD", path)
        healthy = not response.is_error
        logger.debug(
            "Healthcheck completed",
            extra={"path": path, "status_code": response.status_code, "healthy": healthy},
        )
        return healthy

    async def sniff(self) -> dict[str, Any]:
        """Fetch node information from the sniffing endpoint."""
        return await self._request("GET", self.options.sniffing_path)

    async def bulk(self, actions: Iterable[BulkAction]) -> list[dict[str, Any]]:
        """
        Send (action, source) pairs, split by the target bulk size.

        Returns one response payload per HTTP request issued. Raises SinkApiError
        as soon as a response reports item level errors.
        """
        compress = self.options.client_settings.http_compression
        headers = {"Content-Type": NDJSON}
        if compress:
            headers["Content-Encoding"] = "gzip"

        results = []
        for payload in _ndjson_payloads(actions, self.options.target_bulk_bytes):
            logger.debug(
                "Sending bulk request",
                extra={"path": self.options.bulk_path, "bytes": len(payload), "compressed": compress},
            )
            body = gzip.compress(payload) if compress else payload
            data = await self._request("POST", self.options.bulk_path, content=body, headers=headers)
            if data.get("errors"):
                raise self._bulk_error(data)
            results.append(data)
        return results

    def _bulk_error(self, data: dict[str, Any]) -> SinkApiError:
        failed = [
            result
            for item in data.get("items", [])
            for result in item.values()
            if isinstance(result, dict) and result.get("error")
        ]
        first = failed[0]["error"] if failed else None
        reason = first.get("reason", first) if isinstance(first, dict) else first
        logger.warning(
            "OpenSearch rejected bulk items",
            extra={"path": self.options.bulk_path, "failed": len(failed)},
        )
        return SinkApiError(
            f"Bulk request to {self.options.bulk_path} had {len(failed)} failed item(s): {reason or 'no reason provided.'}"
        )

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        def _transport_error(message: str, *, exc: Exception | None = None) -> SinkApiError:
            logger.error(
                message,
                extra={"method": method, "path": path},
                exc_info=exc,
            )
            return SinkApiError(message)

        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise _transport_error(
                f"OpenSearch request timed out ({method} {path}).",
                exc=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise _transport_error(
                f"OpenSearch request failed ({method} {path}): {exc!s}",
                exc=exc,
            ) from exc

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Normalized request handler for calls that expect a JSON body."""
        response = await self._send(method, path, **kwargs)

        if response.is_error:
            snippet = response.text.strip()
            if len(snippet) > 512:
                snippet = f"{snippet[:512]}..."
            logger.warning(
                "OpenSearch responded with error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "content": snippet,
                },
            )
            raise SinkApiError(
                f"OpenSearch error ({response.status_code}) during {method} {path}: {snippet or 'no body provided.'}"
            )

        try:
            data: dict[str, Any] = response.json()
        except json.JSONDecodeError as exc:
            logger.error(
                "OpenSearch returned invalid JSON",
                extra={"method": method, "path": path},
            )
            raise SinkApiError(f"OpenSearch returned invalid JSON during {method} {path}.") from exc

        return data
