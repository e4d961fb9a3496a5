"""
Batch client for the deps.dev version API.

All dependencies of a manifest are looked up with a single POST to the
``versionbatch`` endpoint. The response is returned as pretty-printed JSON
text, or as a short fallback message when anything goes wrong.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from .cli_config import NetworkConfig
from .dependency import DependencyDeclaration
from .error_handling import (
    ErrorCategory,
    ResponseDecodeError,
    TransportError,
    get_error_handler,
    log_network_error,
)
from .structured_logging import log_batch_request, log_batch_response

TRANSPORT_FAILURE_MESSAGE = "API request failed. Error: {error}."
DECODE_FAILURE_MESSAGE = "API response could not be decoded. Error: {error}."


@dataclass(frozen=True)
class BatchEntry:
    """One version lookup inside a batch request."""

    system: str
    name: str
    version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "versionKey": {
                "system": self.system,
                "name": self.name,
                "version": self.version,
            }
        }


@dataclass(frozen=True)
class BatchQueryRequest:
    """The complete body of a versionbatch request."""

    entries: Tuple[BatchEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {"requests": [entry.to_dict() for entry in self.entries]}

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class BatchQueryResult:
    """Text produced by a batch query and whether it is a real response."""

    text: str
    ok: bool
    status_code: Optional[int] = None


def build_batch_request(
    dependencies: Iterable[DependencyDeclaration], system: str = "CARGO"
) -> BatchQueryRequest:
    """
    Map declarations to batch entries, keeping their order.

    Empty versions are forwarded as empty strings.
    """
    return BatchQueryRequest(
        entries=tuple(
            BatchEntry(system=system, name=dep.name, version=dep.version)
            for dep in dependencies
        )
    )


def format_response_body(body: bytes, encoding: str = "utf-8") -> str:
    """
    Decode a response body and re-serialize it as indented JSON.

    Raises:
        ResponseDecodeError: If ``encoding`` is unknown, the bytes are not
            valid in it, or the text is not JSON
    """
    try:
        text = body.decode(encoding)
    except UnicodeDecodeError as e:
        raise ResponseDecodeError(f"Invalid {encoding} in response body: {e}") from e
    except LookupError as e:
        raise ResponseDecodeError(f"Unknown response encoding: {encoding}") from e

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseDecodeError(f"Response body is not valid JSON: {e}") from e

    # Object keys come out sorted
    return json.dumps(parsed, indent=2, ensure_ascii=False, sort_keys=True)


class DepsDevClient:
    """
    Client for the deps.dev versionbatch endpoint.

    The HTTP client can be injected; otherwise one is created for each query
    and closed afterwards.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        config: Optional[NetworkConfig] = None,
    ):
        self.http_client = http_client
        self.config = config or NetworkConfig()

    def _post(self, client: httpx.Client, request: BatchQueryRequest) -> httpx.Response:
        response = client.post(
            self.config.endpoint,
            content=request.to_json().encode("utf-8"),
            follow_redirects=self.config.follow_redirects,
        )
        response.raise_for_status()
        return response

    def send(self, request: BatchQueryRequest) -> httpx.Response:
        """
        Issue the batch request.

        Raises:
            TransportError: If the request fails or returns an error status
        """
        log_batch_request(self.config.endpoint, len(request), self.config.ecosystem)
        start_time = time.time()

        try:
            if self.http_client is not None:
                response = self._post(self.http_client, request)
            else:
                with httpx.Client(timeout=self.config.timeout_seconds) as client:
                    response = self._post(client, request)
        except httpx.HTTPStatusError as e:
            log_batch_response(e.response.status_code, len(e.response.content))
            log_network_error(
                f"deps.dev returned HTTP {e.response.status_code}",
                "batch_client",
                "send",
                url=self.config.endpoint,
                status_code=e.response.status_code,
                exception=e,
            )
            raise TransportError(str(e)) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log_network_error(
                f"Batch request failed: {e}",
                "batch_client",
                "send",
                url=self.config.endpoint,
                exception=e,
            )
            raise TransportError(str(e)) from e

        response_time_ms = (time.time() - start_time) * 1000
        log_batch_response(response.status_code, len(response.content), response_time_ms)
        return response

    def query_with_status(
        self, dependencies: Iterable[DependencyDeclaration]
    ) -> BatchQueryResult:
        """
        Look up every dependency in one request.

        Returns:
            BatchQueryResult: pretty-printed response with ``ok=True``, or a
                fallback message with ``ok=False``
        """
        request = build_batch_request(dependencies, self.config.ecosystem)

        try:
            response = self.send(request)
        except TransportError as e:
            return BatchQueryResult(
                text=TRANSPORT_FAILURE_MESSAGE.format(error=e), ok=False
            )

        try:
            text = format_response_body(response.content, self.config.response_encoding)
        except ResponseDecodeError as e:
            get_error_handler().error(
                ErrorCategory.NETWORK,
                "Could not decode deps.dev response",
                "batch_client",
                "query_with_status",
                exception=e,
                details={"encoding": self.config.response_encoding},
            )
            return BatchQueryResult(
                text=DECODE_FAILURE_MESSAGE.format(error=e),
                ok=False,
                status_code=response.status_code,
            )

        return BatchQueryResult(text=text, ok=True, status_code=response.status_code)

    def query(self, dependencies: Iterable[DependencyDeclaration]) -> str:
        """Look up every dependency and return displayable text."""
        return self.query_with_status(dependencies).text
