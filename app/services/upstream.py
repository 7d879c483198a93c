"""Rules shared by every forecast client for talking to the upstream service."""

from contextlib import contextmanager
from typing import Any, Iterator

import httpx

from app.core.errors import NotFoundError, TransportError
from app.core.logging import get_logger

logger = get_logger(__name__)

FORECAST_PATH = "/WeatherForecast"


def upstream_timeout(connect: float, read: float) -> httpx.Timeout:
    """Explicit connect/read timeouts for upstream calls."""
    return httpx.Timeout(read, connect=connect)


@contextmanager
def upstream_errors(client_name: str) -> Iterator[None]:
    """Translate httpx failures raised inside the block into upstream errors.

    Args:
        client_name: Name of the calling client, used in logs and details

    Raises:
        NotFoundError: If upstream answered 404
        TransportError: On any other error status or transport failure
    """
    try:
        yield
    except httpx.HTTPStatusError as e:
        response = e.response
        message = (
            f"Upstream responded with {response.status_code} {response.reason_phrase} "
            f"for GET {e.request.url}"
        )
        logger.error(
            "upstream_status_error",
            client=client_name,
            status=response.status_code,
            url=str(e.request.url),
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(message, detail=f"Called via {client_name}") from e
        raise TransportError(message, detail=f"Called via {client_name}") from e
    except httpx.HTTPError as e:
        reason = str(e) or type(e).__name__
        logger.error("upstream_call_failed", client=client_name, error=reason)
        raise TransportError(
            f"Upstream call failed: {reason}",
            detail=f"{type(e).__name__} raised by {client_name}",
        ) from e


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON body.

    Raises:
        TransportError: If the body is not JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise TransportError(
            f"Upstream returned a body that is not JSON for GET {response.request.url}",
            detail=str(e),
        ) from e
