"""Interface-style HTTP clients.

A client is written as a class whose methods only declare the endpoint and
the expected return type::

    class ForecastApi(DeclarativeClient):
        @get("/WeatherForecast")
        def get_forecasts(self) -> list[Forecast]:
            ...

The ``get`` decorator replaces the method body with the generated call: it
performs the request, maps transport failures and validates the decoded body
against the return annotation. Callers therefore always receive validated
data or an ``UpstreamError``.
"""

import functools
from dataclasses import dataclass
from typing import Any, Callable, get_type_hints

import httpx
from pydantic import TypeAdapter

from app.core.logging import get_logger
from app.core.tls import TransportProfile
from app.models.forecast import Forecast
from app.services.upstream import FORECAST_PATH, decode_json, upstream_errors
from app.services.validation import validate_payload

logger = get_logger(__name__)


@dataclass(frozen=True)
class Endpoint:
    """What a declared method calls."""

    method: str
    path: str


def get(path: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Declare a GET endpoint whose body is validated against the return type."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        endpoint = Endpoint("GET", path)
        adapter = TypeAdapter(get_type_hints(func)["return"])

        @functools.wraps(func)
        def call(self: "DeclarativeClient") -> Any:
            payload = self._exchange(endpoint)
            return validate_payload(adapter, payload)

        call.endpoint = endpoint
        return call

    return decorator


class DeclarativeClient:
    """Blocking base client executing the declared endpoints."""

    name = "declarative-client"

    def __init__(
        self,
        profile: TransportProfile,
        timeout: httpx.Timeout,
        transport: httpx.BaseTransport | None = None,
    ):
        self.client = httpx.Client(
            base_url=profile.base_url,
            verify=profile.ssl_context,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def _exchange(self, endpoint: Endpoint) -> Any:
        with upstream_errors(self.name):
            response = self.client.request(endpoint.method, endpoint.path)
            response.raise_for_status()
            payload = decode_json(response)

        logger.info(
            "declared_endpoint_called",
            client=self.name,
            path=endpoint.path,
            status=response.status_code,
        )
        return payload


class ForecastApi(DeclarativeClient):
    """The upstream forecast service."""

    @get(FORECAST_PATH)
    def get_forecasts(self) -> list[Forecast]:
        """All forecasts, each validated."""
