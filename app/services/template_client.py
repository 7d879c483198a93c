"""Classic blocking forecast client on top of httpx.Client."""

from typing import Any

import httpx

from app.core.logging import get_logger
from app.core.tls import TransportProfile
from app.services.upstream import FORECAST_PATH, decode_json, upstream_errors

logger = get_logger(__name__)


class ForecastTemplateClient:
    """Synchronous request template bound to the upstream base URL.

    Every outgoing request must target the configured upstream host.
    """

    name = "template-client"

    def __init__(
        self,
        profile: TransportProfile,
        timeout: httpx.Timeout,
        transport: httpx.BaseTransport | None = None,
    ):
        self.profile = profile
        self.client = httpx.Client(
            base_url=profile.base_url,
            verify=profile.ssl_context,
            timeout=timeout,
            transport=transport,
            event_hooks={"request": [self._verify_host]},
        )

    def close(self) -> None:
        """Close HTTP client."""
        self.client.close()

    def _verify_host(self, request: httpx.Request) -> None:
        if not self.profile.accepts_host(request.url.host):
            raise httpx.ConnectError(
                f"Host '{request.url.host}' is not the configured upstream host",
                request=request,
            )

    def get_for_json(self, url: str) -> Any:
        """GET ``url`` (relative to the base URL) and decode the JSON body.

        Raises:
            NotFoundError: If upstream answered 404
            TransportError: On connection, TLS, host or timeout failures
        """
        with upstream_errors(self.name):
            response = self.client.get(url)
            response.raise_for_status()
            payload = decode_json(response)

        logger.info("forecasts_fetched", client=self.name, status=response.status_code)
        return payload

    def fetch_forecasts(self) -> Any:
        """Fetch the forecast list, not yet validated."""
        return self.get_for_json(FORECAST_PATH)
