"""Non-blocking forecast client on top of httpx.AsyncClient."""

from typing import Any

import httpx

from app.core.logging import get_logger
from app.core.tls import TransportProfile
from app.services.upstream import FORECAST_PATH, decode_json, upstream_errors

logger = get_logger(__name__)


class ForecastWebClient:
    """Asynchronous client; error statuses are raised from a response hook.

    The returned data is not validated here, callers run the validator.
    """

    name = "web-client"

    def __init__(
        self,
        profile: TransportProfile,
        timeout: httpx.Timeout,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=profile.base_url,
            verify=profile.ssl_context,
            timeout=timeout,
            transport=transport,
            event_hooks={"response": [self._raise_on_error_status]},
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    @staticmethod
    async def _raise_on_error_status(response: httpx.Response) -> None:
        if not response.is_success:
            await response.aread()
            response.raise_for_status()

    async def fetch_forecasts(self) -> Any:
        """Fetch the forecast list.

        Returns:
            Decoded JSON body, not yet validated

        Raises:
            NotFoundError: If upstream answered 404
            TransportError: On connection, TLS or timeout failures
        """
        with upstream_errors(self.name):
            response = await self.client.get(FORECAST_PATH)
            payload = decode_json(response)

        logger.info("forecasts_fetched", client=self.name, status=response.status_code)
        return payload
