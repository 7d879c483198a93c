"""Facade offering one operation per forecast client."""

import httpx

from app.core.config import Settings
from app.core.logging import get_logger
from app.core.tls import TransportProfile
from app.models.forecast import Forecast
from app.services.declarative import ForecastApi
from app.services.template_client import ForecastTemplateClient
from app.services.upstream import upstream_timeout
from app.services.validation import validate_forecasts
from app.services.web_client import ForecastWebClient

logger = get_logger(__name__)


class ForecastService:
    """Dispatches forecast requests to the web, declarative or template client."""

    def __init__(
        self,
        web_client: ForecastWebClient,
        declarative_client: ForecastApi,
        template_client: ForecastTemplateClient,
    ):
        self.web_client = web_client
        self.declarative_client = declarative_client
        self.template_client = template_client

    @classmethod
    def from_profile(
        cls,
        profile: TransportProfile,
        timeout: httpx.Timeout,
        async_transport: httpx.AsyncBaseTransport | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "ForecastService":
        """Create all three clients over the same transport profile.

        Args:
            profile: Shared base URL and TLS context
            timeout: Connect/read timeouts for every client
            async_transport: Optional transport override for the web client
            transport: Optional transport override for the blocking clients
        """
        return cls(
            web_client=ForecastWebClient(profile, timeout, transport=async_transport),
            declarative_client=ForecastApi(profile, timeout, transport=transport),
            template_client=ForecastTemplateClient(profile, timeout, transport=transport),
        )

    @classmethod
    def from_settings(cls, profile: TransportProfile, settings: Settings) -> "ForecastService":
        return cls.from_profile(
            profile, upstream_timeout(settings.connect_timeout, settings.read_timeout)
        )

    async def close(self) -> None:
        """Close all HTTP clients."""
        await self.web_client.close()
        self.declarative_client.close()
        self.template_client.close()

    async def via_web_client(self) -> list[Forecast]:
        """Fetch with the non-blocking client, then validate."""
        logger.info("forecast_request", client=self.web_client.name)
        candidates = await self.web_client.fetch_forecasts()
        return validate_forecasts(candidates)

    def via_declarative_client(self) -> list[Forecast]:
        """Fetch with the declarative client, which validates on its own."""
        logger.info("forecast_request", client=self.declarative_client.name)
        return self.declarative_client.get_forecasts()

    def via_template_client(self) -> list[Forecast]:
        """Fetch with the blocking template client, then validate."""
        logger.info("forecast_request", client=self.template_client.name)
        candidates = self.template_client.fetch_forecasts()
        return validate_forecasts(candidates)
