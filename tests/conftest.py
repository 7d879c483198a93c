"""Test configuration and fixtures."""

import datetime
import ssl
from typing import Callable

import httpx
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from app.core.tls import TransportProfile
from app.main import app
from app.services.forecasts import ForecastService
from app.services.upstream import upstream_timeout

UPSTREAM_URL = "https://upstream.test"

FORECAST_PATHS = [
    "/demoservice/client/v1/forecasts/use-web-client",
    "/demoservice/client/v1/forecasts/use-feign-client",
    "/demoservice/client/v1/forecasts/use-rest-template",
]


@pytest.fixture
def profile():
    """Transport profile pointing at a fake upstream."""
    return TransportProfile(base_url=UPSTREAM_URL, ssl_context=ssl.create_default_context())


@pytest.fixture
def forecasts_payload():
    """Valid upstream forecast list."""
    return [
        {
            "date": "2024-01-01T00:00:00.000",
            "temperatureCelsius": 10,
            "temperatureFahrenheit": 50,
            "summary": "ok",
        },
        {
            "date": "2024-01-02T12:30:15.250",
            "temperatureCelsius": -20,
            "temperatureFahrenheit": -4,
            "summary": "Freezing",
        },
        {
            "date": "2024-01-03T06:00:00.999",
            "temperatureCelsius": 55,
            "temperatureFahrenheit": 131,
        },
    ]


@pytest.fixture
async def upstream(profile):
    """Install a ForecastService whose clients talk to a mock upstream.

    Call the returned function with a request handler; it returns the service.
    """
    services = []

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> ForecastService:
        service = ForecastService.from_profile(
            profile,
            upstream_timeout(1.0, 1.0),
            async_transport=httpx.MockTransport(handler),
            transport=httpx.MockTransport(handler),
        )
        app.state.forecast_service = service
        services.append(service)
        return service

    yield install

    for service in services:
        await service.close()
    if hasattr(app.state, "forecast_service"):
        del app.state.forecast_service


def respond_with(status_code: int, **kwargs) -> Callable[[httpx.Request], httpx.Response]:
    """Handler answering every request the same way."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, **kwargs)

    return handler


def refuse_connection(request: httpx.Request) -> httpx.Response:
    """Handler simulating an unreachable upstream."""
    raise httpx.ConnectError("[Errno 111] Connection refused", request=request)


def _self_signed(common_name: str):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return key, certificate


@pytest.fixture
def stores(tmp_path):
    """Client keystores and server truststores as throwaway files."""
    client_key, client_cert = _self_signed("demo-client")
    _, server_cert = _self_signed("upstream.test")

    keystore = tmp_path / "client.keystore"
    keystore.write_bytes(
        pkcs12.serialize_key_and_certificates(
            b"client",
            client_key,
            client_cert,
            None,
            serialization.BestAvailableEncryption(b"client-secret"),
        )
    )
    open_keystore = tmp_path / "open-client.keystore"
    open_keystore.write_bytes(
        pkcs12.serialize_key_and_certificates(
            b"client",
            client_key,
            client_cert,
            None,
            serialization.NoEncryption(),
        )
    )
    truststore = tmp_path / "server.truststore"
    truststore.write_bytes(
        pkcs12.serialize_key_and_certificates(
            None,
            None,
            None,
            [server_cert],
            serialization.BestAvailableEncryption(b"server-secret"),
        )
    )
    pem_truststore = tmp_path / "server.pem"
    pem_truststore.write_bytes(server_cert.public_bytes(serialization.Encoding.PEM))

    return {
        "keystore": keystore,
        "open_keystore": open_keystore,
        "truststore": truststore,
        "pem_truststore": pem_truststore,
    }
