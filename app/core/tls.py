"""Transport profile: upstream base URL plus mutual-TLS material.

The profile is built once at startup and shared read-only by every forecast
client. Both stores are read with ``cryptography``:

* the client keystore is a password-protected PKCS#12 file holding the private
  key and certificate chain presented to the upstream service;
* the server truststore is either a PKCS#12 file (with password) or a PEM
  bundle holding the certificates the upstream service must chain to.
"""

import os
import secrets
import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path

import httpx
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from app.core.config import Settings
from app.core.errors import ConfigurationError
from app.core.logging import get_logger

logger = get_logger(__name__)

PEM_SUFFIXES = {".pem", ".crt", ".cer"}


@dataclass(frozen=True)
class TransportProfile:
    """Immutable upstream connection settings shared by all clients."""

    base_url: str
    ssl_context: ssl.SSLContext

    @property
    def host(self) -> str:
        return httpx.URL(self.base_url).host.lower()

    def accepts_host(self, host: str | None) -> bool:
        """Return True if ``host`` is the configured upstream host.

        Certificate identity is checked separately by the TLS context.
        """
        if not host:
            return False
        return host.lower().rstrip(".") == self.host


def _password_bytes(password: str) -> bytes | None:
    return password.encode() if password else None


def _read_store(path: str, description: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Cannot open {description} '{path}': {e}") from e


def _load_trust_anchors(path: str, password: str) -> list[x509.Certificate]:
    """Load the trusted upstream certificates from a PEM bundle or PKCS#12 store."""
    data = _read_store(path, "truststore")

    try:
        if Path(path).suffix.lower() in PEM_SUFFIXES:
            certificates = x509.load_pem_x509_certificates(data)
        else:
            _, certificate, additional = pkcs12.load_key_and_certificates(
                data, _password_bytes(password)
            )
            certificates = ([certificate] if certificate else []) + list(additional)
    except ValueError as e:
        raise ConfigurationError(f"Cannot read truststore '{path}': {e}") from e

    if not certificates:
        raise ConfigurationError(f"Truststore '{path}' contains no certificates")

    return certificates


def _load_identity(path: str, password: str, passphrase: bytes) -> bytes:
    """Load the client identity as one PEM blob.

    The key is re-encrypted with ``passphrase``, so it never reaches disk in
    clear text, whether or not the keystore itself has a password.
    """
    data = _read_store(path, "keystore")
    secret = _password_bytes(password)

    try:
        key, certificate, additional = pkcs12.load_key_and_certificates(data, secret)
    except ValueError as e:
        raise ConfigurationError(f"Cannot read keystore '{path}': {e}") from e

    if key is None or certificate is None:
        raise ConfigurationError(f"Keystore '{path}' holds no private key and certificate")

    chain = [certificate, *additional]

    return b"".join(
        [
            key.private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.BestAvailableEncryption(passphrase),
            ),
            *(cert.public_bytes(serialization.Encoding.PEM) for cert in chain),
        ]
    )


def build_ssl_context(
    trust_anchors: list[x509.Certificate],
    identity_pem: bytes,
    passphrase: bytes,
) -> ssl.SSLContext:
    """Create a client TLS context trusting only ``trust_anchors``."""
    cadata = "".join(
        cert.public_bytes(serialization.Encoding.PEM).decode("ascii") for cert in trust_anchors
    )

    # load_cert_chain only accepts file paths
    fd, identity_path = tempfile.mkstemp(suffix=".pem")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(identity_pem)

        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cadata=cadata)
        context.load_cert_chain(identity_path, password=passphrase)
    except ssl.SSLError as e:
        raise ConfigurationError(f"Cannot build TLS context: {e}") from e
    finally:
        os.unlink(identity_path)

    return context


def load_transport_profile(settings: Settings) -> TransportProfile:
    """Build the transport profile from settings.

    Raises:
        ConfigurationError: If the base URL is not HTTPS or a store cannot be
            opened, decrypted or parsed
    """
    base_url = settings.upstream_base_url.rstrip("/")

    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid upstream base URL '{base_url}': {e}") from e

    if url.scheme != "https" or not url.host:
        raise ConfigurationError(f"Upstream base URL must be an HTTPS URL, got '{base_url}'")

    trust_anchors = _load_trust_anchors(
        settings.server_truststore_path, settings.server_truststore_password
    )
    # throwaway passphrase protecting the key in the temporary PEM file
    passphrase = secrets.token_urlsafe(32).encode()
    identity_pem = _load_identity(
        settings.client_keystore_path, settings.client_keystore_password, passphrase
    )
    context = build_ssl_context(trust_anchors, identity_pem, passphrase)

    logger.info(
        "transport_profile_loaded",
        base_url=base_url,
        trust_anchors=len(trust_anchors),
    )

    return TransportProfile(base_url=base_url, ssl_context=context)
