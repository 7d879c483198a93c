"""Application configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "Forecast Client Demo Service"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080

    # Upstream forecast service
    upstream_base_url: str = "https://localhost:5001"
    connect_timeout: float = 5.0
    read_timeout: float = 10.0

    # Mutual TLS material
    client_keystore_path: str = "certs/client.keystore"
    client_keystore_password: str = ""
    server_truststore_path: str = "certs/server.truststore"
    server_truststore_password: str = ""

    # Logging
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
