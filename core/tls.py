"""TLS certificate and key validation before the listener starts."""

import ssl
from pathlib import Path

from core.config import ProxySettings
from core.exceptions import ConfigurationError


def validate_tls_files(settings: ProxySettings) -> None:
    """Check that the configured cert/key pair exists and loads.

    uvicorn opens the files again when it binds; this only fails startup early
    with a readable message. Does nothing when TLS is not configured.

    Raises:
        ConfigurationError: If either file is missing or the pair cannot be loaded.
    """
    if not settings.tls_enabled:
        return

    cert_path = Path(settings.tls_cert_path)
    key_path = Path(settings.tls_key_path)
    if not cert_path.is_file():
        raise ConfigurationError(f"Failed to open certificate file {cert_path}")
    if not key_path.is_file():
        raise ConfigurationError(f"Failed to open key file {key_path}")

    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    try:
        context.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path))
    except (ssl.SSLError, OSError) as e:
        raise ConfigurationError(f"Failed to create TLS config: {e}") from e
