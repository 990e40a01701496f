"""S3 Client Factory — Creates the storage client for a run.

Usage::

    from s3pt.s3_client import ClientSettings, S3Client, SigningScheme

    settings = ClientSettings(
        access_key="...",
        secret_key="...",
        endpoint="s3.amazonaws.com",
        signing=SigningScheme.LEGACY,     # Ceph / radosgw without SigV4
    )
    client = S3Client(settings)           # Default backend: boto3
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from s3pt.config import (
    DEFAULT_S3_ENDPOINT,
    S3_BACKEND,
    S3_REGION,
)
from s3pt.errors import ConfigurationError, SchedulerFatalError

_BACKEND_CACHE: dict[str, type] = {}


class SigningScheme(enum.Enum):
    """Request signing scheme used by the client."""

    V4 = "v4"
    LEGACY = "legacy"


@dataclass(frozen=True)
class ClientSettings:
    """Construction parameters for a storage client."""

    access_key: str
    secret_key: str
    endpoint: str = DEFAULT_S3_ENDPOINT
    use_http: bool = False
    keep_alive: bool = False
    signing: SigningScheme = SigningScheme.V4
    region: str = S3_REGION
    backend: str | None = None
    max_connections: int = 10

    def __repr__(self) -> str:
        return (
            f"ClientSettings(endpoint={self.endpoint_url!r}, "
            f"signing={self.signing.name}, keep_alive={self.keep_alive}, "
            f"backend={self.backend or S3_BACKEND!r})"
        )

    @property
    def endpoint_url(self) -> str:
        """Endpoint with scheme; an explicit scheme in ``endpoint`` wins."""
        endpoint = self.endpoint.strip().rstrip("/")
        if "://" in endpoint:
            return endpoint
        scheme = "http" if self.use_http else "https"
        return f"{scheme}://{endpoint}"

    @property
    def path_style(self) -> bool:
        # Virtual-host addressing only works reliably against AWS itself
        return DEFAULT_S3_ENDPOINT not in self.endpoint

    def validate(self) -> None:
        """Check credentials and endpoint.

        Raises:
            ConfigurationError: If a required value is missing.
        """
        if not self.access_key:
            raise ConfigurationError("Access key is required")
        if not self.secret_key:
            raise ConfigurationError("Secret key is required")
        if not self.endpoint or not self.endpoint.strip():
            raise ConfigurationError("Endpoint is required")


def _get_backend_class(backend_name: str | None = None) -> type:
    """Resolve backend name to class (cached).

    Args:
        backend_name: Backend identifier. If None, uses
            ``S3_BACKEND`` from config.

    Returns:
        The S3 client class for the requested backend.

    Raises:
        ConfigurationError: If the backend name is not recognized.
    """
    name = (backend_name or S3_BACKEND).lower()
    if name in _BACKEND_CACHE:
        return _BACKEND_CACHE[name]

    from s3pt.backends import S3ClientBoto3, S3ClientMinio

    mapping: dict[str, type] = {
        "boto3": S3ClientBoto3,
        "minio": S3ClientMinio,
    }

    cls = mapping.get(name)
    if cls is None:
        available = ", ".join(mapping.keys())
        raise ConfigurationError(
            f"Unknown S3 backend '{name}'. "
            f"Available: {available}"
        )

    _BACKEND_CACHE[name] = cls
    return cls


def S3Client(settings: ClientSettings) -> Any:
    """Create a storage client from settings.

    Args:
        settings: Credentials, endpoint and transport options.

    Returns:
        Client instance for the selected backend.

    Raises:
        ConfigurationError: If the settings are invalid.
        SchedulerFatalError: If the client library fails to build
            the client.
    """
    settings.validate()
    cls = _get_backend_class(settings.backend)

    try:
        return cls(
            endpoint_url=settings.endpoint_url,
            access_key_id=settings.access_key,
            secret_access_key=settings.secret_key,
            region=settings.region,
            signing=settings.signing.value,
            keep_alive=settings.keep_alive,
            max_connections=settings.max_connections,
            path_style=settings.path_style,
        )
    except ConfigurationError:
        raise
    except Exception as exc:
        raise SchedulerFatalError(
            f"Cannot create {cls.__name__} for "
            f"{settings.endpoint_url}: {exc}"
        ) from exc
