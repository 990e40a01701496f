"""S3 client backends.

Available clients:
    S3ClientBoto3  - boto3 (default, works everywhere)
    S3ClientMinio  - MinIO Python SDK (optional, requires minio package)

Both expose the two primitives the benchmark needs::

    client.put_object(bucket, key, data, content_encoding=None)
    client.get_object(bucket, key) -> bytes

A single instance is shared by every worker thread. Neither client
mutates its configuration after construction.
"""

from __future__ import annotations

import socket
from io import BytesIO
from typing import Any

import boto3
import urllib3
from botocore.config import Config

from s3pt.config import CONNECT_TIMEOUT, READ_TIMEOUT, S3_VERIFY_SSL
from s3pt.errors import ConfigurationError

if not S3_VERIFY_SSL:
    # Self-signed certificates are common on test clusters
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

# botocore signer names
SIGNATURE_VERSIONS: dict[str, str] = {
    "v4": "s3v4",
    "legacy": "s3",
}


class S3ClientBoto3:
    """boto3 S3 client bound to one endpoint.

    boto3 clients are thread-safe, so one client (and its connection
    pool, sized to the worker count) serves the whole run.
    """

    def __init__(
        self,
        *,
        endpoint_url: str,
        access_key_id: str,
        secret_access_key: str,
        region: str,
        signing: str = "v4",
        keep_alive: bool = False,
        max_connections: int = 10,
        path_style: bool = False,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.region = region
        self.signature_version = SIGNATURE_VERSIONS[signing]
        self.config = Config(
            signature_version=self.signature_version,
            tcp_keepalive=keep_alive,
            max_pool_connections=max(1, max_connections),
            retries={"max_attempts": 1, "mode": "standard"},
            connect_timeout=CONNECT_TIMEOUT,
            read_timeout=READ_TIMEOUT,
            s3={"addressing_style": "path" if path_style else "auto"},
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name=region,
            verify=S3_VERIFY_SSL,
            config=self.config,
        )

    def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_encoding: str | None = None,
    ) -> dict:
        """Upload object."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "ContentLength": len(data),
        }
        if content_encoding:
            params["ContentEncoding"] = content_encoding
        return self._client.put_object(**params)

    def get_object(self, bucket: str, key: str) -> bytes:
        """Download object."""
        response = self._client.get_object(Bucket=bucket, Key=key)
        return response["Body"].read()

    def close(self) -> None:
        """Close pooled connections."""
        self._client.close()


class S3ClientMinio:
    """MinIO Python SDK client.

    Requires the ``minio`` package to be installed. Works with any
    S3-compatible endpoint but only signs with SigV4.
    """

    def __init__(
        self,
        *,
        endpoint_url: str,
        access_key_id: str,
        secret_access_key: str,
        region: str,
        signing: str = "v4",
        keep_alive: bool = False,
        max_connections: int = 10,
        path_style: bool = False,
    ) -> None:
        """Initialize minio-py client.

        Args:
            endpoint_url: S3 endpoint URL including scheme.
            access_key_id: Access key ID.
            secret_access_key: Secret access key.
            region: Region name.
            signing: Signing scheme, only ``v4`` is supported.
            keep_alive: Enable TCP keep-alive on pooled sockets.
            max_connections: Connection pool size.
            path_style: Unused, minio-py picks the style itself.

        Raises:
            ConfigurationError: If legacy signing is requested.
            ImportError: If the minio package is not installed.
        """
        if signing != "v4":
            raise ConfigurationError(
                "The minio backend only supports SigV4 signing; "
                "use --backend boto3 with --useOldS3Signer"
            )
        try:
            from minio import Minio
        except ImportError as exc:
            raise ImportError(
                "minio package not installed. "
                "Run: pip install 's3pt[minio]'"
            ) from exc

        parsed = urllib3.util.parse_url(endpoint_url)
        self.endpoint_url = endpoint_url

        socket_options = list(
            urllib3.connection.HTTPConnection.default_socket_options
        )
        if keep_alive:
            socket_options.append(
                (socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            )
        http_client = urllib3.PoolManager(
            timeout=urllib3.Timeout(
                connect=CONNECT_TIMEOUT, read=READ_TIMEOUT,
            ),
            maxsize=max(1, max_connections),
            cert_reqs="CERT_REQUIRED" if S3_VERIFY_SSL else "CERT_NONE",
            socket_options=socket_options,
            retries=False,
        )

        self.client = Minio(
            parsed.netloc,
            access_key=access_key_id,
            secret_key=secret_access_key,
            secure=parsed.scheme == "https",
            region=region,
            http_client=http_client,
        )

    def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_encoding: str | None = None,
    ) -> Any:
        """Upload object."""
        metadata = (
            {"Content-Encoding": content_encoding}
            if content_encoding else None
        )
        return self.client.put_object(
            bucket_name=bucket,
            object_name=key,
            data=BytesIO(data),
            length=len(data),
            metadata=metadata,
        )

    def get_object(self, bucket: str, key: str) -> bytes:
        """Download object."""
        response = self.client.get_object(
            bucket_name=bucket, object_name=key,
        )
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    def close(self) -> None:
        """Close connections (no-op for minio-py)."""
