"""Core S3 Operations — put/get with optional bounded retry.

The executor calls these instead of the client directly. With
``retries=0`` (the default) each call is a single request.

Usage::

    from s3pt.s3_ops import s3_get, s3_put

    s3_put(client, bucket, key, data, content_encoding="gzip")
    data = s3_get(client, bucket, key, retries=2)
"""

from __future__ import annotations

import logging
from typing import Any

from s3pt.utils import retry_with_backoff

__all__ = [
    "s3_get",
    "s3_put",
]


def s3_put(
    client: Any,
    bucket: str,
    key: str,
    data: bytes,
    *,
    content_encoding: str | None = None,
    retries: int = 0,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> Any:
    """PUT object.

    Args:
        client: Storage client instance.
        bucket: Target bucket.
        key: Object key to write.
        data: Request body.
        content_encoding: ``Content-Encoding`` header, if any.
        retries: Extra attempts for transient errors.
        logger: Optional logger for retry events.

    Returns:
        Response from put_object.
    """
    return retry_with_backoff(
        lambda: client.put_object(
            bucket, key, data, content_encoding=content_encoding,
        ),
        max_retries=retries,
        logger=logger,
    )


def s3_get(
    client: Any,
    bucket: str,
    key: str,
    *,
    retries: int = 0,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> bytes:
    """GET object.

    Args:
        client: Storage client instance.
        bucket: Source bucket.
        key: Object key to retrieve.
        retries: Extra attempts for transient errors.
        logger: Optional logger for retry events.

    Returns:
        Object data as bytes.
    """
    return retry_with_backoff(
        lambda: client.get_object(bucket, key),
        max_retries=retries,
        logger=logger,
    )
