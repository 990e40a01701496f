"""Object key naming.

Keys are a pure function of the operation index and a prefix::

    object_key(7, "s3pt/")  ->  "s3pt/0000000007"

An UPLOAD run followed by a DOWNLOAD run with the same prefix and an
equal or smaller ``--number`` reads back exactly the objects that were
written. Changing the prefix or the index width breaks that contract.
"""

from __future__ import annotations

from s3pt.config import DEFAULT_KEY_PREFIX, KEY_INDEX_WIDTH


def object_key(index: int, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """Derive the object key for an operation index.

    Args:
        index: Zero-based operation index.
        prefix: Key prefix shared by the upload and download runs.

    Returns:
        The object key.

    Raises:
        ValueError: If the index is negative.
    """
    if index < 0:
        raise ValueError(f"Operation index must be >= 0: {index}")
    return f"{prefix}{index:0{KEY_INDEX_WIDTH}d}"
