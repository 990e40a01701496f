"""Payload generation for write operations.

The body is built once per run and shared read-only by every worker.
Content is deterministic alphanumeric filler; the benchmark measures
transport and storage cost, not content entropy.
"""

from __future__ import annotations

import gzip
import random
import string
from dataclasses import dataclass

from s3pt.config import PAYLOAD_BLOCK_SIZE, PAYLOAD_SEED

_FILLER_CHARS = (string.ascii_letters + string.digits).encode("ascii")


@dataclass(frozen=True)
class Payload:
    """An immutable request body.

    Attributes:
        body: Bytes sent on the wire.
        size: Logical (uncompressed) length in bytes.
        content_encoding: ``"gzip"`` when ``body`` is compressed.
    """

    body: bytes
    size: int
    content_encoding: str | None = None

    @property
    def compressed(self) -> bool:
        return self.content_encoding == "gzip"


def generate_filler(size: int, *, seed: int = PAYLOAD_SEED) -> bytes:
    """Generate ``size`` bytes of deterministic alphanumeric filler.

    One seeded block of ``PAYLOAD_BLOCK_SIZE`` bytes is repeated up to
    ``size``, so memory stays close to the payload itself.

    Args:
        size: Number of bytes to generate.
        seed: Seed for the filler block.

    Returns:
        Filler bytes.
    """
    rng = random.Random(seed)
    block = bytes(rng.choices(_FILLER_CHARS, k=min(size, PAYLOAD_BLOCK_SIZE)))
    if len(block) == size:
        return block
    repeats, remainder = divmod(size, len(block))
    return block * repeats + block[:remainder]


class PayloadGenerator:
    """Builds the upload body for a run.

    Args:
        size: Uncompressed payload size in bytes.
        gzip: Compress the body and mark it with ``Content-Encoding``.
    """

    def __init__(self, size: int, *, gzip: bool = False) -> None:
        self.size = size
        self.gzip = gzip
        self._payload = self._build()

    def _build(self) -> Payload:
        content = generate_filler(self.size)
        if not self.gzip:
            return Payload(body=content, size=self.size)
        return Payload(
            body=gzip.compress(content, mtime=0),
            size=self.size,
            content_encoding="gzip",
        )

    def generate(self) -> Payload:
        """Return the shared payload (safe to call from any thread)."""
        return self._payload
