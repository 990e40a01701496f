"""Operation executor — runs one work item against the storage client."""

from __future__ import annotations

import time

from s3pt.errors import classify_error
from s3pt.logging_setup import get_logger
from s3pt.models import (
    Operation,
    OperationResult,
    RunConfiguration,
    WorkItem,
)
from s3pt.payload import PayloadGenerator
from s3pt.s3_ops import s3_get, s3_put


class OperationExecutor:
    """Executes single uploads or downloads and times them.

    Errors raised by the client are never propagated: they come back
    as failed results so one bad request cannot abort the run.

    Args:
        config: The run configuration.
        payloads: Payload source for uploads. Built from the
            configuration when omitted.
    """

    def __init__(
        self,
        config: RunConfiguration,
        payloads: PayloadGenerator | None = None,
    ) -> None:
        self.config = config
        if payloads is None and config.operation is Operation.UPLOAD:
            payloads = PayloadGenerator(config.size, gzip=config.gzip)
        self.payloads = payloads
        self.logger = get_logger(operation=config.operation.name)

    def execute(
        self,
        item: WorkItem,
        worker_id: int | None = None,
    ) -> OperationResult:
        """Execute one work item.

        Args:
            item: The operation to run.
            worker_id: Worker running the item, recorded in the result.

        Returns:
            The operation result, successful or not.
        """
        start = time.perf_counter()
        try:
            if item.operation is Operation.UPLOAD:
                nbytes = self._upload(item.key)
            else:
                nbytes = self._download(item.key)
        except Exception as exc:
            duration = time.perf_counter() - start
            error = classify_error(exc)
            self.logger.debug(
                f"failed: {error}",
                extra={
                    "worker_id": worker_id,
                    "index": item.index,
                    "key": item.key,
                    "duration_ms": round(duration * 1000, 1),
                },
            )
            return OperationResult(
                index=item.index,
                key=item.key,
                success=False,
                duration=duration,
                error=error,
                worker_id=worker_id,
            )

        return OperationResult(
            index=item.index,
            key=item.key,
            success=True,
            duration=time.perf_counter() - start,
            bytes=nbytes,
            worker_id=worker_id,
        )

    def _upload(self, key: str) -> int:
        payload = self.payloads.generate()
        s3_put(
            self.config.client,
            self.config.bucket,
            key,
            payload.body,
            content_encoding=payload.content_encoding,
            retries=self.config.retries,
            logger=self.logger,
        )
        return len(payload.body)

    def _download(self, key: str) -> int:
        data = s3_get(
            self.config.client,
            self.config.bucket,
            key,
            retries=self.config.retries,
            logger=self.logger,
        )
        return len(data) if data is not None else 0
