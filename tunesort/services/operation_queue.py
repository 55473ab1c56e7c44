"""Batched dispatch of deferred file operations."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Optional

from ..core.errors import SettingsError
from ..core.models import OperationOutcome


logger = logging.getLogger(__name__)

Operation = Callable[[], Any]


class OperationQueue:
    """Collects deferred operations and runs them in bounded batches.

    When ``batch_size`` operations are pending they are submitted together
    to a thread pool and all of them are awaited before control returns.
    A failing operation never cancels its siblings, and every queued
    operation is attempted exactly once.
    """

    def __init__(self, batch_size: int = 50, max_workers: Optional[int] = None):
        """Initialize the queue.

        Args:
            batch_size: Operations per batch; also the peak concurrency.
            max_workers: Thread count, defaults to batch_size.
        """
        if batch_size < 1:
            raise SettingsError("Batch size must be at least 1", context={"batch_size": batch_size})
        self._batch_size = batch_size
        self._max_workers = max_workers or batch_size
        self._pending: list[tuple[Any, Operation]] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        self._dispatched = 0

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def dispatched(self) -> int:
        """Number of operations attempted so far."""
        return self._dispatched

    def queue_operation(self, operation: Operation, key: Any = None) -> list[OperationOutcome]:
        """Add an operation; dispatch a batch if the queue is full.

        Args:
            operation: Zero-argument callable. Its return value, if a Path,
                is reported as the outcome's target path.
            key: Identifies the operation in its outcome.

        Returns:
            Outcomes of the batch dispatched by this call, in queue order,
            or an empty list if nothing was dispatched.
        """
        self._pending.append((key, operation))
        if len(self._pending) >= self._batch_size:
            return self._dispatch()
        return []

    def flush_queue(self) -> list[OperationOutcome]:
        """Dispatch any remaining partial batch and wait for it."""
        if not self._pending:
            return []
        return self._dispatch()

    def _dispatch(self) -> list[OperationOutcome]:
        batch, self._pending = self._pending, []
        executor = self._get_executor()

        futures: list[tuple[Any, Future]] = [
            (key, executor.submit(operation)) for key, operation in batch
        ]
        wait([future for _, future in futures])
        self._dispatched += len(batch)

        outcomes = []
        for key, future in futures:
            error = future.exception()
            if error is None:
                result = future.result()
                target = result if isinstance(result, Path) else None
                outcomes.append(OperationOutcome(key=key, success=True, target_path=target))
            else:
                outcomes.append(OperationOutcome(key=key, success=False, error=error))

        failed = sum(1 for o in outcomes if not o.success)
        logger.debug(f"Batch of {len(batch)} finished ({failed} failed)")
        return outcomes

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="tunesort-op",
            )
        return self._executor

    def close(self) -> list[OperationOutcome]:
        """Flush pending work and release the worker threads."""
        outcomes = self.flush_queue()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        return outcomes

    def __enter__(self) -> "OperationQueue":
        return self

    def __exit__(self, *args) -> None:
        self.close()
