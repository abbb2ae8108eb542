"""
Best-effort scan counting.

Increments are submitted to a small thread pool so the lookup chain never
waits on them. A failed increment is logged and counted in CloudWatch;
it never changes the redirect. Increments are at-least-once: a retried
scan is counted again.

Lambda freezes the execution environment once the handler returns, so the
redirect handler calls flush() with a short timeout before answering.
Anything still running after that is logged and left to finish on thaw.
"""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

from shared import dynamo
from shared.logging_utils import mask_code
from shared.metrics import emit_metric

from .lookup_chain import ScanCode

logger = logging.getLogger(__name__)

SCAN_ACCOUNTING_WORKERS = int(os.environ.get("SCAN_ACCOUNTING_WORKERS", "2"))
SCAN_ACCOUNTING_FLUSH_SECONDS = float(os.environ.get("SCAN_ACCOUNTING_FLUSH_SECONDS", "2.0"))

_executor: Optional[ThreadPoolExecutor] = None


def _get_executor() -> ThreadPoolExecutor:
    """Get the shared executor, creating it lazily on first use."""
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=SCAN_ACCOUNTING_WORKERS,
            thread_name_prefix="scan-accounting",
        )
    return _executor


class ScanAccountant:
    """Fire-and-forget scan counter increments."""

    def __init__(
        self,
        increment: Optional[Callable[[str], int]] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self._increment = increment or dynamo.increment_scan_count
        self._executor = executor
        self.pending: list[Future] = []

    def record(self, scan_code: ScanCode) -> Optional[Future]:
        """
        Submit a +1 increment for the scan code and return immediately.

        Returns:
            The Future for the increment, or None if it could not be submitted
        """
        executor = self._executor or _get_executor()
        try:
            future = executor.submit(self._increment, scan_code.code)
        except RuntimeError as e:
            # Executor shut down; accounting is best-effort
            logger.error(f"Could not schedule scan increment for {mask_code(scan_code.code)}: {e}")
            return None

        future.add_done_callback(lambda f: self._on_done(scan_code, f))
        self.pending.append(future)
        return future

    def flush(self, timeout: Optional[float] = None) -> int:
        """
        Wait up to `timeout` seconds for submitted increments.

        Args:
            timeout: Seconds to wait (defaults to SCAN_ACCOUNTING_FLUSH_SECONDS)

        Returns:
            Number of increments still running when the wait ended
        """
        if not self.pending:
            return 0

        if timeout is None:
            timeout = SCAN_ACCOUNTING_FLUSH_SECONDS
        done, not_done = wait(self.pending, timeout=timeout)
        self.pending = list(not_done)

        if not_done:
            logger.warning(
                f"{len(not_done)} scan increment(s) still pending after {timeout}s",
                extra={"pending": len(not_done), "completed": len(done)},
            )
        return len(not_done)

    def _on_done(self, scan_code: ScanCode, future: Future) -> None:
        if future.cancelled():
            logger.warning(f"Scan increment for {mask_code(scan_code.code)} was cancelled")
            return

        error = future.exception()
        if error is None:
            logger.debug(
                f"Scan count for {mask_code(scan_code.code)} is now {future.result()}",
            )
            return

        logger.error(
            f"Failed to increment scan count for {mask_code(scan_code.code)}: {error}",
            extra={"qr_code_id": scan_code.id},
        )
        emit_metric("ScanAccountingFailure")

