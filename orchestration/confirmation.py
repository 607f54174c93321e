"""Confirmation gate - waits for a user decision before a score is submitted."""

import asyncio
from typing import Optional

from core.domain.errors import ConfirmationCancelled, ConfirmationTimeout
from gradeflow_sdk.logging import get_logger


class ConfirmationGate:
    """Single pending confirmation, resolved by confirm(), cancel() or a timeout."""

    def __init__(self) -> None:
        self._pending: Optional[asyncio.Future] = None
        self._logger = get_logger("orchestration.confirmation")

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def wait(self, timeout: float) -> None:
        """Block until the pending confirmation is resolved.

        Args:
            timeout: Seconds to wait before treating silence as a cancel

        Raises:
            ConfirmationCancelled: If cancel() was called
            ConfirmationTimeout: If nothing arrived within ``timeout``
        """
        if self.pending:
            raise RuntimeError("A confirmation is already pending")

        future = asyncio.get_running_loop().create_future()
        self._pending = future
        self._logger.info(f"Waiting up to {timeout:g}s for score confirmation")
        try:
            confirmed = await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            raise ConfirmationTimeout(f"No confirmation within {timeout:g}s")
        finally:
            self._pending = None

        if not confirmed:
            raise ConfirmationCancelled("Score sync cancelled by user")

    def confirm(self) -> bool:
        """Resolve the pending confirmation positively. Returns False if none is pending."""
        return self._resolve(True)

    def cancel(self) -> bool:
        """Resolve the pending confirmation negatively. Returns False if none is pending."""
        return self._resolve(False)

    def _resolve(self, value: bool) -> bool:
        if not self.pending:
            return False
        self._pending.set_result(value)
        return True
