"""
Cooperative cancellation shared by the orchestrator and the pipelines.
"""

import threading

from golden_layer.core.exceptions import OperationCancelled


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Nothing is interrupted mid-stage: pipelines and the orchestrator check the
    token at stage and step boundaries.
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def raise_if_cancelled(self, where: str = "") -> None:
        """
        Raises:
            OperationCancelled: If the token has fired
        """
        if self._event.is_set():
            suffix = f" before {where}" if where else ""
            raise OperationCancelled(f"Operation cancelled{suffix}: {self._reason}")
