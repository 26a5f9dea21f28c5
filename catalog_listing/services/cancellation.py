from __future__ import annotations
import itertools

from ..domain.errors import CycleCancelled

_cycle_ids = itertools.count(1)


class CancellationToken:
    """
    One per resolution cycle. Cancellation is cooperative: the cycle checks
    the token after each await and before writing any result.
    """
    def __init__(self) -> None:
        self.cycle_id = next(_cycle_ids)
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CycleCancelled(self.cycle_id)

    def __repr__(self) -> str:
        return f"CancellationToken(cycle_id={self.cycle_id}, cancelled={self._cancelled})"
