"""Replay protection for incoming message ids."""

from collections import deque

from .types import REPLAY_WINDOW_SIZE, DuplicateMessageIdError


class ReplayWindow:
    """
    Bounded FIFO of recently accepted remote message ids.

    Ids are compared by their decimal string, so the same id read as a signed
    or unsigned value from different code paths is still the same key as long
    as callers are consistent.

    Attributes:
        size: Maximum number of ids remembered.
        security_checks: Whether duplicates raise. When False they are only
            recorded (diagnostics).
    """

    def __init__(self, size: int = REPLAY_WINDOW_SIZE, security_checks: bool = True) -> None:
        if size <= 0:
            raise ValueError(f"Window size must be positive, got {size}")
        self.size = size
        self.security_checks = security_checks
        self._order: deque[str] = deque()
        self._seen: set[str] = set()

    def check_and_record(self, msg_id: int) -> None:
        """
        Reject a repeated id, otherwise remember it.

        Raises:
            DuplicateMessageIdError: If the id is in the window and security
                checks are enabled
        """
        key = str(msg_id)
        if key in self._seen:
            if self.security_checks:
                raise DuplicateMessageIdError(msg_id)
            self._order.remove(key)

        self._order.append(key)
        self._seen.add(key)

        while len(self._order) > self.size:
            self._seen.discard(self._order.popleft())

    def clear(self) -> None:
        """Forget every remembered id."""
        self._order.clear()
        self._seen.clear()

    def __contains__(self, msg_id: object) -> bool:
        return str(msg_id) in self._seen

    def __len__(self) -> int:
        return len(self._order)
