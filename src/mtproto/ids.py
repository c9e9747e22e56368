"""Message identifier and sequence number generation."""

import math
import time
from typing import Callable

import structlog

from .types import MSG_ID_STEP

logger = structlog.get_logger(__name__)


def msg_id_seconds(msg_id: int) -> int:
    """Unix seconds encoded in the upper 32 bits of a message id."""
    return msg_id >> 32


class MessageIdGenerator:
    """
    Strictly increasing message ids derived from the (corrected) clock.

    A message id holds Unix seconds in bits 32-63 and the sub-second part in
    bits 2-31. The two lowest bits stay zero for client ids.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Creates a generator reading wall-clock seconds from `clock`."""
        self._clock = clock
        self.time_offset = 0
        self.last_msg_id = 0

    def next_id(self) -> int:
        """Returns a new message id, greater than any previous one."""
        now = self._clock() + self.time_offset
        seconds = math.floor(now)
        nanoseconds = math.floor((now - seconds) * 1e9)
        new_msg_id = (seconds << 32) | (nanoseconds << 2)

        if self.last_msg_id >= new_msg_id:
            new_msg_id = self.last_msg_id + MSG_ID_STEP

        self.last_msg_id = new_msg_id
        return new_msg_id

    def update_time_offset(self, correct_msg_id: int) -> int:
        """
        Adjust the time offset from a message id known to be valid.

        When the offset changes, the last id is forgotten so that the next id
        follows the corrected clock even if it is smaller than ids produced
        under the old offset.

        Args:
            correct_msg_id: A message id the server accepts (e.g. its own)

        Returns:
            The new time offset in seconds
        """
        bad = self.next_id()
        old = self.time_offset
        now = math.floor(self._clock())
        self.time_offset = msg_id_seconds(correct_msg_id) - now

        if self.time_offset != old:
            self.last_msg_id = 0
            logger.debug(
                "time_offset_updated",
                old_offset=old,
                bad_msg_id=bad,
                good_msg_id=correct_msg_id,
                new_offset=self.time_offset,
            )

        return self.time_offset

    def reset(self) -> None:
        """Forget the last id; the time offset survives."""
        self.last_msg_id = 0


class SequenceGenerator:
    """
    Sequence numbers for outgoing messages.

    Content-related messages get odd numbers and consume a slot; the rest
    (acks, pings, containers) get the current even number.
    """

    def __init__(self) -> None:
        self.sequence = 0

    def next_seq_no(self, content_related: bool) -> int:
        """Returns the sequence number for the next message."""
        if content_related:
            result = self.sequence * 2 + 1
            self.sequence += 1
            return result
        return self.sequence * 2

    def reset(self) -> None:
        """Start counting from zero again."""
        self.sequence = 0
