"""CAN message record and the online/offline measurement start hooks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import MutableSequence, Optional

logger = logging.getLogger(__name__)

INFO_CAN_ID = 0xFFFFFFFF
ONLINE_MARKER = 2
OFFLINE_MARKER = 1


@dataclass
class CanMessage:
    """One CAN frame as recorded in a log; the timestamp is in microseconds."""

    timestamp: int = 0
    channel: int = 0
    can_id: int = 0
    dlc: int = 0
    data: bytes = b""


def _info_message(marker: int) -> CanMessage:
    return CanMessage(
        timestamp=0,
        channel=1,
        can_id=INFO_CAN_ID,
        dlc=0,
        data=bytes([marker]),
    )


def start_online_mode() -> None:
    """Announce that online measurement has started."""
    logger.debug("Online mode started!")


def start_online_mode_data(
    text: str, log: Optional[MutableSequence[CanMessage]] = None
) -> None:
    """Log ``text`` and append the online info frame to ``log`` if one is given."""
    logger.debug("%s", text)
    if log is not None:
        log.append(_info_message(ONLINE_MARKER))


def start_offline_mode() -> None:
    """Announce that offline measurement has started."""
    logger.debug("Offline mode started!")


def start_offline_mode_data(
    text: str, log: Optional[MutableSequence[CanMessage]] = None
) -> None:
    """Log ``text`` and append the offline info frame to ``log`` if one is given."""
    logger.debug("%s", text)
    if log is not None:
        log.append(_info_message(OFFLINE_MARKER))