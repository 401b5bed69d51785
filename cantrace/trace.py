"""Trace table model: formats CAN messages into rows and loads them in batches."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Sequence

from cantrace.modes import CanMessage

DEFAULT_BATCH_SIZE = 1000
SCROLL_THRESHOLD = 0.8
MAX_DATA_BYTES = 8


@dataclass(frozen=True)
class TraceRow:
    """One displayed trace line."""

    time: str
    delta: str
    message: str
    channel: int
    can_id: str
    direction: str
    dlc: int
    data: str
    bus: str
    counter: int


def format_can_id(can_id: int) -> str:
    """Upper-case hex identifier, zero-padded to at least three digits."""
    return f"0X{can_id:03X}"


def format_data(data: Sequence[int], dlc: int) -> str:
    """Space-separated hex bytes, limited by the DLC and eight bytes."""
    count = max(0, min(dlc, MAX_DATA_BYTES))
    return " ".join(f"{byte:02X}" for byte in data[:count])


def _format_time(timestamp_us: int) -> str:
    millis = timestamp_us // 1000
    moment = datetime.fromtimestamp(millis // 1000)
    return f"{moment:%H:%M:%S}.{millis % 1000:03d}"


class TraceView:
    """Rows shown in the trace, filled from a message list a batch at a time."""

    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.batch_size = batch_size
        self.rows: List[TraceRow] = []
        self._messages: List[CanMessage] = []
        self._next_index = 0
        self._last_timestamp = 0

    @property
    def pending(self) -> int:
        """Messages not yet turned into rows."""
        return len(self._messages) - self._next_index

    def set_messages(self, messages: Iterable[CanMessage]) -> None:
        self.clear()
        self._messages = list(messages)
        self.load_more_messages()

    def load_more_messages(self) -> int:
        """Add the next batch of rows; return how many were added."""
        end = min(self._next_index + self.batch_size, len(self._messages))
        batch = self._messages[self._next_index:end]
        for message in batch:
            self.add_message(message)
        self._next_index = end
        return len(batch)

    def on_scroll(self, value: int, maximum: int) -> int:
        """Load more rows once the scroll position nears the bottom."""
        if value >= maximum * SCROLL_THRESHOLD:
            return self.load_more_messages()
        return 0

    def add_message(self, msg: CanMessage) -> TraceRow:
        index = len(self.rows)
        if index > 0:
            delta = f"{(msg.timestamp - self._last_timestamp) / 1000.0:.3f}"
        else:
            delta = "0.000"
        self._last_timestamp = msg.timestamp
        row = TraceRow(
            time=_format_time(msg.timestamp),
            delta=delta,
            message="Data",
            channel=msg.channel,
            can_id=format_can_id(msg.can_id),
            direction="Unknown",
            dlc=msg.dlc,
            data=format_data(msg.data, msg.dlc),
            bus="Unknown",
            counter=index + 1,
        )
        self.rows.append(row)
        return row

    def clear(self) -> None:
        self.rows.clear()
        self._last_timestamp = 0
        self._messages = []
        self._next_index = 0