"""Order/item identifiers and human-readable order numbers.

Ids are snowflake-style 64-bit integers rendered as decimal strings:

    41 bits  milliseconds since 2023-11-14
    10 bits  machine id (settings.ID_MACHINE_ID, 0-1023)
    12 bits  per-millisecond sequence

so ids from one instance sort by creation time and ids from instances with
distinct machine ids never collide.
"""

import threading
import time

from config.settings import settings

_EPOCH_MS = 1_700_000_000_000
_MACHINE_BITS = 10
_SEQUENCE_BITS = 12
_MAX_MACHINE_ID = (1 << _MACHINE_BITS) - 1
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SnowflakeIdGenerator:
    def __init__(self, machine_id: int = 0) -> None:
        if not 0 <= machine_id <= _MAX_MACHINE_ID:
            raise ValueError(f"machine_id must be 0-{_MAX_MACHINE_ID}, got {machine_id}")
        self._machine_id = machine_id
        self._last_ms = -1
        self._sequence = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            now = _now_ms()
            if now < self._last_ms:
                # Clock stepped back: keep issuing from the last seen millisecond
                now = self._last_ms
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    while now <= self._last_ms:
                        now = _now_ms()
            else:
                self._sequence = 0
            self._last_ms = now
            value = (
                (now - _EPOCH_MS) << (_MACHINE_BITS + _SEQUENCE_BITS)
                | self._machine_id << _SEQUENCE_BITS
                | self._sequence
            )
        return str(value)


_generator = SnowflakeIdGenerator(settings.ID_MACHINE_ID)


def generate_id() -> str:
    return _generator.next_id()


def format_order_number(prefix: str, year: int, sequence: int) -> str:
    """Display number: ('ATL', 2026, 7) -> 'ATL-2026-007'.

    Display only. Two sessions creating orders at the same time may pick the
    same sequence; lookups always go through the opaque id.
    """
    return f"{prefix}-{year}-{sequence:03d}"
