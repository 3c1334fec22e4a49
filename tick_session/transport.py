"""Outbound transport sinks."""
from __future__ import annotations

from typing import Protocol

from tick_session.types import Channel


class Transport(Protocol):
    def write(self, channel: Channel, data: bytes) -> None: ...


class RecordingTransport:
    """Keeps every write in order until drained."""

    def __init__(self) -> None:
        self._writes: list[tuple[Channel, bytes]] = []

    def write(self, channel: Channel, data: bytes) -> None:
        self._writes.append((channel, data))

    def pending(self) -> int:
        return len(self._writes)

    def peek(self) -> list[tuple[Channel, bytes]]:
        return list(self._writes)

    def drain(self) -> list[tuple[Channel, bytes]]:
        snapshot = self._writes
        self._writes = []
        return snapshot
