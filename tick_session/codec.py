"""Codec interface and the two-field XProto codec."""
from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from tick_session.types import DecodeError

_XPROTO = struct.Struct("BB")


class SignalCodec(Protocol):
    """Converts raw bytes to signals and back.

    ``decode`` raises DecodeError for malformed input.
    """

    def decode(self, raw: bytes, params: Sequence[Any]) -> Any: ...

    def encode(self, signal: Any) -> bytes: ...


@dataclass(frozen=True, slots=True)
class XProto:
    version: int
    value: int


class XProtoCodec:
    """One unsigned byte of version, one of value.

    ``params[0]``, when given, is added to the decoded value. Bytes past
    the second are ignored.
    """

    def decode(self, raw: bytes, params: Sequence[Any] = ()) -> XProto:
        if len(raw) < _XPROTO.size:
            raise DecodeError(
                f"XProto needs {_XPROTO.size} bytes, got {len(raw)}"
            )
        version, value = _XPROTO.unpack_from(raw)
        if params:
            value += params[0]
        return XProto(version=version, value=value)

    def encode(self, signal: XProto) -> bytes:
        try:
            return _XPROTO.pack(signal.version, signal.value)
        except struct.error as exc:
            raise ValueError(f"Cannot encode {signal!r}: {exc}") from exc
