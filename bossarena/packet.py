"""Binary packet format shared by the server and its clients."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Union

_HEADER = struct.Struct("<BBBBI")
_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_I32 = struct.Struct("<i")
_F32 = struct.Struct("<f")


class PacketError(ValueError):
    """Raised when a packet is malformed or too short to read from."""


class PacketType(IntEnum):
    UNKNOWN = 0x00
    PLAYER_INIT = 0x01
    PLAYER_UPDATE = 0x02
    MONSTER_UPDATE = 0x03
    WORLD_UPDATE = 0x04


class AnimType(IntEnum):
    IDLE = 0x00
    RUN = 0x01
    JUMP = 0x02
    ATTACK = 0x03
    ROLL = 0x04
    HIT = 0x05
    DIE = 0x06


def _wrap_signed32(value: int) -> int:
    return ((int(value) + 2**31) & 0xFFFFFFFF) - 2**31


@dataclass
class PacketHeader:
    """Fixed eight-byte header that precedes every packet body."""

    type: Union[PacketType, int] = PacketType.UNKNOWN
    player_count: int = 0
    boss_acted: bool = False
    padding: int = 0
    length: int = 0

    SIZE: ClassVar[int] = _HEADER.size

    def pack(self) -> bytes:
        """Encode the header into its wire form."""
        return _HEADER.pack(
            int(self.type) & 0xFF,
            int(self.player_count) & 0xFF,
            int(self.boss_acted) & 0xFF,
            int(self.padding) & 0xFF,
            int(self.length) & 0xFFFFFFFF,
        )

    @classmethod
    def unpack(cls, data: bytes) -> PacketHeader:
        """Decode a header from the first bytes of ``data``."""
        if len(data) < cls.SIZE:
            raise PacketError("Buffer too small!")
        raw_type, count, acted, padding, length = _HEADER.unpack_from(data)
        try:
            packet_type: Union[PacketType, int] = PacketType(raw_type)
        except ValueError:
            packet_type = raw_type
        return cls(packet_type, count, bool(acted), padding, length)


@dataclass
class Packet:
    """A header plus a body that is written and read sequentially."""

    header: PacketHeader = field(default_factory=PacketHeader)
    data: bytearray = field(default_factory=bytearray)
    read_pos: int = 0

    def __post_init__(self) -> None:
        self.data = bytearray(self.data)

    def _append(self, raw: bytes) -> None:
        self.data += raw
        self.header.length = len(self.data) + PacketHeader.SIZE

    def _read(self, codec: struct.Struct):
        if self.read_pos + codec.size > len(self.data):
            raise PacketError("Lack of packet data!")
        (value,) = codec.unpack_from(self.data, self.read_pos)
        self.read_pos += codec.size
        return value

    def write_u8(self, value: int) -> None:
        self._append(_U8.pack(int(value) & 0xFF))

    def write_u16(self, value: int) -> None:
        self._append(_U16.pack(int(value) & 0xFFFF))

    def write_i32(self, value: int) -> None:
        self._append(_I32.pack(_wrap_signed32(value)))

    def write_f32(self, value: float) -> None:
        self._append(_F32.pack(value))

    def write_string(self, value: str) -> None:
        """Write a UTF-8 string prefixed by its 16-bit byte length."""
        encoded = value.encode("utf-8")
        self.write_u16(len(encoded))
        self._append(encoded)

    def read_u8(self) -> int:
        return self._read(_U8)

    def read_u16(self) -> int:
        return self._read(_U16)

    def read_i32(self) -> int:
        return self._read(_I32)

    def read_f32(self) -> float:
        return self._read(_F32)

    def read_string(self) -> str:
        length = self.read_u16()
        if self.read_pos + length > len(self.data):
            raise PacketError("Lack of packet data!")
        raw = bytes(self.data[self.read_pos:self.read_pos + length])
        self.read_pos += length
        return raw.decode("utf-8", errors="replace")

    def serialize(self) -> bytes:
        """Return the header followed by the body."""
        return self.header.pack() + bytes(self.data)

    @classmethod
    def deserialize(cls, buffer: bytes) -> Packet:
        """Build a packet from a header and everything after it."""
        header = PacketHeader.unpack(buffer)
        return cls(header, bytearray(buffer[PacketHeader.SIZE:]))