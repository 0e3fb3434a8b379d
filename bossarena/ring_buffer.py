"""Thread-safe circular byte buffer that frames packets."""

from __future__ import annotations

import threading
from typing import Optional

from .packet import Packet, PacketError, PacketHeader

DEFAULT_CAPACITY = 1024


class RingBuffer:
    """Circular buffer; one slot is always kept free to tell full from empty."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 2:
            raise ValueError("capacity must be at least 2")
        self._buffer = bytearray(capacity)
        self._capacity = capacity
        self._head = 0
        self._tail = 0
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def head(self) -> int:
        return self._head

    @property
    def tail(self) -> int:
        return self._tail

    def available(self) -> int:
        """Number of bytes waiting to be read."""
        if self._tail >= self._head:
            return self._tail - self._head
        return self._capacity - self._head + self._tail

    def free_space(self) -> int:
        """Number of bytes that can still be written."""
        return self._capacity - self.available() - 1

    def writable_span(self) -> memoryview:
        """Contiguous free region starting at the write position."""
        with self._lock:
            size = min(self.free_space(), self._capacity - self._tail)
            return memoryview(self._buffer)[self._tail:self._tail + size]

    def commit_write(self, count: int) -> None:
        """Advance the write position after filling the writable span."""
        with self._lock:
            self._tail = (self._tail + count) % self._capacity

    def enqueue(self, data: bytes, partial: bool = False) -> int:
        """Write ``data``; return the number of bytes stored (0 if rejected)."""
        with self._lock:
            data = bytes(data)
            size = len(data)
            free = self.free_space()
            if free < size:
                if not partial or free == 0:
                    return 0
                size = free
            first = min(size, self._capacity - self._tail)
            self._buffer[self._tail:self._tail + first] = data[:first]
            rest = size - first
            if rest:
                self._buffer[:rest] = data[first:size]
            self._tail = (self._tail + size) % self._capacity
            return size

    def dequeue(self, size: int, partial: bool = False, peek: bool = False) -> Optional[bytes]:
        """Read ``size`` bytes, or ``None`` if that many are not available."""
        with self._lock:
            available = self.available()
            if available < size:
                if not partial or available == 0:
                    return None
                size = available
            first = min(size, self._capacity - self._head)
            out = bytes(self._buffer[self._head:self._head + first])
            rest = size - first
            if rest:
                out += bytes(self._buffer[:rest])
            if not peek:
                self._head = (self._head + size) % self._capacity
            return out

    def enqueue_packet(self, packet: Packet) -> bool:
        """Store a whole packet; return False if it does not fit."""
        with self._lock:
            if self.free_space() < packet.header.length:
                return False
            self.enqueue(packet.header.pack())
            self.enqueue(bytes(packet.data))
            return True

    def dequeue_packet(self) -> Optional[Packet]:
        """Remove and return the next complete packet, if one is buffered."""
        with self._lock:
            if self.available() < PacketHeader.SIZE:
                return None
            raw_header = self.dequeue(PacketHeader.SIZE, peek=True)
            header = PacketHeader.unpack(raw_header)
            if header.length < PacketHeader.SIZE:
                raise PacketError(f"Invalid packet length {header.length}")
            if self.available() < header.length:
                return None
            self.dequeue(PacketHeader.SIZE)
            body = self.dequeue(header.length - PacketHeader.SIZE)
            return Packet(header, bytearray(body))

    def clear(self) -> None:
        with self._lock:
            self._head = self._tail = 0