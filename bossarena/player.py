"""Connected players and the receive side of their connections."""

from __future__ import annotations

import logging
import socket
from typing import Optional, Union

from .packet import AnimType, Packet
from .ring_buffer import DEFAULT_CAPACITY, RingBuffer

logger = logging.getLogger(__name__)


class ClientSession:
    """A client socket together with the buffer that frames its incoming packets."""

    def __init__(self, sock: socket.socket, capacity: int = DEFAULT_CAPACITY) -> None:
        self.sock = sock
        self.ring_buffer = RingBuffer(capacity)

    def post_recv(self) -> int:
        """Receive into the buffer's free space; return the byte count (0 when closed).

        Raises BufferError if the buffer has no room left.
        """
        span = self.ring_buffer.writable_span()
        try:
            if not len(span):
                raise BufferError("receive buffer is full")
            received = self.sock.recv_into(span)
        finally:
            span.release()
        self.ring_buffer.commit_write(received)
        return received

    def feed(self, data: bytes) -> None:
        """Append already received bytes; raise BufferError if they do not fit."""
        data = bytes(data)
        if not data:
            return
        if self.ring_buffer.enqueue(data) == 0:
            raise BufferError("receive buffer is full")

    def extract_packet(self) -> Optional[Packet]:
        """Return the next complete packet, or None if none is buffered yet."""
        return self.ring_buffer.dequeue_packet()


class PlayerData:
    """State of one player as reported by its client."""

    def __init__(
        self, name: str, sock: socket.socket, capacity: int = DEFAULT_CAPACITY
    ) -> None:
        self.name = name
        self.pos_x = 0.0
        self.pos_y = 0.0
        self.anim_type: Union[AnimType, int] = AnimType.IDLE
        self.session = ClientSession(sock, capacity)

    @property
    def sock(self) -> socket.socket:
        return self.session.sock

    @property
    def anim_byte(self) -> int:
        return int(self.anim_type) & 0xFF

    def process_init(self, packet: Packet) -> None:
        """Apply a player-init packet: name followed by position."""
        name = packet.read_string()
        x = packet.read_f32()
        y = packet.read_f32()
        self.name = name
        self.pos_x, self.pos_y = x, y
        logger.info("Player %s initialized at (%s, %s)", name, x, y)

    def process_update(self, packet: Packet) -> None:
        """Apply a player-update packet: position followed by animation."""
        x = packet.read_f32()
        y = packet.read_f32()
        raw_anim = packet.read_u8()
        self.pos_x, self.pos_y = x, y
        try:
            self.anim_type = AnimType(raw_anim)
        except ValueError:
            self.anim_type = raw_anim