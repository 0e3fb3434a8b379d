"""The game server: accepts players, simulates the world and broadcasts it."""

from __future__ import annotations

import argparse
import logging
import random
import socket
import threading
import time
from typing import Dict, List, Optional, Tuple

from .boss import Boss
from .game_map import GameMap
from .moving_trap import MovingTrap
from .packet import Packet, PacketError, PacketType
from .player import PlayerData

logger = logging.getLogger(__name__)

PORT = 5000
UNINIT_NAME = "UninitPlayer"
SEND_INTERVAL = 0.01
UPDATE_INTERVAL = 0.02
_ACCEPT_POLL = 0.2

_TRAP_LAYOUT = (
    (0.0, 0.0, "T1"),
    (3.0, 0.0, "T2"),
    (3.0, 0.0, "T3"),
    (3.0, 0.0, "T4"),
    (3.0, 0.0, "T5"),
)


class GameWorld:
    """Shared world state plus the threads that serve and update it."""

    def __init__(
        self,
        host: str = "0.0.0.0",
        port: int = PORT,
        boss: Optional[Boss] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.boss = boss if boss is not None else Boss()
        self.game_map = GameMap(-32, 2, -2, 10)
        self.traps: List[MovingTrap] = [
            MovingTrap(x, y, self.game_map, trap_id, rng=rng)
            for x, y, trap_id in _TRAP_LAYOUT
        ]
        self.ready = threading.Event()
        self.address: Optional[Tuple[str, int]] = None
        self._players: Dict[socket.socket, PlayerData] = {}
        self._players_lock = threading.RLock()
        self._listen_sock: Optional[socket.socket] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def players(self) -> Dict[socket.socket, PlayerData]:
        with self._players_lock:
            return dict(self._players)

    def start(self) -> None:
        """Bind, start the background loops and accept clients until stopped."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(socket.SOMAXCONN)
        except OSError:
            sock.close()
            raise
        sock.settimeout(_ACCEPT_POLL)
        self._listen_sock = sock
        self.address = sock.getsockname()
        self._running = True
        for loop in (self._send_loop, self._boss_loop, self._map_loop):
            threading.Thread(target=loop, daemon=True).start()
        self.ready.set()
        self._accept_connections()

    def stop(self) -> None:
        """Stop every loop and close all sockets."""
        self._running = False
        if self._listen_sock is not None:
            self._listen_sock.close()
            self._listen_sock = None
        with self._players_lock:
            socks = list(self._players)
            self._players.clear()
        for sock in socks:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()

    def add_player(self, sock: socket.socket, player: PlayerData) -> None:
        with self._players_lock:
            self._players[sock] = player

    def remove_player(self, sock: socket.socket) -> Optional[PlayerData]:
        with self._players_lock:
            return self._players.pop(sock, None)

    def get_player(self, sock: socket.socket) -> Optional[PlayerData]:
        with self._players_lock:
            return self._players.get(sock)

    def handle_packet(self, player: PlayerData, packet: Packet) -> None:
        """Dispatch one packet received from ``player``."""
        packet_type = packet.header.type
        if packet_type == PacketType.PLAYER_INIT:
            player.process_init(packet)
        elif packet_type == PacketType.PLAYER_UPDATE:
            player.process_update(packet)
        elif packet_type == PacketType.MONSTER_UPDATE:
            self.boss.take_damage(packet.read_i32())
        else:
            logger.error("Invalid packet type %s", packet_type)

    def update_traps(self) -> None:
        for trap in self.traps:
            trap.update()

    def build_world_packet(self) -> Packet:
        """Serialize players, traps and any boss change into a world update."""
        packet = Packet()
        packet.header.type = PacketType.WORLD_UPDATE
        packet.header.boss_acted = False

        with self._players_lock:
            players = list(self._players.values())
        packet.header.player_count = len(players)
        for player in players:
            packet.write_string(player.name)
            packet.write_f32(player.pos_x)
            packet.write_f32(player.pos_y)
            packet.write_u8(player.anim_byte)

        packet.write_u8(len(self.traps))
        for trap in self.traps:
            packet.write_string(trap.trap_id)
            packet.write_f32(trap.x)
            packet.write_f32(trap.y)

        with self.boss:
            state = self.boss.state
            if self.boss.has_state_changed():
                logger.info("BOSS state changed to %d", int(state))
                packet.header.boss_acted = True
            if self.boss.has_hp_changed():
                logger.info("BOSS HP changed to %d", self.boss.hp)
                packet.header.boss_acted = True
            if packet.header.boss_acted:
                packet.write_u8(int(state))
                packet.write_i32(self.boss.hp)
        return packet

    def _accept_connections(self) -> None:
        while self._running:
            listen_sock = self._listen_sock
            if listen_sock is None:
                break
            try:
                conn, _ = listen_sock.accept()
            except socket.timeout:
                continue
            except OSError:
                if not self._running:
                    break
                logger.error("accept failed!")
                continue
            conn.setblocking(True)
            player = PlayerData(UNINIT_NAME, conn)
            self.add_player(conn, player)
            threading.Thread(target=self._serve_client, args=(player,), daemon=True).start()

    def _serve_client(self, player: PlayerData) -> None:
        session = player.session
        try:
            while self._running:
                if session.post_recv() == 0:
                    break
                while (packet := session.extract_packet()) is not None:
                    self.handle_packet(player, packet)
        except (OSError, BufferError, PacketError) as exc:
            logger.error("connection error for %s: %s", player.name, exc)
        finally:
            logger.info("player %s is disconnected!", player.name)
            self.remove_player(player.sock)
            player.sock.close()

    def _send_loop(self) -> None:
        while self._running:
            with self._players_lock:
                socks = list(self._players)
            if not socks:
                time.sleep(SEND_INTERVAL)
                continue
            payload = self.build_world_packet().serialize()
            for sock in socks:
                try:
                    sock.sendall(payload)
                except OSError:
                    pass
            time.sleep(SEND_INTERVAL)

    def _boss_loop(self) -> None:
        while self._running:
            self.boss.update()
            time.sleep(UPDATE_INTERVAL)

    def _map_loop(self) -> None:
        while self._running:
            self.update_traps()
            time.sleep(UPDATE_INTERVAL)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="bossarena", description="Run the boss arena game server.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    world = GameWorld(args.host, args.port)
    try:
        world.start()
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        logger.error("server failed: %s", exc)
        return 1
    finally:
        world.stop()
    return 0