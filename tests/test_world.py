import socket
import threading
import time

import pytest

from bossarena.packet import Packet, PacketError, PacketHeader, PacketType
from bossarena.player import PlayerData
from bossarena.world import PORT, UNINIT_NAME, GameWorld, main


@pytest.fixture
def world():
    w = GameWorld("127.0.0.1", 0)
    yield w
    w.stop()


@pytest.fixture
def player_sock():
    left, right = socket.socketpair()
    yield left
    left.close()
    right.close()


def _parse_world(packet):
    players = [
        (packet.read_string(), packet.read_f32(), packet.read_f32(), packet.read_u8())
        for _ in range(packet.header.player_count)
    ]
    traps = [
        (packet.read_string(), packet.read_f32(), packet.read_f32())
        for _ in range(packet.read_u8())
    ]
    boss = (packet.read_u8(), packet.read_i32()) if packet.header.boss_acted else None
    assert packet.read_pos == len(packet.data)
    return players, traps, boss


def test_default_port_and_traps():
    w = GameWorld()
    assert w.port == PORT
    assert [trap.trap_id for trap in w.traps] == ["T1", "T2", "T3", "T4", "T5"]
    assert (w.traps[0].x, w.traps[0].y) == (0.0, 0.0)
    assert all((trap.x, trap.y) == (3.0, 0.0) for trap in w.traps[1:])


def test_add_get_remove_player(world, player_sock):
    player = PlayerData(UNINIT_NAME, player_sock)
    world.add_player(player_sock, player)
    assert world.get_player(player_sock) is player
    assert world.remove_player(player_sock) is player
    assert world.get_player(player_sock) is None
    assert world.remove_player(player_sock) is None


def test_handle_monster_update_damages_boss(world, player_sock):
    player = PlayerData("p", player_sock)
    before = world.boss.hp
    packet = Packet(PacketHeader(PacketType.MONSTER_UPDATE))
    packet.write_i32(300)
    world.handle_packet(player, packet)
    assert world.boss.hp == before - 300


def test_handle_player_packets(world, player_sock):
    player = PlayerData(UNINIT_NAME, player_sock)
    init = Packet(PacketHeader(PacketType.PLAYER_INIT))
    init.write_string("hero")
    init.write_f32(1.5)
    init.write_f32(2.5)
    world.handle_packet(player, init)
    assert (player.name, player.pos_x, player.pos_y) == ("hero", 1.5, 2.5)

    update = Packet(PacketHeader(PacketType.PLAYER_UPDATE))
    update.write_f32(-1.0)
    update.write_f32(4.0)
    update.write_u8(2)
    world.handle_packet(player, update)
    assert (player.pos_x, player.pos_y, player.anim_byte) == (-1.0, 4.0, 2)


def test_handle_invalid_type_changes_nothing(world, player_sock):
    player = PlayerData("p", player_sock)
    hp = world.boss.hp
    packet = Packet(PacketHeader(PacketType.WORLD_UPDATE))
    packet.write_i32(50)
    world.handle_packet(player, packet)
    assert world.boss.hp == hp
    assert (player.name, player.pos_x, player.pos_y) == ("p", 0.0, 0.0)


def test_handle_short_monster_update_raises(world, player_sock):
    player = PlayerData("p", player_sock)
    with pytest.raises(PacketError):
        world.handle_packet(player, Packet(PacketHeader(PacketType.MONSTER_UPDATE)))


def test_update_traps_stay_on_map(world):
    for _ in range(500):
        world.update_traps()
    for trap in world.traps:
        assert world.game_map.is_valid_position(int(trap.x), int(trap.y))


def test_build_world_packet_contents(world, player_sock):
    player = PlayerData("hero", player_sock)
    player.pos_x, player.pos_y = 1.5, -0.5
    world.add_player(player_sock, player)

    packet = world.build_world_packet()
    assert packet.header.type == PacketType.WORLD_UPDATE
    assert packet.header.player_count == 1
    assert packet.header.length == PacketHeader.SIZE + len(packet.data)

    parsed = Packet.deserialize(packet.serialize())
    players, traps, boss = _parse_world(parsed)
    assert players == [("hero", 1.5, -0.5, player.anim_byte)]
    assert [t[0] for t in traps] == [trap.trap_id for trap in world.traps]
    assert boss is None


def test_build_world_packet_reports_boss_change_once(world):
    world.boss.take_damage(100)
    first = world.build_world_packet()
    assert first.header.boss_acted
    _, _, boss = _parse_world(Packet.deserialize(first.serialize()))
    assert boss == (int(world.boss.state), world.boss.hp)

    second = world.build_world_packet()
    assert not second.header.boss_acted
    assert _parse_world(Packet.deserialize(second.serialize()))[2] is None


def _recv_exact(sock, size):
    chunks = b""
    while len(chunks) < size:
        chunk = sock.recv(size - len(chunks))
        if not chunk:
            raise ConnectionError("closed")
        chunks += chunk
    return chunks


def test_server_round_trip():
    world = GameWorld("127.0.0.1", 0)
    thread = threading.Thread(target=world.start, daemon=True)
    thread.start()
    try:
        assert world.ready.wait(5)
        client = socket.create_connection(world.address, timeout=5)
        try:
            init = Packet(PacketHeader(PacketType.PLAYER_INIT))
            init.write_string("hero")
            init.write_f32(1.5)
            init.write_f32(2.5)
            client.sendall(init.serialize())

            found = None
            deadline = time.monotonic() + 5
            while found is None and time.monotonic() < deadline:
                header = PacketHeader.unpack(_recv_exact(client, PacketHeader.SIZE))
                body = _recv_exact(client, header.length - PacketHeader.SIZE)
                packet = Packet(header, bytearray(body))
                assert header.type == PacketType.WORLD_UPDATE
                players, traps, _ = _parse_world(packet)
                assert len(traps) == len(world.traps)
                found = next((p for p in players if p[0] == "hero"), None)
            assert found is not None
            assert found[1:3] == (1.5, 2.5)
        finally:
            client.close()
    finally:
        world.stop()
        thread.join(5)
    assert not thread.is_alive()
    assert world.players == {}


def test_main_fails_when_port_is_taken():
    occupier = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        occupier.bind(("127.0.0.1", 0))
        occupier.listen(1)
        port = occupier.getsockname()[1]
        assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1
    finally:
        occupier.close()