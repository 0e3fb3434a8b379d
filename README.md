# bossarena

bossarena is a small multiplayer game server for a side-scrolling boss
arena. Clients connect over TCP and report their name, position and
animation state. Each client runs in its own thread. The server also keeps
these pieces of world state:

- A boss. Every two seconds it switches to a different attack state, and it
  takes the damage that clients report.
- Five traps (`T1` to `T5`). They drift around a bounded map.

While at least one player is connected, the server sends the whole world
state to every player about every 10 ms.

## Installation

```
pip install .
```

The package needs only the standard library. To run the tests, install the
`test` extra:

```
pip install .[test]
```

## Running the server

```
bossarena
bossarena --host 127.0.0.1 --port 6000
```

| Option   | Default   | Meaning                 |
|----------|-----------|-------------------------|
| `--host` | `0.0.0.0` | address to listen on    |
| `--port` | `5000`    | TCP port to listen on   |

The server writes its log lines to standard error. It logs players that
initialise or disconnect, boss state changes and boss HP changes. It runs
until it is interrupted (Ctrl+C), then closes every socket. If it cannot bind
the port, the command exits with status 1.

## Wire protocol

Every message is an 8-byte header followed by a payload. All values are
little-endian.

| Field        | Size | Meaning                                  |
|--------------|------|------------------------------------------|
| type         | u8   | `PacketType`                             |
| player count | u8   | number of players in a world update      |
| boss acted   | u8   | 1 if boss data follows in a world update |
| padding      | u8   | reserved                                 |
| length       | u32  | total length, header included            |

A string is a u16 byte length followed by its UTF-8 bytes.

Messages sent by the client:

- `PacketType.PLAYER_INIT`: the name as a string, then f32 x and f32 y.
- `PacketType.PLAYER_UPDATE`: f32 x, f32 y, then a u8 `AnimType`.
- `PacketType.MONSTER_UPDATE`: an i32 for the damage dealt to the boss.

The server logs any other packet type and ignores it. The server closes a
client's connection in three cases:

- A header gives a length shorter than the header itself.
- The client's 1024-byte receive buffer fills up.
- A packet's body is too short for its fields.

The server sends one message, `PacketType.WORLD_UPDATE`. Its body holds
these fields in order:

1. For each player: the name, f32 x, f32 y and the u8 animation. A player
   that has not sent `PLAYER_INIT` is named `UninitPlayer`.
2. A u8 trap count, then for each trap: the id, f32 x and f32 y.
3. Only when the boss state or HP has changed since the previous update: the
   u8 `BossState` and the i32 HP. The header's "boss acted" byte is then 1.

## Game rules

- The boss starts with 2500 HP. `Boss.reset()` restores it to `max_hp`
  (3000). Damage that brings the HP to zero or below sets it to 0. The next
  state switch after that makes the boss `BossState.DEAD`.
- While the boss is alive, `Boss.update()` picks a random state from `IDLE`,
  `LEFT_FIST_DOWN`, `RIGHT_FIST_DOWN` and `ALL_FIST_DOWN`. The new state is
  never the current one. It switches at most once every two seconds.
- The map spans x from -32 to 2 and y from -2 to 10, bounds included. Each
  trap moves 0.2 units per step, one step every 20 ms. When a step would
  leave the map, the trap picks a new random direction and stays where it is.

## Using the pieces as a library

```python
from bossarena.packet import Packet, PacketType
from bossarena.ring_buffer import RingBuffer

packet = Packet()
packet.header.type = PacketType.PLAYER_INIT
packet.write_string("hero")
packet.write_f32(1.0)
packet.write_f32(2.0)

buf = RingBuffer(1024)
buf.enqueue_packet(packet)
received = buf.dequeue_packet()
print(received.read_string(), received.read_f32(), received.read_f32())
```

The modules and their main names:

- `bossarena.packet`
  - `Packet`: `write_*` and `read_*` for u8, u16, i32, f32 and strings, plus
    `serialize()` and `Packet.deserialize()`.
  - `PacketHeader`: `pack()` and `PacketHeader.unpack()`.
  - Enums `PacketType` and `AnimType`.
  - `PacketError`, raised on short or malformed data.
- `bossarena.ring_buffer.RingBuffer`: a thread-safe circular byte buffer.
  - Methods: `enqueue`, `dequeue` (with `partial` and `peek`),
    `enqueue_packet`, `dequeue_packet`, `writable_span`, `commit_write`,
    `available`, `free_space` and `clear`.
- `bossarena.boss`
  - `Boss`: `update`, `take_damage`, `is_dead`, `reset`, `has_state_changed`,
    `has_hp_changed` and a `state` property. `Boss` is also a context manager
    that holds its lock.
  - `BossState`.
- `bossarena.game_map.GameMap`: `is_valid_position`.
- `bossarena.moving_trap.MovingTrap`: `update`.
- `bossarena.player`
  - `ClientSession`: `post_recv`, `feed`, `extract_packet`.
  - `PlayerData`: `process_init`, `process_update`.
- `bossarena.world`
  - `GameWorld`: `start`, `stop`, `add_player`, `remove_player`,
    `get_player`, `handle_packet`, `update_traps` and `build_world_packet`.
  - `main`, the `bossarena` command.

`GameWorld.build_world_packet()` returns the next world update without any
network traffic. `Boss` and `MovingTrap` accept a `random.Random` instance,
and `Boss` also accepts a clock function. This makes their behaviour
reproducible.

## What it does not do

The package is only the server side. It has no game client and no graphics.
Players are not authenticated. Nothing is stored between runs: world state
lives only in memory while the server runs.