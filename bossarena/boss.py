"""The boss monster and its timed attack pattern."""

from __future__ import annotations

import random
import threading
import time
from enum import IntEnum
from typing import Callable, Optional

STARTING_HP = 2500
MAX_HP = 3000
STATE_INTERVAL = 2.0


class BossState(IntEnum):
    IDLE = 0x00
    LEFT_FIST_DOWN = 0x01
    RIGHT_FIST_DOWN = 0x02
    ALL_FIST_DOWN = 0x03
    DEAD = 0x04


_FIGHT_STATES = (
    BossState.IDLE,
    BossState.LEFT_FIST_DOWN,
    BossState.RIGHT_FIST_DOWN,
    BossState.ALL_FIST_DOWN,
)


class Boss:
    """Boss with hit points that switches attack state at a fixed interval."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.lock = threading.RLock()
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self.x = 0.0
        self.y = 0.0
        self.hp = STARTING_HP
        self.max_hp = MAX_HP
        self._state = BossState.IDLE
        self._previous_hp = self.hp
        self._previous_state = self._state
        self._last_update = clock()

    def __enter__(self) -> Boss:
        self.lock.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.lock.release()

    @property
    def state(self) -> BossState:
        with self.lock:
            return self._state

    @state.setter
    def state(self, new_state: BossState) -> None:
        with self.lock:
            self._state = new_state

    def update(self) -> None:
        """Switch to a different attack state once the interval has passed."""
        with self.lock:
            now = self._clock()
            if now - self._last_update < STATE_INTERVAL:
                return
            self._last_update = now
            if self.is_dead():
                self._state = BossState.DEAD
                return
            choices = [s for s in _FIGHT_STATES if s != self._state]
            self._state = self._rng.choice(choices)

    def take_damage(self, amount: int) -> None:
        with self.lock:
            self.hp -= amount
            if self.hp <= 0:
                self.hp = 0
                self._state = BossState.IDLE

    def is_dead(self) -> bool:
        with self.lock:
            return self.hp <= 0

    def reset(self) -> None:
        with self.lock:
            self.hp = self.max_hp
            self._state = BossState.IDLE
            self.x = self.y = 0.0
            self._last_update = self._clock()

    def has_state_changed(self) -> bool:
        """Report whether the state differs from the last time this was asked."""
        with self.lock:
            changed = self._previous_state != self._state
            self._previous_state = self._state
            return changed

    def has_hp_changed(self) -> bool:
        """Report whether hit points differ from the last time this was asked."""
        with self.lock:
            changed = self._previous_hp != self.hp
            self._previous_hp = self.hp
            return changed