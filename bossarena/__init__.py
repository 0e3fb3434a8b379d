"""Multiplayer boss-arena game server: packet format, ring buffer, boss, traps, players and world."""

__version__ = "0.1.0"