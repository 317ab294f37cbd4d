"""Packets, chat log formatting, clocks, effects migration, demo playback, music loop files and animation timing."""

__version__ = "2.11.0"

__all__ = [
    "animation",
    "chatlog",
    "clock",
    "demo",
    "effects_migration",
    "loader",
    "music",
    "packet",
]