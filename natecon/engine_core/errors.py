"""
Engine errors.

IllegalMove is control flow: the reducer turns it into an INVALID_MOVE
result and discards the working copy. EngineError marks states the
rules can never produce and is always propagated.
"""

from __future__ import annotations


class IllegalMove(Exception):
    """A move that the rules reject in the current state."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class EngineError(RuntimeError):
    """An internal inconsistency in the game state."""
