"""
natecon - National Economy rules engine and CPU opponents

A deterministic, rules-driven engine for the National Economy worker
placement game (base game and Glory expansion). It provides:
- Game state and the per-seat view
- Legal move generation
- Deterministic effect resolution, payday and scoring
- Heuristic bot policies for CPU seats
- An in-memory session host with an HTTP API
"""

__version__ = "0.1.0"
