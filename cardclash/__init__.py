"""
CardClash - Turn-Based Card Game Rules Engine

A deterministic rules engine for an energy-curve card game with
user-authored card scripts. The engine provides:
- Card catalog and validation
- State management through atomic transactions
- Turn, card-play and combat resolution
- Sandboxed effect scripts with an asynchronous targeting protocol
"""

__version__ = "0.1.0"
