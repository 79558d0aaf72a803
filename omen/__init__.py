"""
Omen - Event Deck Engine

A data-driven engine for turn-based event/encounter games. Designers author
variables, effect and condition expressions, and a deck of events with
actions. The engine provides:
- A variable store with bounded registers and change observers
- An expression evaluator for effects and conditions
- The draw queue state machine and its deck-mutation commands
- Sessions, an HTTP API and a terminal player
"""

__version__ = "0.1.0"
