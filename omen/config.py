"""
Engine Configuration - Tunables shared by every session.

Values come from code (EngineConfig(...)) or from the environment
(EngineConfig.from_env()). Library code never configures logging handlers;
entry points (CLI, API factory) call configure_logging().
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """
    Configuration for an engine session.

    Attributes:
        sentinel_name: Inactive event that always heads the queue after a reshuffle
        continue_label: Label of the implicit action offered when nothing is eligible
        epsilon: Tolerance below which a variable write is not a change
        reveal_delay: Seconds an async reveal waits before unblocking input
        auto_reveal: Complete reveals immediately (headless play, API, tests)
        diagnostics_limit: How many diagnostics a session keeps in memory
        log_level: Level used by configure_logging()
    """
    sentinel_name: str = "last_card"
    continue_label: str = "Continue"
    epsilon: float = 1e-6
    reveal_delay: float = 0.5
    auto_reveal: bool = False
    diagnostics_limit: int = 200
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from OMEN_* environment variables."""
        defaults = cls()
        return cls(
            sentinel_name=os.getenv("OMEN_SENTINEL_NAME", defaults.sentinel_name),
            continue_label=os.getenv("OMEN_CONTINUE_LABEL", defaults.continue_label),
            epsilon=defaults.epsilon,
            reveal_delay=float(os.getenv("OMEN_REVEAL_DELAY", defaults.reveal_delay)),
            auto_reveal=os.getenv("OMEN_AUTO_REVEAL", "").strip().lower() in _TRUTHY,
            diagnostics_limit=defaults.diagnostics_limit,
            log_level=os.getenv("OMEN_LOG_LEVEL", defaults.log_level).upper(),
        )


def configure_logging(level: str = "WARNING"):
    """Install a basic root handler at the given level."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
