"""
Pytest fixtures for Omen tests.
"""

import random

import pytest

from ..config import EngineConfig
from ..deck_schema import DeckSpec
from ..engine_core.catalog import Action, EventCatalog, EventInstance
from ..engine_core.effect_resolver import EffectCommandInterpreter
from ..engine_core.errors import Diagnostics
from ..engine_core.expression import ExpressionEvaluator
from ..engine_core.variables import VariableStore
from ..session import TurnScheduler


class FixedRandom(random.Random):
    """Random whose draws are pinned, for exact assertions."""

    def __init__(self, value: float = 0.0, roll: int = 0, position: int = 1):
        super().__init__(0)
        self.value = value
        self.roll = roll
        self.position = position

    def random(self):
        return self.value

    def randrange(self, start, stop=None, step=1):
        if stop is None:
            return self.roll
        # Identity permutation when shuffling
        return start

    def randint(self, a, b):
        return min(max(self.position, a), b)


def make_instance(name: str, copy_number: int = 1, **kwargs) -> EventInstance:
    """Build an event instance directly, bypassing templates."""
    return EventInstance(
        instance_id=f"{name}#{copy_number}",
        template_name=name,
        title=kwargs.pop("title", name.title()),
        description=kwargs.pop("description", ""),
        condition=kwargs.pop("condition", ""),
        actions=kwargs.pop("actions", (Action(description="Ok"),)),
        **kwargs,
    )


def make_catalog(*instances: EventInstance, queued=None, rng=None) -> EventCatalog:
    """Catalog with the given pool, queueing the active instances unless `queued` is given."""
    pool = list(instances)
    if queued is None:
        queued = [i for i in pool if i.active]
    return EventCatalog(all_events=pool, next_events=list(queued), rng=rng or FixedRandom())


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics()


@pytest.fixture
def store(diagnostics: Diagnostics) -> VariableStore:
    """Store with a bounded hp and an unbounded money."""
    store = VariableStore(diagnostics=diagnostics)
    store.define("hp", 30, max=100)
    store.define("money", 50)
    return store


@pytest.fixture
def evaluator(store: VariableStore) -> ExpressionEvaluator:
    return ExpressionEvaluator(store, rng=random.Random(7))


@pytest.fixture
def fixed_rng() -> FixedRandom:
    return FixedRandom()


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def build_scheduler(evaluator, diagnostics, config):
    """Factory wiring a scheduler around a catalog."""
    def build(catalog: EventCatalog, **overrides) -> TurnScheduler:
        interpreter = EffectCommandInterpreter(catalog, diagnostics, rng=catalog.rng)
        scheduler_config = EngineConfig(**{**config.__dict__, **overrides})
        return TurnScheduler(catalog, evaluator, interpreter, config=scheduler_config)
    return build


@pytest.fixture
def village_deck_data() -> dict:
    """A small authored deck, in the authoring tool's field names."""
    return {
        "deck_id": "village",
        "name": "Village",
        "variables": [
            {"name": "money", "value": 50, "max": 500},
            {"name": "food", "value": 10},
            {"name": "debt", "value": 0, "max": -1},
        ],
        "events": [
            {
                "name": "merchant",
                "title": "A merchant arrives",
                "number": 2,
                "actions": [
                    {
                        "description": "Buy food",
                        "condition": "money >= 20",
                        "effects": ["money -= 20", "food += 5"],
                    },
                    {"description": "Send away", "specialEffects": ["destroy"]},
                ],
            },
            {
                "name": "harvest",
                "title": "Harvest",
                "actions": [
                    {"description": "Gather", "effects": ["food += Random(2, 5)"]},
                ],
            },
            {
                "name": "thief",
                "title": "A thief",
                "active": False,
                "actions": [
                    {"description": "Pay", "effects": ["money -= 10"]},
                ],
            },
            {
                "name": "famine",
                "title": "Famine",
                "condition": "food < 5",
                "active": False,
                "actions": [
                    {"description": "Endure", "effects": ["food = 10"], "specialEffects": ["add(thief)"]},
                ],
            },
        ],
        "controls": [
            {
                "name": "borrow",
                "label": "Borrow money",
                "condition": "debt < 100",
                "effects": ["money += 50", "debt += 50"],
            },
        ],
    }


@pytest.fixture
def village_deck(village_deck_data: dict) -> DeckSpec:
    return DeckSpec.from_dict(village_deck_data)
