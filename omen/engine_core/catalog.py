"""
Event Catalog - The full pool of event instances and the draw queue.

Templates are author-defined and immutable. At build time each template is
expanded into `copies` independent instances. Instances carry their own
active/discarded flags and are identified by identity, not by name: several
instances of the same template commonly coexist.

The catalog holds two sequences over the same instance objects:
- all_events: every instance still in the game (order changes on shuffle)
- next_events: the draw queue; its head is the event being presented
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, MutableSequence, TypeVar
import logging
import random

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Action:
    """
    A choice offered by an event.

    `effects` are assignment expressions run by the ExpressionEvaluator,
    `special_effects` are deck commands run by the EffectCommandInterpreter.
    """
    description: str
    condition: str = ""
    effects: tuple[str, ...] = ()
    special_effects: tuple[str, ...] = ()


@dataclass(frozen=True)
class EventTemplate:
    """Author-defined event card."""
    name: str
    title: str = ""
    description: str = ""
    condition: str = ""
    copies: int = 1
    active: bool = True
    actions: tuple[Action, ...] = ()


@dataclass(eq=False)
class EventInstance:
    """A session-owned copy of a template. Compared by identity."""
    instance_id: str
    template_name: str
    title: str
    description: str
    condition: str
    actions: tuple[Action, ...]
    active: bool = True
    discarded: bool = False

    @classmethod
    def from_template(cls, template: EventTemplate, copy_number: int) -> EventInstance:
        return cls(
            instance_id=f"{template.name}#{copy_number}",
            template_name=template.name,
            title=template.title,
            description=template.description,
            condition=template.condition,
            actions=template.actions,
            active=template.active,
        )

    @property
    def name(self) -> str:
        return self.template_name

    def __repr__(self) -> str:
        flags = ("active" if self.active else "inactive") + (", discarded" if self.discarded else "")
        return f"<EventInstance {self.instance_id} ({flags})>"


def shuffle_in_place(items: MutableSequence[T], rng: random.Random):
    """Fisher-Yates: swap index i with a uniform index in [i, n)."""
    n = len(items)
    for i in range(n):
        j = rng.randrange(i, n)
        items[i], items[j] = items[j], items[i]


@dataclass
class EventCatalog:
    """
    All event instances plus the draw queue.

    Invariant: every instance in next_events is also in all_events.
    """
    all_events: list[EventInstance] = field(default_factory=list)
    next_events: list[EventInstance] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def from_templates(
        cls,
        templates: Iterable[EventTemplate],
        rng: random.Random | None = None,
    ) -> EventCatalog:
        """
        Expand templates into instances.

        Instances of active templates start in the queue. Both sequences
        are shuffled once.
        """
        catalog = cls(rng=rng or random.Random())
        for template in templates:
            for copy_number in range(1, template.copies + 1):
                instance = EventInstance.from_template(template, copy_number)
                catalog.all_events.append(instance)
                if instance.active:
                    catalog.next_events.append(instance)

        catalog.shuffle_pool()
        catalog.shuffle_queue()
        logger.info(
            "Built catalog: %d instances, %d queued",
            len(catalog.all_events), len(catalog.next_events),
        )
        return catalog

    # --- Queries ---

    @property
    def current(self) -> EventInstance | None:
        """Head of the draw queue."""
        return self.next_events[0] if self.next_events else None

    @property
    def remaining(self) -> int:
        return len(self.next_events)

    def is_queued(self, instance: EventInstance) -> bool:
        return any(e is instance for e in self.next_events)

    def contains(self, instance: EventInstance) -> bool:
        return any(e is instance for e in self.all_events)

    def exists(self, name: str) -> bool:
        return any(e.template_name == name for e in self.all_events)

    def find_all(self, name: str) -> list[EventInstance]:
        """Every instance of a template, in pool order."""
        return [e for e in self.all_events if e.template_name == name]

    def find_first(self, name: str) -> EventInstance | None:
        return next((e for e in self.all_events if e.template_name == name), None)

    def find_inactive(self, name: str) -> EventInstance | None:
        """First inactive instance of a template, in pool order."""
        return next(
            (e for e in self.all_events if e.template_name == name and not e.active),
            None,
        )

    def find_active(self, name: str) -> EventInstance | None:
        """First active instance of a template, in pool order."""
        return next(
            (e for e in self.all_events if e.template_name == name and e.active),
            None,
        )

    def find_active_queued(self, name: str) -> EventInstance | None:
        """First active instance of a template, scanning the draw queue."""
        return next(
            (e for e in self.next_events if e.template_name == name and e.active),
            None,
        )

    def template_names(self) -> list[str]:
        return list(dict.fromkeys(e.template_name for e in self.all_events))

    # --- Queue mutation ---

    def enqueue(self, instance: EventInstance):
        if not self.is_queued(instance):
            self.next_events.append(instance)

    def dequeue(self, instance: EventInstance) -> bool:
        """Remove an instance from the queue. Returns False if it was not queued."""
        for index, queued in enumerate(self.next_events):
            if queued is instance:
                del self.next_events[index]
                return True
        return False

    def insert_next(self, instance: EventInstance, position: int):
        """Insert at a queue position, clamped to the queue length."""
        self.next_events.insert(min(position, len(self.next_events)), instance)

    def destroy(self, instance: EventInstance) -> bool:
        """Remove an instance from the game entirely."""
        self.dequeue(instance)
        for index, pooled in enumerate(self.all_events):
            if pooled is instance:
                del self.all_events[index]
                return True
        return False

    def clear_queue(self):
        self.next_events = []

    def shuffle_pool(self):
        shuffle_in_place(self.all_events, self.rng)

    def shuffle_queue(self):
        shuffle_in_place(self.next_events, self.rng)
