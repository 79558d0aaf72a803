"""
Deck Schema - Pydantic models for authored decks.

A deck file is the bootstrap input of a session: declared variables, event
templates with their actions, and control buttons. Field names follow the
authoring tool, so `number` and `specialEffects` are accepted as aliases of
`copies` and `special_effects`.

Example:
    {
        "deck_id": "village",
        "variables": [{"name": "money", "value": 50, "max": 500}],
        "events": [
            {
                "name": "merchant",
                "title": "A merchant arrives",
                "number": 2,
                "actions": [
                    {"description": "Buy", "condition": "money >= 20",
                     "effects": ["money -= 20", "food += 5"]},
                    {"description": "Send away", "specialEffects": ["destroy"]}
                ]
            }
        ]
    }
"""

from __future__ import annotations
from pathlib import Path
from typing import Any
import json

from pydantic import BaseModel, Field

from ..engine_core.catalog import Action, EventTemplate
from ..engine_core.controls import Control

DEFAULT_VARIABLE_MAX = 100.0


class VariableSpec(BaseModel):
    """A declared variable. max = -1 means unbounded."""
    name: str
    value: float = 0.0
    max: float = DEFAULT_VARIABLE_MAX


class ActionSpec(BaseModel):
    """An action offered by an event."""
    description: str = ""
    condition: str = ""
    effects: list[str] = Field(default_factory=list)
    special_effects: list[str] = Field(default_factory=list, alias="specialEffects")

    model_config = {"populate_by_name": True}

    def to_action(self) -> Action:
        return Action(
            description=self.description,
            condition=self.condition,
            effects=tuple(self.effects),
            special_effects=tuple(self.special_effects),
        )


class EventSpec(BaseModel):
    """An event template."""
    name: str
    title: str = ""
    description: str = ""
    condition: str = Field("", description="Presence condition; empty means unconditional")
    copies: int = Field(1, alias="number", description="Instances of this event in the deck")
    active: bool = True
    actions: list[ActionSpec] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_template(self) -> EventTemplate:
        return EventTemplate(
            name=self.name,
            title=self.title or self.name,
            description=self.description,
            condition=self.condition,
            copies=self.copies,
            active=self.active,
            actions=tuple(a.to_action() for a in self.actions),
        )


class ControlSpec(BaseModel):
    """A control button outside the deck flow."""
    name: str
    label: str = ""
    condition: str = ""
    effects: list[str] = Field(default_factory=list)
    special_effects: list[str] = Field(default_factory=list, alias="specialEffects")

    model_config = {"populate_by_name": True}

    def to_control(self) -> Control:
        return Control(
            name=self.name,
            label=self.label or self.name,
            condition=self.condition,
            effects=tuple(self.effects),
            special_effects=tuple(self.special_effects),
        )


class DeckSpec(BaseModel):
    """A complete authored deck."""
    deck_id: str = "deck"
    name: str = ""
    variables: list[VariableSpec] = Field(default_factory=list)
    events: list[EventSpec] = Field(default_factory=list)
    controls: list[ControlSpec] = Field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeckSpec:
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str | Path) -> DeckSpec:
        """Load a deck from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))

    def to_templates(self) -> list[EventTemplate]:
        return [e.to_template() for e in self.events]

    def to_controls(self) -> list[Control]:
        return [c.to_control() for c in self.controls]

    def get_event(self, name: str) -> EventSpec | None:
        return next((e for e in self.events if e.name == name), None)
