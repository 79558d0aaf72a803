"""
Tests for special effect parsing.
"""

import pytest

from ..engine_core.commands import (
    Destroy,
    Add,
    Remove,
    Activate,
    Deactivate,
    Chain,
    RandomChain,
    parse_command,
    referenced_events,
)
from ..engine_core.errors import CommandParseError


class TestParseCommand:
    """Valid command strings."""

    @pytest.mark.parametrize("text, expected", [
        ("destroy", Destroy()),
        ("destroy()", Destroy()),
        ("add(ambush)", Add(name="ambush")),
        ("remove( ambush )", Remove(name="ambush")),
        ("activate(boss)", Activate(name="boss")),
        ("deactivate(boss)", Deactivate(name="boss")),
        ("chain(boss_fight)", Chain(name="boss_fight")),
        ("randomchain(treasure, trap, 30)", RandomChain(name_a="treasure", name_b="trap", percent=30.0)),
        ("RandomChain(a,b,12.5)", RandomChain(name_a="a", name_b="b", percent=12.5)),
        ("  Chain(x)  ", Chain(name="x")),
    ])
    def test_parse(self, text, expected):
        assert parse_command(text) == expected

    def test_colon_syntax(self):
        """The `name:arg` authoring syntax is accepted."""
        assert parse_command("add:ambush") == Add(name="ambush")
        assert parse_command("chain: boss") == Chain(name="boss")


class TestParseErrors:
    """Invalid command strings raise CommandParseError."""

    @pytest.mark.parametrize("text", [
        "explode(boss)",
        "add",
        "add()",
        "add(a, b)",
        "destroy(x)",
        "randomchain(a, b)",
        "randomchain(a, b, lots)",
        "chain(a,)",
        "add:",
        "chain(boss",
        "",
    ])
    def test_rejected(self, text):
        with pytest.raises(CommandParseError):
            parse_command(text)


class TestReferencedEvents:

    def test_names(self):
        assert referenced_events(Destroy()) == []
        assert referenced_events(Add(name="a")) == ["a"]
        assert referenced_events(RandomChain(name_a="a", name_b="b", percent=50)) == ["a", "b"]
