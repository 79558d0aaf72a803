"""
Integration tests for sessions.

Tests:
- Building a session from a deck
- Full turns through the scheduler
- Reproducible seeded sessions
- Session manager lifecycle
"""

import pytest

from ..config import EngineConfig
from ..deck_schema import DeckSpec, DeckValidationError
from ..engine_core.errors import DiagnosticCode
from ..session import SessionManager, SessionState, SchedulerState, build_session, CONTINUE


def play_turn(session, prefer: int = 0):
    """Reveal and pick `prefer` if available, else the first available, else continue."""
    scheduler = session.scheduler
    scheduler.on_reveal_complete()
    available = scheduler.available_actions()
    if prefer in available:
        choice = prefer
    elif available:
        choice = available[0]
    else:
        choice = CONTINUE
    return scheduler.on_action_selected(choice)


class TestBuildSession:
    """Wiring a session from a deck."""

    def test_components_share_state(self, village_deck):
        session = build_session(village_deck, seed=1)

        assert session.store.get("money") == 50
        assert session.store.lookup("money").max == 500
        assert session.evaluator.store is session.store
        assert session.interpreter.catalog is session.catalog
        assert session.scheduler.catalog is session.catalog
        assert session.state == SessionState.CREATED

    def test_components_share_diagnostics(self, village_deck):
        session = build_session(village_deck, seed=1)
        sink = session.diagnostics

        assert session.store.diagnostics is sink
        assert session.evaluator.diagnostics is sink
        assert session.interpreter.diagnostics is sink
        assert session.scheduler.diagnostics is sink

    def test_turn_warnings_collect_every_component(self):
        deck = DeckSpec.from_dict({
            "events": [{
                "name": "a",
                "actions": [{
                    "description": "Wake",
                    "effects": ["x += ghost"],
                    "specialEffects": ["activate(a)"],
                }],
            }],
        })
        session = build_session(deck, seed=1)
        session.start()

        result = play_turn(session)

        assert result.success
        assert any("missing_event_lookup" in w for w in result.warnings)
        assert any("unbound_variable" in w for w in result.warnings)
        assert DiagnosticCode.MISSING_EVENT_LOOKUP in session.diagnostics.codes()

    def test_instances(self, village_deck):
        session = build_session(village_deck, seed=1)

        ids = sorted(e.instance_id for e in session.catalog.all_events)
        assert ids == ["famine#1", "harvest#1", "merchant#1", "merchant#2", "thief#1"]
        assert sorted(e.instance_id for e in session.catalog.next_events) == [
            "harvest#1", "merchant#1", "merchant#2",
        ]

    def test_start_broadcasts(self, village_deck):
        session = build_session(village_deck, seed=1)
        seen = {}
        session.store.subscribe("food", lambda old, new, cap: seen.update(food=(old, new, cap)))

        session.start()

        assert seen["food"] == (0.0, 10.0, 100.0)
        assert session.state == SessionState.ACTIVE
        assert session.scheduler.state == SchedulerState.PRESENTING

    def test_invalid_deck_rejected(self):
        deck = DeckSpec.from_dict({"events": [{"name": "a", "condition": "x >"}]})
        with pytest.raises(DeckValidationError):
            build_session(deck)


class TestPlay:
    """Turns over an authored deck."""

    def test_seeded_sessions_replay(self, village_deck):
        first = build_session(village_deck, seed=99)
        second = build_session(village_deck, seed=99)
        first.start()
        second.start()

        for _ in range(12):
            a = play_turn(first)
            b = play_turn(second)
            assert a.event_id == b.event_id
            assert first.store.snapshot() == second.store.snapshot()

    def test_many_turns_keep_invariants(self, village_deck):
        session = build_session(village_deck, seed=5)
        session.start()

        for _ in range(40):
            result = play_turn(session)
            assert result.success
            money = session.store.get("money")
            assert 0 <= money <= 500
            for queued in session.catalog.next_events:
                assert session.catalog.contains(queued)

        assert session.scheduler.turn_number == 40
        assert session.scheduler.reshuffles >= 1

    def test_famine_appears_when_food_runs_out(self, village_deck):
        session = build_session(village_deck, seed=3)
        session.start()

        session.store.set("food", 2)
        session.scheduler.check_conditions()

        assert any(e.template_name == "famine" for e in session.catalog.next_events)

    def test_destroy_shrinks_deck(self, village_deck):
        session = build_session(village_deck, seed=3)
        session.start()

        # Resolve events until a merchant is sent away
        for _ in range(20):
            current = session.scheduler.current
            if current.template_name == "merchant":
                play_turn(session, prefer=1)
                break
            play_turn(session)

        assert len(session.catalog.find_all("merchant")) == 1


class TestSessionManager:
    """Session lifecycle."""

    def test_create_and_get(self, village_deck):
        manager = SessionManager()
        session = manager.create_session(village_deck, seed=1)

        assert manager.get_session(session.session_id) is session
        assert session.state == SessionState.ACTIVE
        assert manager.list_active_sessions() == [session.session_id]

    def test_create_without_start(self, village_deck):
        manager = SessionManager()
        session = manager.create_session(village_deck, start=False)
        assert session.state == SessionState.CREATED

    def test_end_session(self, village_deck):
        manager = SessionManager()
        session = manager.create_session(village_deck)

        assert manager.end_session(session.session_id)
        assert session.state == SessionState.ENDED
        assert manager.get_session(session.session_id) is None
        assert not manager.end_session(session.session_id)

    def test_cleanup_stale(self, village_deck):
        manager = SessionManager()
        session = manager.create_session(village_deck)
        session.created_at -= 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert manager.list_active_sessions() == []

    def test_config_flows_to_sessions(self, village_deck):
        manager = SessionManager(config=EngineConfig(auto_reveal=True))
        session = manager.create_session(village_deck)
        assert session.scheduler.input_active

    def test_halted_session(self):
        manager = SessionManager()
        deck = DeckSpec.from_dict({"events": [{"name": "ghost", "active": False}]})
        session = manager.create_session(deck)
        assert session.state == SessionState.HALTED
        assert session.is_active()


class TestEngineConfig:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OMEN_SENTINEL_NAME", "finale")
        monkeypatch.setenv("OMEN_AUTO_REVEAL", "yes")
        monkeypatch.setenv("OMEN_REVEAL_DELAY", "0.1")
        monkeypatch.setenv("OMEN_LOG_LEVEL", "debug")

        config = EngineConfig.from_env()

        assert config.sentinel_name == "finale"
        assert config.auto_reveal
        assert config.reveal_delay == 0.1
        assert config.log_level == "DEBUG"

    def test_defaults(self, monkeypatch):
        for name in ("OMEN_SENTINEL_NAME", "OMEN_AUTO_REVEAL", "OMEN_CONTINUE_LABEL"):
            monkeypatch.delenv(name, raising=False)
        config = EngineConfig.from_env()
        assert config.sentinel_name == "last_card"
        assert config.continue_label == "Continue"
        assert not config.auto_reveal
