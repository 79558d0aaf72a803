"""
Omen CLI - Command-line interface for the engine.

Usage:
    omen validate <deck_file>              Validate a deck
    omen play <deck_file> [--seed N]       Play a deck in the terminal
"""

import argparse
import sys

from pydantic import ValidationError

from .config import EngineConfig, configure_logging
from .deck_schema import DeckSpec, validate_deck
from .engine_core.errors import DeckValidationError
from .session import SessionManager, SchedulerState, CONTINUE


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Omen - Event Deck Engine",
        prog="omen",
    )
    parser.add_argument("--log-level", help="Logging level (default: OMEN_LOG_LEVEL or WARNING)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a deck")
    validate_parser.add_argument("deck_file", help="Path to deck JSON file")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a deck in the terminal")
    play_parser.add_argument("deck_file", help="Path to deck JSON file")
    play_parser.add_argument("--seed", type=int, help="Seed for reproducible draws")
    play_parser.add_argument("--turns", type=int, help="Stop after this many turns")

    args = parser.parse_args(argv)

    config = EngineConfig.from_env()
    configure_logging(args.log_level or config.log_level)

    if args.command == "validate":
        cmd_validate(args)
    elif args.command == "play":
        cmd_play(args, config)
    else:
        parser.print_help()
        sys.exit(1)


def load_deck(path: str) -> DeckSpec:
    """Load a deck file, exiting with a message if it cannot be read."""
    try:
        return DeckSpec.from_file(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)
    except (ValueError, ValidationError) as exc:
        print(f"Error: Cannot parse {path}: {exc}")
        sys.exit(1)


def cmd_validate(args):
    """Validate a deck."""
    deck = load_deck(args.deck_file)
    result = validate_deck(deck)

    print(f"Deck: {deck.name or deck.deck_id}")
    print(f"Variables: {len(deck.variables)}")
    print(f"Events: {len(deck.events)}")
    print(f"Controls: {len(deck.controls)}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("\nDeck is valid")


def cmd_play(args, config: EngineConfig):
    """Play a deck in the terminal, reading choices from stdin."""
    deck = load_deck(args.deck_file)
    config.auto_reveal = True
    manager = SessionManager(config=config)

    try:
        session = manager.create_session(deck, seed=args.seed)
    except DeckValidationError as exc:
        print(f"Error: {exc}")
        for e in exc.errors:
            print(f"  - {e}")
        sys.exit(1)

    scheduler = session.scheduler
    print(f"Playing {deck.name or deck.deck_id} (session {session.session_id})")

    while scheduler.state != SchedulerState.HALTED:
        if args.turns is not None and scheduler.turn_number >= args.turns:
            break

        event = scheduler.current
        print()
        print(_format_variables(session.store.snapshot()))
        print(f"== {event.title} ==")
        if event.description:
            print(event.description)

        choices = scheduler.choices()
        for choice in choices:
            marker = "" if choice.available else " (unavailable)"
            key = "c" if choice.index == CONTINUE else choice.index
            print(f"  [{key}] {choice.description}{marker}")
        controls = session.controls.available()
        if controls:
            print(f"  controls: {', '.join('!' + name for name in controls)}")

        try:
            answer = input("> ").strip()
        except EOFError:
            break
        if answer in {"q", "quit"}:
            break
        if answer.startswith("!"):
            result = session.controls.press(answer[1:])
            if not result.success:
                print(result.error)
            continue

        if answer in {"", "c"}:
            selected = CONTINUE
        elif answer.isdigit():
            selected = int(answer)
        else:
            print(f"Unknown input: {answer}")
            continue

        turn = scheduler.on_action_selected(selected)
        if not turn.success:
            print(turn.error)
            continue
        for change in turn.changes:
            print(f"  * {change}")
        for warning in turn.warnings:
            print(f"  ! {warning}")

    if scheduler.state == SchedulerState.HALTED:
        print("\nNo events left to draw.")
    print(f"Turns played: {scheduler.turn_number}")
    manager.end_session(session.session_id)


def _format_variables(values: dict[str, float]) -> str:
    return "  ".join(f"{name}={value:g}" for name, value in values.items())


if __name__ == "__main__":
    main()
