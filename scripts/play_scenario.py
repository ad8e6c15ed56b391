#!/usr/bin/env python3
"""Play a scenario in the terminal.

Usage:
    python scripts/play_scenario.py --id eco_pollution
    python scripts/play_scenario.py --rules my_rules.json --save run.json
    python scripts/play_scenario.py --id eco_pollution --narrate   # needs ANTHROPIC_API_KEY

At the prompt type ``<action id> [target text]``.  Other commands:
    :actions   list the actions offered here
    :state     show counters and tracks
    :fail <action id> [target]   play an action whose external check failed
    :undo      take back the last turn
    :quit      leave (saving first when --save is given)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scenario_engine.content import RulesetRegistry
from scenario_engine.engine import GameSession, TurnResult


def _print_turn(turn: TurnResult) -> None:
    for entry in turn.entries:
        if entry.type == "action":
            print(f"\n> {entry.message}")
            for change in entry.changes or []:
                sign = "+" if change.delta > 0 else ""
                print(f"    {change.name} {sign}{change.delta}")
        elif entry.type == "procedural":
            print(f"  * {entry.message}")
        else:
            print(f"\n{entry.message}")


def _print_state(session: GameSession) -> None:
    state = session.state
    situation = session.situation
    print(f"\n== {situation.label if situation else state.situation} ==")
    for key, value in state.counters.items():
        print(f"  {key}: {value}")
    for track in state.tracks.values():
        print(f"  {track.name}: {track.value}/{track.max}")
    if state.route:
        print(f"  route: {state.route}")


def _print_actions(session: GameSession) -> None:
    for action_id, detail in session.available_actions().items():
        hint = f" -- {detail.description}" if detail.description else ""
        print(f"  {action_id:12s} {detail.label}{hint}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Play a scenario interactively.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--rules", type=Path, default=None, help="Path to a rule document")
    source.add_argument("--id", default="eco_pollution", help="Bundled scenario id (default: eco_pollution)")
    parser.add_argument("--load", type=Path, default=None, help="Resume from a saved state file")
    parser.add_argument("--save", type=Path, default=None, help="Write the state here on exit")
    parser.add_argument("--narrate", action="store_true", default=False, help="Narrate turns with Claude")
    parser.add_argument("--model", default="claude-sonnet-4-20250514", help="Model for narration")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Show engine debug logs")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    registry = RulesetRegistry()
    if args.rules is not None:
        rules = registry.load_file(args.rules)
    else:
        registry.load_bundled()
        rules = registry.get(args.id)

    narrator = None
    client = None
    if args.narrate:
        from scenario_engine.narration import NarrationClient, Narrator

        client = NarrationClient(model=args.model)
        narrator = Narrator(client)

    if args.load is not None:
        session = GameSession.load(rules, args.load, narrator=narrator)
    else:
        session = GameSession(rules, narrator=narrator)

    print(f"{rules.title}")
    if rules.description:
        print(rules.description)
    _print_state(session)
    _print_actions(session)

    while not session.is_ended:
        try:
            line = input("\n? ").strip()
        except EOFError:
            break
        if not line:
            continue

        command, _, rest = line.partition(" ")
        if command == ":quit":
            break
        if command == ":actions":
            _print_actions(session)
            continue
        if command == ":state":
            _print_state(session)
            continue
        if command == ":undo":
            print("Undone." if session.undo() else "Nothing to undo.")
            continue

        is_success = True
        if command == ":fail":
            is_success = False
            command, _, rest = rest.strip().partition(" ")
        if command not in rules.actions:
            print(f"Unknown action {command!r}. Type :actions for a list.")
            continue

        turn = session.act(command, rest.strip() or None, is_success=is_success)
        _print_turn(turn)
        if turn.situation_changed:
            _print_state(session)
            _print_actions(session)

    if session.is_ended:
        print("\nThe scenario has ended.")
        for record in session.state.player.history:
            print(f"  {record.title}: {record.ending_situation_label} ({record.completion_date})")

    if args.save is not None:
        session.save(args.save)
        print(f"State saved to {args.save}")

    if client is not None:
        usage = client.usage
        print(
            f"Narration: {usage.completions} turns, "
            f"{usage.total_input_tokens} input / {usage.output_tokens} output tokens"
        )


if __name__ == "__main__":
    main()
