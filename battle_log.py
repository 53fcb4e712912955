#!/usr/bin/env python3
"""
Live battle log - streams events as they happen.
"""

import os
import sys
import time
import logging
from pathlib import Path

# Load .env from project root (same as game.py)
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent / ".env")

from hexbattle import BattleResult, TurnScheduler, TurnState, load_scenario

# Configuration
DELAY = float(os.getenv("HEXBATTLE_LOG_DELAY", "0.05"))


def log(source, message, turn=None):
    """Print a battle log entry."""
    prefixes = {
        "left": "◀ LEFT",
        "right": "RIGHT ▶",
        "combat": "💥 COMBAT",
        "system": "⚡ SYSTEM",
    }
    prefix = prefixes.get(source, source.upper())
    turn_prefix = f"[T{turn:03d}] " if turn is not None else ""
    print(f"{turn_prefix}{prefix}: {message}")
    sys.stdout.flush()
    time.sleep(DELAY)


def log_header(text):
    """Print a header."""
    print(f"\n{'='*70}")
    print(f"  {text}")
    print(f"{'='*70}\n")
    sys.stdout.flush()


def attach(scheduler: TurnScheduler):
    """Wire scheduler callbacks to the console."""
    def side_of(unit_id):
        unit = scheduler.units.get_unit(unit_id)
        return unit.owner.name.lower() if unit else "system"

    def name_of(unit_id):
        unit = scheduler.units.get_unit(unit_id)
        return unit.label if unit else f"unit-{unit_id}"

    def on_turn_start(turn_state: TurnState):
        log_header(f"TURN {turn_state.turn_number}")

    def on_move(unit_id, position):
        coord = scheduler.coords.world_to_hex(position)
        log(side_of(unit_id), f"{name_of(unit_id)} advances to {tuple(coord)}", scheduler.state.turn)

    def on_damage(unit_id, amount):
        unit = scheduler.units.get_unit(unit_id)
        remaining = f" ({unit.health}/{unit.max_health})" if unit else ""
        log("combat", f"{name_of(unit_id)} takes {amount} damage{remaining}", scheduler.state.turn)

    def on_death(unit_id):
        log("combat", f"unit-{unit_id} destroyed", scheduler.state.turn)

    def on_turn_end(turn_state: TurnState):
        alive = scheduler.get_battle_snapshot()["alive"]
        print(f"\n📊 Turn {turn_state.turn_number} Summary: {len(turn_state.combat_reports)} engagements, "
              f"{len(turn_state.moves)} moves")
        print(f"   Left units: {alive['left']} | Right units: {alive['right']}")

    def on_battle_ended(result: BattleResult):
        log_header(f"BATTLE OVER - {result.value.upper()} ({scheduler.state.end_reason})")

    scheduler.on_turn_start = on_turn_start
    scheduler.on_move = on_move
    scheduler.on_damage = on_damage
    scheduler.on_death = on_death
    scheduler.on_turn_end = on_turn_end
    scheduler.on_battle_ended = on_battle_ended


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Live hex battle log")
    parser.add_argument("scenario", nargs="?", default="data/scenarios/border_skirmish.yaml")
    args = parser.parse_args(argv)

    logging.basicConfig(level=os.getenv("HEXBATTLE_LOG_LEVEL", "INFO").upper())

    scenario = load_scenario(args.scenario)
    scheduler = TurnScheduler(scenario.config.with_env_overrides(), tiles=scenario.tiles)
    attach(scheduler)

    log_header(f"{scenario.name.upper()} - BATTLE BEGINS")
    if not scheduler.start(scenario.units):
        log("system", "Battle could not start.")
        return scheduler.state

    while not scheduler.state.game_over:
        scheduler.tick()

    print(f"Completed {scheduler.state.turn} turns.")
    return scheduler.state


if __name__ == "__main__":
    main()
