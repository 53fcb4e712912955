"""
Main battle runner.

Loads a scenario and drives the turn scheduler until the battle ends.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import replace
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

from hexbattle import (
    BattleResult, Side, TurnScheduler, TurnState, load_scenario,
)

logger = logging.getLogger(__name__)


class BattleSimulation:
    """Main simulation orchestrator."""

    def __init__(
        self,
        scenario_path: Path | str = "data/scenarios/border_skirmish.yaml",
        log_dir: Optional[Path | str] = None,
        max_turns: Optional[int] = None,
    ):
        self.scenario = load_scenario(scenario_path)
        config = self.scenario.config.with_env_overrides()
        if max_turns:
            config = replace(config, max_turns=max_turns)
        self.config = config

        self.log_dir = Path(log_dir) if log_dir else None
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        logger.info("Initializing turn scheduler...")
        self.scheduler = TurnScheduler(self.config, tiles=self.scenario.tiles)
        self.scheduler.on_turn_end = self._on_turn_end
        self.scheduler.on_battle_ended = self._on_battle_ended

        # Battle log
        self.battle_log: list[dict] = []
        self.start_time: Optional[datetime] = None

    def initialize(self) -> bool:
        """Initialize the battle."""
        logger.info(f"Loading scenario: {self.scenario.name}")
        if not self.scheduler.start(self.scenario.units):
            return False

        self.start_time = datetime.now()
        snapshot = self.scheduler.get_battle_snapshot()
        self._log_event("battle_start", {
            "scenario": self.scenario.name,
            "left_units": snapshot["alive"]["left"],
            "right_units": snapshot["alive"]["right"],
            "map_tiles": len(self.scheduler.grid.tiles),
            "max_turns": self.config.max_turns,
        })
        return True

    def run_turn(self) -> Optional[TurnState]:
        """Run a single turn of the simulation."""
        return self.scheduler.tick()

    def run_battle(self) -> dict:
        """Run the full battle."""
        if not self.initialize():
            return self._compile_results()

        while not self.scheduler.state.game_over:
            self.run_turn()

        results = self._compile_results()
        self._log_event("battle_end", results)
        if self.log_dir:
            self._save_battle_log()
        return results

    def _on_turn_end(self, turn_state: TurnState):
        snapshot = self.scheduler.get_battle_snapshot()
        kills = sum(1 for r in turn_state.combat_reports if r.defender_killed)
        logger.info(
            f"Turn {turn_state.turn_number}: {len(turn_state.moves)} moves, "
            f"{len(turn_state.combat_reports)} engagements, {kills} kills | "
            f"Left={snapshot['alive']['left']} Right={snapshot['alive']['right']}"
        )
        self._log_event("turn_complete", {
            "turn": turn_state.turn_number,
            "moves": [
                {"unit": m.unit_id, "from": list(m.from_hex), "to": list(m.to_hex)}
                for m in turn_state.moves
            ],
            "combat": [
                {
                    "attacker": r.attacker_id,
                    "defender": r.defender_id,
                    "result": r.result.value,
                    "damage": r.damage,
                }
                for r in turn_state.combat_reports
            ],
            "alive": snapshot["alive"],
        })

    def _on_battle_ended(self, result: BattleResult):
        if result.winner is None:
            logger.info("Battle ended in a draw")
        else:
            logger.info(f"Player {result.winner.value + 1} ({result.value}) wins!")

    def _compile_results(self) -> dict:
        """Compile final battle results."""
        state = self.scheduler.state
        return {
            "scenario": self.scenario.name,
            "turns_played": state.turn,
            "status": state.status.value,
            "result": state.result.value if state.result else None,
            "end_reason": state.end_reason,
            "surviving_forces": {
                side.name.lower(): self.scheduler.units.count_alive(side) for side in Side
            },
            "duration": str(datetime.now() - self.start_time) if self.start_time else None,
        }

    def _log_event(self, event_type: str, data: dict):
        """Log a battle event."""
        self.battle_log.append({
            "timestamp": datetime.now().isoformat(),
            "event": event_type,
            "data": data,
        })

    def _save_battle_log(self):
        """Save battle log to file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = self.log_dir / f"battle_{timestamp}.json"

        with open(log_path, "w") as f:
            json.dump(self.battle_log, f, indent=2, default=str)

        logger.info(f"Battle log saved to: {log_path}")


def main(argv=None):
    """Run a battle simulation."""
    import argparse

    parser = argparse.ArgumentParser(description="Hex grid battle simulation")
    parser.add_argument("--scenario", default="data/scenarios/border_skirmish.yaml", help="Scenario file")
    parser.add_argument("--turns", type=int, default=None, help="Max turns (default: scenario defined)")
    parser.add_argument("--logs", default=None, help="Directory for the JSON battle log")

    args = parser.parse_args(argv)

    logging.basicConfig(level=os.getenv("HEXBATTLE_LOG_LEVEL", "INFO").upper())

    sim = BattleSimulation(
        scenario_path=args.scenario,
        log_dir=args.logs,
        max_turns=args.turns,
    )

    results = sim.run_battle()

    print("\n" + "="*60)
    print("FINAL RESULTS")
    print("="*60)
    print(f"Scenario: {results['scenario']}")
    print(f"Turns played: {results['turns_played']}")
    print(f"Result: {results['result'] or 'not started'} ({results['end_reason']})")
    print(f"Surviving forces - Left: {results['surviving_forces']['left']}, Right: {results['surviving_forces']['right']}")
    print(f"Duration: {results['duration']}")
    return results


if __name__ == "__main__":
    main()
