"""
Tests for the turn scheduler: battle lifecycle, per-turn sequencing,
movement conflicts, combat and end conditions.
"""

import logging

import pytest

from conftest import hex_of, make_scheduler, make_tiles, unit
from hexbattle import (
    BattleConfig, BattleResult, BattleStatus, CombatResult, HexCoord,
    MapInitializationError, Side, TurnScheduler, generate_tile_registry,
)


class TestLifecycle:
    """Test start/tick/force_end state transitions."""

    def test_start(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])

        assert scheduler.state.status == BattleStatus.IN_PROGRESS
        assert scheduler.state.turn == 0
        assert scheduler.units.unit_ids() == [1, 2]

    def test_start_with_empty_registry(self, caplog):
        scheduler = TurnScheduler(BattleConfig(width=6, height=4), tiles=generate_tile_registry(6, 4))

        with caplog.at_level(logging.WARNING):
            assert not scheduler.start([])

        assert scheduler.state.status == BattleStatus.NOT_STARTED
        assert "No units found" in caplog.text

    def test_start_with_only_dead_units(self):
        scheduler = TurnScheduler(BattleConfig(width=6, height=4), tiles=generate_tile_registry(6, 4))
        assert not scheduler.start([unit((0, 0), "left", health=0)])
        assert scheduler.state.status == BattleStatus.NOT_STARTED

    def test_start_twice_is_refused(self, caplog):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])
        scheduler.tick()

        with caplog.at_level(logging.WARNING):
            assert not scheduler.start([unit((1, 0), "left")])

        assert "already in progress" in caplog.text
        assert scheduler.state.turn == 1
        assert scheduler.units.unit_ids() == [1, 2]

    def test_start_without_tiles_raises(self):
        scheduler = TurnScheduler(BattleConfig(width=6, height=4))

        with pytest.raises(MapInitializationError):
            scheduler.start([unit((0, 0), "left")])

        assert scheduler.grid is None
        assert scheduler.state.status == BattleStatus.NOT_STARTED

    def test_tiles_supplied_at_start(self):
        scheduler = TurnScheduler(BattleConfig(width=6, height=4))
        assert scheduler.start([unit((0, 0), "left"), unit((5, 0), "right")], tiles=make_tiles())
        assert len(scheduler.grid.tiles) == 24

    def test_tick_before_start_raises(self):
        scheduler = TurnScheduler(BattleConfig(width=6, height=4), tiles=make_tiles())
        with pytest.raises(RuntimeError):
            scheduler.tick()

    def test_tick_after_end_raises(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])
        scheduler.force_end()
        with pytest.raises(RuntimeError):
            scheduler.tick()

    def test_restart_after_end(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])
        scheduler.force_end(Side.LEFT)

        assert scheduler.start([unit((1, 0), "left"), unit((4, 0), "right")])
        assert scheduler.state.turn == 0
        assert scheduler.state.result is None
        assert hex_of(scheduler, 1) == HexCoord(1, 0)

    def test_owner_derived_from_zone(self):
        scheduler = make_scheduler([unit((0, 0)), unit((5, 0))])

        assert scheduler.units.get_unit(1).owner == Side.LEFT
        assert scheduler.units.get_unit(2).owner == Side.RIGHT

    def test_config_defaults_applied(self):
        scheduler = make_scheduler([unit((0, 0), "left", health=None, attack_damage=None)])
        record = scheduler.units.get_unit(1)
        assert record.health == 100
        assert record.attack_damage == 10


class TestForceEnd:
    """Test external battle termination."""

    @pytest.mark.parametrize("winner,result", [
        (None, BattleResult.DRAW),
        (Side.LEFT, BattleResult.LEFT),
        (1, BattleResult.RIGHT),
        ("right", BattleResult.RIGHT),
        ("draw", BattleResult.DRAW),
        (BattleResult.LEFT, BattleResult.LEFT),
    ])
    def test_force_end(self, winner, result):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])
        ended = []
        scheduler.on_battle_ended = ended.append

        scheduler.force_end(winner)

        assert scheduler.state.status == BattleStatus.ENDED
        assert scheduler.state.result == result
        assert scheduler.state.end_reason == "forced"
        assert ended == [result]

    def test_force_end_when_not_running(self, caplog):
        scheduler = TurnScheduler(BattleConfig(width=6, height=4), tiles=make_tiles())

        with caplog.at_level(logging.WARNING):
            scheduler.force_end(Side.LEFT)

        assert scheduler.state.status == BattleStatus.NOT_STARTED
        assert scheduler.state.result is None


class TestUpdateUnit:
    """Test external state refreshes."""

    def test_position_update(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])

        scheduler.update_unit(1, position=scheduler.coords.hex_to_world(HexCoord(2, 2)))

        assert hex_of(scheduler, 1) == HexCoord(2, 2)

    def test_health_zero_destroys(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])
        deaths = []
        scheduler.on_death = deaths.append

        scheduler.update_unit(2, health=0)

        assert scheduler.units.get_unit(2) is None
        assert deaths == [2]
        assert not scheduler.occupancy.is_occupied(HexCoord(5, 3))

    def test_unknown_unit(self):
        scheduler = make_scheduler([unit((0, 0), "left")])
        with pytest.raises(KeyError):
            scheduler.update_unit(42, health=10)


class TestTurnSequencing:
    """Test what happens within a single tick."""

    def test_adjacent_enemies_trade_blows(self):
        """Test that mutually adjacent units attack instead of moving."""
        scheduler = make_scheduler([
            unit((2, 2), "left", attack_damage=7),
            unit((3, 2), "right", attack_damage=5),
        ])

        turn = scheduler.tick()

        assert scheduler.units.get_unit(2).health == 93
        assert scheduler.units.get_unit(1).health == 95
        assert turn.moves == []
        assert [r.attacker_id for r in turn.combat_reports] == [1, 2]
        assert hex_of(scheduler, 1) == HexCoord(2, 2)
        assert hex_of(scheduler, 2) == HexCoord(3, 2)

    def test_move_then_attack(self):
        """Test that a later unit sees an earlier unit's move in the same turn."""
        scheduler = make_scheduler([unit((0, 0), "left"), unit((4, 0), "right")])
        moves, damage = [], []
        scheduler.on_move = lambda uid, pos: moves.append((uid, pos))
        scheduler.on_damage = lambda uid, amount: damage.append((uid, amount))

        turn = scheduler.tick()

        assert [(m.unit_id, m.from_hex, m.to_hex) for m in turn.moves] == [(1, HexCoord(0, 0), HexCoord(2, 0))]
        assert moves == [(1, scheduler.coords.hex_to_world(HexCoord(2, 0)))]
        assert damage == [(1, 10)]
        assert scheduler.units.get_unit(1).health == 90

    def test_unit_killed_after_moving_leaves_no_reservation(self):
        scheduler = make_scheduler([unit((0, 0), "left", health=10), unit((4, 0), "right")])

        turn = scheduler.tick()

        assert [m.to_hex for m in turn.moves] == [HexCoord(2, 0)]
        assert scheduler.units.unit_ids() == [2]
        assert scheduler.occupancy.reservations == {}
        assert not scheduler.occupancy.is_occupied(HexCoord(2, 0))

    def test_contested_tile_taken_once(self):
        """Test that two friends heading for the same tile never both end up on it."""
        only = [(0, 0), (0, 1), (1, 0), (3, 0), (5, 0)]
        scheduler = make_scheduler(
            [unit((0, 0), "left", height=2), unit((0, 1), "left", height=2), unit((5, 0), "right", height=2)],
            height=2,
            tiles=make_tiles(6, 2, only=only),
        )
        planner = scheduler.planner
        first = planner.next_step(HexCoord(0, 0), HexCoord(5, 0), Side.LEFT, 1)
        second = planner.next_step(HexCoord(0, 1), HexCoord(5, 0), Side.LEFT, 2)
        assert first == second == HexCoord(1, 0)

        turn = scheduler.tick()

        on_tile = [uid for uid in scheduler.units.unit_ids() if hex_of(scheduler, uid) == HexCoord(1, 0)]
        assert on_tile == [1]
        assert hex_of(scheduler, 2) == HexCoord(0, 1)
        assert 2 in turn.idle_units
        assert hex_of(scheduler, 3) == HexCoord(3, 0)

    def test_no_two_units_share_a_hex(self):
        scheduler = make_scheduler([
            unit((0, 0), "left"), unit((1, 0), "left"), unit((0, 2), "left"),
            unit((5, 0), "right"), unit((4, 1), "right"), unit((5, 2), "right"),
        ])

        while not scheduler.state.game_over:
            scheduler.tick()
            hexes = [hex_of(scheduler, uid) for uid in scheduler.units.unit_ids()]
            assert len(hexes) == len(set(hexes))

    def test_turn_callbacks(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])
        events = []
        scheduler.on_turn_start = lambda t: events.append(("start", t.turn_number))
        scheduler.on_turn_end = lambda t: events.append(("end", t.turn_number))

        scheduler.tick()
        scheduler.tick()

        assert events == [("start", 1), ("end", 1), ("start", 2), ("end", 2)]
        assert [t.turn_number for t in scheduler.state.turn_history] == [1, 2]

    def test_external_moves_are_picked_up(self):
        """Test that occupancy is rebuilt from positions at the start of each tick."""
        scheduler = make_scheduler([unit((0, 0), "left"), unit((5, 3), "right")])

        scheduler.update_unit(2, position=scheduler.coords.hex_to_world(HexCoord(1, 0)))
        turn = scheduler.tick()

        assert turn.moves == []
        assert turn.combat_reports[0].defender_id == 2


class TestEndConditions:
    """Test elimination, objective capture and the turn limit."""

    def test_one_sided_battle_ends_on_first_tick(self):
        scheduler = make_scheduler([unit((0, 0), "left"), unit((2, 0), "left")])

        assert scheduler.tick() is None
        assert scheduler.state.result == BattleResult.LEFT
        assert scheduler.state.end_reason == "elimination"
        assert scheduler.state.turn == 0

    def test_last_enemy_killed(self):
        scheduler = make_scheduler([unit((0, 0), "left", attack_damage=100), unit((1, 0), "right", health=10)])
        deaths = []
        scheduler.on_death = deaths.append

        turn = scheduler.tick()

        assert turn.combat_reports[0].result == CombatResult.KILL
        assert deaths == [2]
        assert scheduler.state.status == BattleStatus.ENDED
        assert scheduler.state.result == BattleResult.LEFT
        assert scheduler.state.end_reason == "elimination"
        assert scheduler.state.turn == 1

    def test_turn_limit_draw(self):
        """Test that permanently separated armies draw exactly at the turn limit."""
        only = [(x, y) for x in (0, 1, 4, 5) for y in range(4)]
        scheduler = make_scheduler(
            [unit((0, 0), "left"), unit((5, 0), "right")],
            max_turns=5,
            tiles=make_tiles(only=only),
        )

        for _ in range(4):
            turn = scheduler.tick()
            assert turn.moves == []
            assert scheduler.state.status == BattleStatus.IN_PROGRESS

        scheduler.tick()

        assert scheduler.state.status == BattleStatus.ENDED
        assert scheduler.state.result == BattleResult.DRAW
        assert scheduler.state.end_reason == "turn_limit"
        assert scheduler.state.turn == 5

    def test_objective_capture_ends_battle_mid_turn(self):
        """Test capture right after the last enemy falls, before later units act."""
        scheduler = make_scheduler([
            unit((0, 0), "left", attack_damage=50),
            unit((1, 0), "right", health=10),
            unit((4, 2), "left"),
            unit((2, 2), "left"),
        ])
        ended = []
        scheduler.on_battle_ended = ended.append

        turn = scheduler.tick()

        assert [r.result for r in turn.combat_reports] == [CombatResult.KILL, CombatResult.OBJECTIVE_CAPTURED]
        assert scheduler.state.result == BattleResult.LEFT
        assert scheduler.state.end_reason == "objective"
        assert ended == [BattleResult.LEFT]
        assert hex_of(scheduler, 4) == HexCoord(2, 2)
        assert turn.moves == []

    def test_marches_on_objective(self, monkeypatch):
        scheduler = make_scheduler([unit((2, 2), "left")], max_turns=10)
        monkeypatch.setattr(scheduler.evaluator, "evaluate", lambda: None)

        while not scheduler.state.game_over:
            scheduler.tick()

        assert scheduler.state.end_reason == "objective"
        assert scheduler.state.result == BattleResult.LEFT

    def test_battle_always_terminates(self):
        scheduler = make_scheduler(
            [unit((0, 0), "left"), unit((1, 1), "left"), unit((4, 0), "right"), unit((5, 1), "right")],
            max_turns=30,
        )
        while not scheduler.state.game_over:
            scheduler.tick()
        assert scheduler.state.turn <= 30


class TestSnapshot:
    """Test the plain-data battle view."""

    def test_snapshot(self):
        scheduler = make_scheduler([unit((0, 0), "left", name="alpha"), unit((5, 3), "right")])
        snapshot = scheduler.get_battle_snapshot()

        assert snapshot["status"] == "in_progress"
        assert snapshot["alive"] == {"left": 1, "right": 1}
        assert snapshot["units"][0] == {
            "id": 1, "name": "alpha", "owner": "left", "coord": [0, 0],
            "health": 100, "max_health": 100, "status": "healthy",
        }
        assert snapshot["units"][1]["name"] == "unit-2"

    def test_deterministic(self):
        def run():
            scheduler = make_scheduler(
                [unit((0, 0), "left"), unit((2, 1), "left"), unit((5, 0), "right"), unit((3, 2), "right")],
                max_turns=20,
            )
            while not scheduler.state.game_over:
                scheduler.tick()
            return scheduler.get_battle_snapshot()

        assert run() == run()
