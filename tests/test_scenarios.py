"""Whole-turn walkthroughs driven only through the public engine commands."""

from conftest import give, place
from powerludo.engine import GameEngine
from powerludo.state import Phase, TokenStatus


def test_first_six_brings_token_out():
    engine = GameEngine(4, seed=2024)
    for _ in range(200):
        result = engine.roll()
        if result.dice_roll == 6:
            break
        engine.advance_turn()
        # Hand the die back to player 0
        engine.state.current_player_index = 0
    assert engine.state.dice_roll == 6
    assert engine.state.phase == Phase.MOVING

    first = next(t for t in engine.state.tokens_of("p0") if t.status == TokenStatus.BASE)
    result = engine.move_token(first.token_id)

    assert result.ok and result.bonus_turn
    assert first.status == TokenStatus.ACTIVE
    assert first.position == 0
    assert engine.state.current_player_index == 0
    assert engine.state.phase == Phase.ROLLING


def test_step_before_turning_index_enters_lane(engine):
    token = place(engine, "p0_t0", 49)
    engine.roll_with_value(3)
    engine.move_token("p0_t0")
    assert token.status == TokenStatus.HOME_STRETCH
    assert token.position == 1
    assert engine.state.current_player_index == 1


def test_capture_on_shared_square(engine):
    engine.state.current_player_index = 1
    place(engine, "p0_t0", 30)
    place(engine, "p1_t0", 30)
    mover = place(engine, "p1_t1", 27)
    engine.roll_with_value(3)

    result = engine.move_token("p1_t1")

    assert mover.position == 30
    assert result.captured == ["p0_t0"]
    assert engine.state.tokens["p0_t0"].status == TokenStatus.BASE
    assert engine.state.tokens["p1_t0"].status == TokenStatus.ACTIVE
    assert engine.state.current_player_index == 1
    assert engine.state.phase == Phase.ROLLING


def test_full_inventory_discard_flow(engine):
    player = give(engine, "p0", "SHIELD", "WARP", "FREEZE")
    place(engine, "p0_t0", 1)
    engine.spawn_power_up_on_board(4)
    new = engine.state.power_ups_on_board[4]

    engine.roll_with_value(3)
    result = engine.move_token("p0_t0")
    assert result.discard_required
    assert engine.state.phase == Phase.POWERUP_DISCARD
    assert engine.state.pending_collection.position == 4
    assert engine.state.pending_collection.player_id == "p0"

    result = engine.discard_power_up("p0", 2)
    assert result.ok and result.collected is new
    assert engine.state.pending_collection is None
    assert player.power_ups[-1] is new
    assert len(player.power_ups) == 3
    assert 4 not in engine.state.power_ups_on_board
    assert engine.state.phase == Phase.ROLLING
    # The move was not a bonus move, so the turn passed on once resolved
    assert engine.state.current_player_index == 1


def test_power_up_then_move_in_one_turn(engine):
    give(engine, "p0", "DOUBLE_MOVE")
    place(engine, "p0_t0", 20)
    victim = place(engine, "p1_t0", 30)

    engine.roll_with_value(5)
    assert engine.activate_power_up("p0", 0, target_token_id="p0_t0").ok
    assert engine.state.phase == Phase.MOVING
    result = engine.move_token("p0_t0")

    assert engine.state.tokens["p0_t0"].position == 30
    assert result.captured == ["p1_t0"]
    assert victim.status == TokenStatus.BASE
    assert engine.state.current_player_index == 0
