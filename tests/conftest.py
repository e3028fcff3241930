import pytest

from powerludo.engine import GameEngine
from powerludo.state import PowerUp, PowerUpType


@pytest.fixture
def engine():
    """Four-player game with an empty board so moves never pick anything up."""
    game = GameEngine(4, seed=7)
    game.state.power_ups_on_board.clear()
    return game


def place(engine, token_id, position):
    result = engine.set_token_position(token_id, position, "ACTIVE")
    assert result.ok
    return engine.state.tokens[token_id]


def give(engine, player_id, *types):
    player = engine.state.player(player_id)
    for i, kind in enumerate(types):
        player.power_ups.append(PowerUp(power_up_id=f"test_{player_id}_{len(player.power_ups)}_{i}", type=PowerUpType(kind)))
    return player
