from powerludo.engine import GameEngine
from powerludo.results import CommandResult, ErrorKind
from powerludo.state import GameState, Phase, PowerUpType, TokenStatus

__all__ = ["GameEngine", "CommandResult", "ErrorKind", "GameState", "Phase", "PowerUpType", "TokenStatus"]
