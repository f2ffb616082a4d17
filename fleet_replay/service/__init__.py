"""External fight collaborators: reference simulator, local ladder and gateway client."""

from .simulator import ReferenceSimulator, MAX_ROUNDS
from .fight_service import (
    FightService,
    LocalFightService,
    PlayerDefence,
    LeaderboardEntry,
    DEFAULT_ATTACK_SEED,
)
from .client import GatewayFightService

__all__ = [
    "ReferenceSimulator",
    "MAX_ROUNDS",
    "FightService",
    "LocalFightService",
    "PlayerDefence",
    "LeaderboardEntry",
    "DEFAULT_ATTACK_SEED",
    "GatewayFightService",
]
