"""
Game Rules
==========

Termination and level-clear conditions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pile_store import PieceCollection, as_piece_list


@dataclass
class TerminationResult:
    """Result of a termination check."""
    terminated: bool
    level_cleared: bool
    reason: str

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(False, False, "")

    @staticmethod
    def game_over(reason: str) -> "TerminationResult":
        return TerminationResult(True, False, reason)

    @staticmethod
    def cleared(reason: str) -> "TerminationResult":
        return TerminationResult(False, True, reason)


class GameRules:
    """
    End-of-level and end-of-game checks.

    - Health depleted: game over
    - Pile cleared: every piece without a creature has been removed
    - Quota reached: the level's wood count has been collected
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize game rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config

    @staticmethod
    def is_pile_cleared(all_pieces: PieceCollection) -> bool:
        """True if no creature-free piece is left in the pile."""
        return all(
            p.is_removed or p.creature is not None
            for p in as_piece_list(all_pieces)
        )

    def check_termination(
        self,
        health: int,
        all_pieces: PieceCollection,
        wood_collected: int = 0,
        wood_target: Optional[int] = None
    ) -> TerminationResult:
        """
        Check all termination conditions.

        Args:
            health: Current player health.
            all_pieces: The pile.
            wood_collected: Pieces collected this level.
            wood_target: Level quota; no quota check if None.

        Returns:
            TerminationResult indicating game state.
        """
        if health <= 0:
            return TerminationResult.game_over("health_depleted")

        if self.is_pile_cleared(all_pieces):
            return TerminationResult.cleared("pile_cleared")

        if wood_target is not None and wood_collected >= wood_target:
            return TerminationResult.cleared("quota_reached")

        return TerminationResult.none()
