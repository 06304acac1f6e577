"""
Scoring System
==============

Awards points for collected wood based on game configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.wood_catalog import WoodCatalog, get_catalog


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    wood_type: str
    difficulty_multiplier: float = 1.0
    is_creature_bonus: bool = False

    def __repr__(self) -> str:
        if self.is_creature_bonus:
            return f"ScoreEvent(creature_bonus={self.points})"
        return f"ScoreEvent({self.wood_type}={self.points})"


class ScoreTracker:
    """
    Tracks score for collected wood.

    Points per piece: ``floor(points_per_wood * difficulty * wood_type)``.
    A creature beaten in time is worth ``creature_success_multiplier``
    plain pieces.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        difficulty_multiplier: float = 1.0
    ):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
            difficulty_multiplier: Score multiplier of the active difficulty.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._catalog: WoodCatalog = get_catalog(config)
        self._points_per_wood = config.gameplay.points_per_wood
        self._difficulty_multiplier = difficulty_multiplier
        self._score: int = 0
        self._collected: int = 0

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def collected(self) -> int:
        """Pieces collected so far."""
        return self._collected

    @property
    def difficulty_multiplier(self) -> float:
        return self._difficulty_multiplier

    @difficulty_multiplier.setter
    def difficulty_multiplier(self, value: float) -> None:
        self._difficulty_multiplier = max(0.0, value)

    def get_wood_score(self, wood_type: str) -> int:
        """
        Points for collecting one piece of ``wood_type``.

        Unknown wood types score as normal wood.
        """
        multiplier = self._catalog[wood_type].score_multiplier
        return math.floor(self._points_per_wood * self._difficulty_multiplier * multiplier)

    def apply_wood(self, wood_type: str) -> ScoreEvent:
        """Add the score for one collected piece and return the event."""
        points = self.get_wood_score(wood_type)
        self._score += points
        self._collected += 1
        return ScoreEvent(
            points=points,
            wood_type=self._catalog[wood_type].name,
            difficulty_multiplier=self._difficulty_multiplier
        )

    def apply_creature_success(self) -> ScoreEvent:
        """Add the bonus for reacting to a creature in time."""
        points = self._points_per_wood * self._config.gameplay.creature_success_multiplier
        self._score += points
        return ScoreEvent(points=points, wood_type="", is_creature_bonus=True)

    def add_bonus(self, points: int) -> None:
        """Add bonus points (speed bonus at level end)."""
        self._score += points

    def reset(self) -> None:
        """Reset score to zero."""
        self._score = 0
        self._collected = 0
