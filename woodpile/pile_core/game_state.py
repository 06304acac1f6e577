"""
Game State
==========

Score, health, pause and game-over flags with change callbacks for the UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Optional

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import CreatureType

logger = logging.getLogger(__name__)


@dataclass
class ActiveCreature:
    """A creature the player must react to."""
    creature: CreatureType
    time_left_ms: float
    max_time_ms: float
    position: tuple

    @property
    def progress(self) -> float:
        """Fraction of the reaction window already used (0..1)."""
        if self.max_time_ms <= 0:
            return 1.0
        return min(1.0, max(0.0, 1.0 - self.time_left_ms / self.max_time_ms))


@dataclass
class GameState:
    score: int = 0
    health: int = 100
    is_game_over: bool = False
    is_paused: bool = False
    active_creature: Optional[ActiveCreature] = None


class GameStateManager:
    """
    Owns the mutable game state.

    Health is clamped at zero and reaching zero ends the game.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        starting_health: Optional[int] = None
    ):
        """
        Initialize state manager.

        Args:
            config: Game configuration. Uses default if None.
            starting_health: Overrides the configured starting health
                (difficulty scaling).
        """
        if config is None:
            config = get_config()

        self._config = config
        self._starting_health = (
            starting_health if starting_health is not None
            else config.gameplay.starting_health
        )
        self._state = self._initial_state()

        self._on_score_update: Optional[Callable[[int], None]] = None
        self._on_health_update: Optional[Callable[[int], None]] = None
        self._on_game_over: Optional[Callable[[], None]] = None
        self._on_game_restart: Optional[Callable[[], None]] = None

    def _initial_state(self) -> GameState:
        return GameState(health=self._starting_health)

    @property
    def state(self) -> GameState:
        """Live state object (shared with the creature manager)."""
        return self._state

    @property
    def score(self) -> int:
        return self._state.score

    @property
    def health(self) -> int:
        return self._state.health

    @property
    def starting_health(self) -> int:
        return self._starting_health

    @starting_health.setter
    def starting_health(self, value: int) -> None:
        self._starting_health = max(1, int(value))

    @property
    def is_game_over(self) -> bool:
        return self._state.is_game_over

    @property
    def is_paused(self) -> bool:
        return self._state.is_paused

    def add_score(self, points: int) -> None:
        self._state.score += points
        if self._on_score_update is not None:
            self._on_score_update(self._state.score)

    def set_score(self, score: int) -> None:
        """Overwrite the score (kept in sync with the score tracker)."""
        self._state.score = score
        if self._on_score_update is not None:
            self._on_score_update(self._state.score)

    def reduce_health(self, damage: int) -> None:
        """
        Apply damage; a negative value heals.

        Ends the game when health reaches zero.
        """
        if self._state.is_game_over:
            return
        self._state.health = max(0, self._state.health - damage)
        if self._on_health_update is not None:
            self._on_health_update(self._state.health)
        if self._state.health <= 0:
            self.end_game()

    def heal(self, amount: int) -> None:
        self.reduce_health(-amount)

    def end_game(self) -> None:
        if self._state.is_game_over:
            return
        self._state.is_game_over = True
        logger.info("Game over with score %d", self._state.score)
        if self._on_game_over is not None:
            self._on_game_over()

    def restart_game(self) -> None:
        """Reset to a fresh state and notify listeners."""
        self._state = self._initial_state()
        if self._on_score_update is not None:
            self._on_score_update(0)
        if self._on_health_update is not None:
            self._on_health_update(self._state.health)
        if self._on_game_restart is not None:
            self._on_game_restart()

    def toggle_pause(self) -> None:
        self._state.is_paused = not self._state.is_paused

    def set_paused(self, paused: bool) -> None:
        self._state.is_paused = paused

    def can_continue(self) -> bool:
        """True unless the game is over or paused."""
        return not self._state.is_game_over and not self._state.is_paused

    def get_stats(self) -> Dict[str, object]:
        stats = asdict(self._state)
        stats["health_percentage"] = 100.0 * self._state.health / self._starting_health
        stats["is_active"] = self.can_continue()
        stats["has_active_creature"] = self._state.active_creature is not None
        return stats

    def set_on_score_update(self, callback: Optional[Callable[[int], None]]) -> None:
        self._on_score_update = callback

    def set_on_health_update(self, callback: Optional[Callable[[int], None]]) -> None:
        self._on_health_update = callback

    def set_on_game_over(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_game_over = callback

    def set_on_game_restart(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_game_restart = callback
