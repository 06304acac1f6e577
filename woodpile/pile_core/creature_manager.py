"""
Creature Manager
================

Creature encounters: a piece hiding a creature starts a reaction timer
instead of scoring. Pressing the creature's key in time earns a bonus;
running out of time costs health.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.game_state import ActiveCreature, GameState
from woodpile.pile_core.pieces import CreatureType, WoodPiece

logger = logging.getLogger(__name__)


class CreatureManager:
    """
    Tracks the active creature on a shared GameState.

    Score and health changes are reported through callbacks so the game
    orchestrator decides how to apply them.
    """

    def __init__(
        self,
        state: GameState,
        config: Optional[GameConfig] = None,
        reaction_time_ms: Optional[float] = None,
        health_penalty: Optional[int] = None
    ):
        """
        Initialize creature manager.

        Args:
            state: Game state the active creature is stored on.
            config: Game configuration. Uses default if None.
            reaction_time_ms: Overrides the configured reaction window.
            health_penalty: Overrides the configured penalty for a miss.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._state = state
        self.reaction_time_ms = (
            reaction_time_ms if reaction_time_ms is not None
            else config.gameplay.reaction_time_ms
        )
        self.health_penalty = (
            health_penalty if health_penalty is not None
            else config.gameplay.health_penalty
        )
        self._keys: Dict[CreatureType, str] = {
            CreatureType(c.name): c.key for c in config.creatures
        }

        self._on_success: Optional[Callable[[], None]] = None
        self._on_failure: Optional[Callable[[int], None]] = None

    def bind_state(self, state: GameState) -> None:
        """Point at a new state object (after a restart)."""
        self._state = state

    @property
    def active_creature(self) -> Optional[ActiveCreature]:
        return self._state.active_creature

    def has_active_creature(self) -> bool:
        return self._state.active_creature is not None

    @staticmethod
    def has_creature(piece: WoodPiece) -> bool:
        return piece.creature is not None

    def key_for(self, creature: CreatureType) -> Optional[str]:
        """Key that scares off ``creature``."""
        return self._keys.get(creature)

    def encounter_creature(self, piece: WoodPiece) -> bool:
        """
        Start an encounter with the creature hidden in ``piece``.

        The piece is taken out of the pile; the creature is drawn on top.

        Returns:
            True if an encounter started.
        """
        if piece.creature is None:
            return False

        self._state.active_creature = ActiveCreature(
            creature=piece.creature,
            time_left_ms=self.reaction_time_ms,
            max_time_ms=self.reaction_time_ms,
            position=piece.position
        )
        piece.is_removed = True
        logger.debug("Creature %s appeared at %s", piece.creature.value, piece.id)
        return True

    def handle_key(self, key: str) -> bool:
        """
        React to a key press.

        Only the active creature's key counts; other keys are ignored.

        Returns:
            True if the reaction succeeded.
        """
        active = self._state.active_creature
        if active is None:
            return False
        if self._keys.get(active.creature) != key:
            return False
        self.handle_successful_reaction()
        return True

    def handle_successful_reaction(self) -> None:
        if self._state.active_creature is None:
            return
        self._state.active_creature = None
        if self._on_success is not None:
            self._on_success()

    def handle_failed_reaction(self) -> None:
        active = self._state.active_creature
        if active is None:
            return
        self._state.active_creature = None
        logger.debug("Creature %s was not scared off in time", active.creature.value)
        if self._on_failure is not None:
            self._on_failure(self.health_penalty)

    def update(self, delta_ms: float) -> bool:
        """
        Advance the reaction timer.

        Returns:
            True if the active creature timed out during this update.
        """
        active = self._state.active_creature
        if active is None:
            return False
        active.time_left_ms -= delta_ms
        if active.time_left_ms <= 0:
            self.handle_failed_reaction()
            return True
        return False

    def clear_active_creature(self) -> None:
        self._state.active_creature = None

    def set_on_success(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_success = callback

    def set_on_failure(self, callback: Optional[Callable[[int], None]]) -> None:
        """Register the callback receiving the health penalty for a miss."""
        self._on_failure = callback
