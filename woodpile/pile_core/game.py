"""
Core Game
=========

Main game orchestrator combining the pile, collapse engine, scoring,
creatures, levels and rules.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from woodpile.pile_core.collapse_prediction import CollapsePredictionCalculator
from woodpile.pile_core.collision_manager import CollapseOutcome, CollisionManager
from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.creature_manager import CreatureManager
from woodpile.pile_core.game_state import GameStateManager
from woodpile.pile_core.level_manager import LevelCompletion, LevelManager
from woodpile.pile_core.pieces import AffectedPiece, WoodPiece
from woodpile.pile_core.pile_generator import WoodPileGenerator
from woodpile.pile_core.pile_store import PileStore
from woodpile.pile_core.rules import GameRules, TerminationResult
from woodpile.pile_core.scoring import ScoreEvent, ScoreTracker
from woodpile.pile_core.state_snapshot import PileSnapshot, SnapshotBuilder
from woodpile.pile_core.support_geometry import SupportGeometry
from woodpile.pile_core.wood_catalog import get_catalog

logger = logging.getLogger(__name__)


@dataclass
class RemovalResult:
    """Result of the player clicking one piece."""
    accepted: bool
    piece_id: str
    reason: str = ""
    score_event: Optional[ScoreEvent] = None
    creature_encountered: bool = False
    outcome: Optional[CollapseOutcome] = None
    termination: TerminationResult = field(default_factory=TerminationResult.none)
    level_completion: Optional[LevelCompletion] = None

    @property
    def collapsed_ids(self) -> List[str]:
        if self.outcome is None:
            return []
        return [p.id for p in self.outcome.collapsed_pieces]

    @property
    def damage(self) -> int:
        return self.outcome.damage if self.outcome is not None else 0

    @staticmethod
    def rejected(piece_id: str, reason: str) -> "RemovalResult":
        return RemovalResult(accepted=False, piece_id=piece_id, reason=reason)


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Pile generation and the pile store
    - Hover prediction and committed collapses
    - Scoring and health
    - Creature encounters
    - Level progression and termination rules
    - State snapshots

    One action = one piece pulled out, fully resolved before returning.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        difficulty: Optional[str] = None,
        level: int = 1,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize game.

        Args:
            config: Base game configuration. Uses default if None.
            seed: Random seed for reproducible piles.
            difficulty: Difficulty name. Uses the configured default if None.
            level: Starting level.
            clock: Time source in seconds for the speed bonus.
        """
        if config is None:
            config = get_config()

        self._base_config = config
        self._seed = seed
        self._starting_level = level
        self._levels = LevelManager(config, difficulty, level, clock)
        self._canvas_width: float = float(config.board.canvas_width)
        self._canvas_height: float = float(config.board.canvas_height)

        self._pile = PileStore()
        self._termination = TerminationResult.none()
        self._on_collapse: Optional[Callable[[int, List[WoodPiece]], None]] = None

        self._build_subsystems()

    def _build_subsystems(self) -> None:
        """(Re)create every subsystem that depends on the difficulty."""
        config = self._levels.apply_difficulty_to_config(self._base_config)
        self._config = config

        self._catalog = get_catalog(config)
        self._geometry = SupportGeometry(config, self._canvas_height)
        self._generator = WoodPileGenerator(config, self._seed, self._geometry)
        self._collision = CollisionManager(config, self._generator)
        self._predictor = CollapsePredictionCalculator(config, geometry=self._geometry)
        self._scorer = ScoreTracker(config, self._levels.difficulty.score_multiplier)
        self._state = GameStateManager(config)
        self._creatures = CreatureManager(self._state.state, config)
        self._rules = GameRules(config)
        self._snapshot_builder = SnapshotBuilder(config)

        self._collision.set_on_collapse_detected(self._handle_collapse)
        self._creatures.set_on_success(self._handle_creature_success)
        self._creatures.set_on_failure(self._handle_creature_failure)

    # -- Properties -----------------------------------------------------

    @property
    def config(self) -> GameConfig:
        """Effective configuration (difficulty applied)."""
        return self._config

    @property
    def pile(self) -> PileStore:
        return self._pile

    @property
    def geometry(self) -> SupportGeometry:
        return self._geometry

    @property
    def collision(self) -> CollisionManager:
        return self._collision

    @property
    def predictor(self) -> CollapsePredictionCalculator:
        return self._predictor

    @property
    def state(self) -> GameStateManager:
        return self._state

    @property
    def creatures(self) -> CreatureManager:
        return self._creatures

    @property
    def levels(self) -> LevelManager:
        return self._levels

    @property
    def score(self) -> int:
        return self._scorer.score

    @property
    def health(self) -> int:
        return self._state.health

    @property
    def level(self) -> int:
        return self._levels.current_level

    @property
    def is_over(self) -> bool:
        return self._state.is_game_over

    @property
    def termination(self) -> TerminationResult:
        return self._termination

    def set_on_collapse(self, callback: Optional[Callable[[int, List[WoodPiece]], None]]) -> None:
        """Register a listener for collapses (animation, particles, audio)."""
        self._on_collapse = callback

    # -- Lifecycle ------------------------------------------------------

    def reset(
        self,
        seed: Optional[int] = None,
        level: Optional[int] = None,
        difficulty: Optional[str] = None
    ) -> PileSnapshot:
        """
        Start a new game.

        Args:
            seed: New random seed. Uses previous if None.
            level: Starting level. Uses the constructor's if None.
            difficulty: New difficulty name. Keeps the current one if None.

        Returns:
            Initial snapshot.
        """
        if seed is not None:
            self._seed = seed
        if level is not None:
            self._starting_level = level
        if difficulty is not None:
            self._levels.set_difficulty(difficulty)

        self._levels.reset()
        self._build_subsystems()
        self._state.restart_game()
        self._creatures.bind_state(self._state.state)
        self._termination = TerminationResult.none()

        self._start_level(self._starting_level)
        return self.snapshot()

    def start_next_level(self) -> PileSnapshot:
        """Generate the pile for the current level after a completion."""
        self._creatures.clear_active_creature()
        self._termination = TerminationResult.none()
        self._start_level(self._levels.current_level)
        return self.snapshot()

    def _start_level(self, level: int) -> None:
        self._levels.start_level(level)
        self._pile = self._generator.generate_wood_pile(
            canvas_width=self._canvas_width,
            max_rows=self._levels.level_info.stack_height
        )

    def resize(self, width: float, height: float) -> None:
        """Track a viewport resize; pieces keep their coordinates."""
        self._canvas_width = float(width)
        self._canvas_height = float(height)
        self._predictor.update_canvas_height(height)
        self._collision.update_collapse_risks(self._pile)

    # -- Player actions -------------------------------------------------

    def piece_at(self, x: float, y: float) -> Optional[WoodPiece]:
        return self._pile.piece_at(x, y)

    def preview_removal(self, piece_id: str) -> List[AffectedPiece]:
        """Prediction for hovering ``piece_id``; empty for unknown ids."""
        piece = self._pile.get(piece_id)
        if piece is None:
            logger.warning("Preview for unknown piece %s ignored", piece_id)
            return []
        return self._predictor.calculate_affected_pieces(piece, self._pile)

    def remove_piece(self, piece_id: str) -> RemovalResult:
        """
        Pull a piece out of the pile.

        Args:
            piece_id: Id of the clicked piece.

        Returns:
            RemovalResult describing score, collapse and termination.
        """
        if self._state.is_game_over:
            return RemovalResult.rejected(piece_id, "game_over")
        if self._state.is_paused:
            return RemovalResult.rejected(piece_id, "paused")
        if self._termination.level_cleared:
            return RemovalResult.rejected(piece_id, "level_cleared")
        if self._creatures.has_active_creature():
            return RemovalResult.rejected(piece_id, "creature_active")

        piece = self._pile.get(piece_id)
        if piece is None:
            logger.warning("Removal of unknown piece %s ignored", piece_id)
            return RemovalResult.rejected(piece_id, "unknown_piece")
        if piece.is_removed:
            return RemovalResult.rejected(piece_id, "already_removed")

        result = RemovalResult(accepted=True, piece_id=piece_id)

        if self._creatures.has_creature(piece):
            # The creature takes the piece's place; the pile still settles
            result.creature_encountered = self._creatures.encounter_creature(piece)
            result.outcome = self._collision.handle_potential_collapse(piece, self._pile)
            return self._settle_removal(result)

        wood_type = self._catalog[piece.wood_type]
        self._pile.mark_removed(piece.id)

        score_event = self._scorer.apply_wood(wood_type.name)
        self._state.set_score(self._scorer.score)
        result.score_event = score_event

        if wood_type.health_effect != 0:
            self._state.reduce_health(-wood_type.health_effect)

        self._levels.on_wood_collected(score_event.points)

        result.outcome = self._collision.handle_potential_collapse(
            piece, self._pile, wood_type.collapse_risk_multiplier
        )

        return self._settle_removal(result)

    def _settle_removal(self, result: RemovalResult) -> RemovalResult:
        """Check termination and close out the level if it was cleared."""
        result.termination = self._check_termination()
        if result.termination.level_cleared:
            completion = self._levels.complete_level()
            self._scorer.add_bonus(completion.speed_bonus)
            self._state.set_score(self._scorer.score)
            result.level_completion = completion
        return result

    def handle_key(self, key: str) -> bool:
        """Forward a key press to the active creature. True on success."""
        if not self._state.can_continue():
            return False
        return self._creatures.handle_key(key)

    def update(self, delta_ms: float) -> bool:
        """
        Advance timers by ``delta_ms``.

        Returns:
            True if a creature timed out.
        """
        if not self._state.can_continue():
            return False
        timed_out = self._creatures.update(delta_ms)
        if timed_out:
            self._check_termination()
        return timed_out

    # -- Callbacks ------------------------------------------------------

    def _handle_collapse(self, damage: int, collapsed: List[WoodPiece]) -> None:
        self._state.reduce_health(damage)
        if self._on_collapse is not None:
            self._on_collapse(damage, collapsed)

    def _handle_creature_success(self) -> None:
        self._scorer.apply_creature_success()
        self._state.set_score(self._scorer.score)

    def _handle_creature_failure(self, penalty: int) -> None:
        self._state.reduce_health(penalty)

    def _check_termination(self) -> TerminationResult:
        termination = self._rules.check_termination(
            health=self._state.health,
            all_pieces=self._pile,
            wood_collected=self._levels.wood_collected,
            wood_target=self._levels.level_info.wood_count
        )
        if termination.terminated and not self._termination.terminated:
            self._state.end_game()
            self._levels.fail_level(termination.reason)
        self._termination = termination
        return termination

    # -- Views ----------------------------------------------------------

    def snapshot(self) -> PileSnapshot:
        """Build current pile snapshot."""
        return self._snapshot_builder.build(
            self._pile,
            ground_line=self._geometry.ground_line,
            canvas_width=self._canvas_width,
            canvas_height=self._canvas_height,
            score=self._scorer.score,
            health=self._state.health,
            level=self._levels.current_level
        )

    def get_info(self) -> Dict[str, Any]:
        stability = self._collision.check_stability(self._pile)
        return {
            "score": self._scorer.score,
            "health": self._state.health,
            "level": self._levels.current_level,
            "difficulty": self._levels.difficulty.name,
            "wood_collected": self._levels.wood_collected,
            "active_pieces": self._pile.active_count,
            "stability": stability.to_dict(),
            "termination_reason": self._termination.reason,
        }

    def get_render_data(self, hovered_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Args:
            hovered_id: Piece under the cursor; its prediction is included.

        Returns:
            Dict with pieces, risk highlights and HUD values.
        """
        predictions = {}
        if hovered_id is not None and self._pile.get(hovered_id) is not None:
            predictions = {
                a.piece.id: a.prediction.value
                for a in self.preview_removal(hovered_id)
            }

        pieces_data = []
        for piece in self._pile.active_pieces():
            wood_type = self._catalog[piece.wood_type]
            pieces_data.append({
                "id": piece.id,
                "x": piece.x,
                "y": piece.y,
                "width": piece.width,
                "height": piece.height,
                "shape": piece.shape.value,
                "wood_type": wood_type.name,
                "visual": wood_type.visual,
                "highlight_color": wood_type.highlight_color,
                "collapse_risk": piece.collapse_risk.value,
                "prediction": predictions.get(piece.id),
            })

        active = self._creatures.active_creature
        return {
            "canvas_width": self._canvas_width,
            "canvas_height": self._canvas_height,
            "ground_line": self._geometry.ground_line,
            "pieces": pieces_data,
            "hovered_id": hovered_id,
            "score": self._scorer.score,
            "health": self._state.health,
            "level": self._levels.current_level,
            "difficulty_color": self._levels.difficulty.color,
            "active_creature": None if active is None else {
                "creature": active.creature.value,
                "time_left_ms": active.time_left_ms,
                "progress": active.progress,
                "key": self._creatures.key_for(active.creature),
            },
            "is_paused": self._state.is_paused,
            "is_game_over": self._state.is_game_over,
        }
