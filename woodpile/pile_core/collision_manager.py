"""
Collision Manager
=================

Authoritative, mutating entry point for player removals: resolves the
cascade, refreshes risk annotations, computes damage and notifies the
registered collapse handler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import CollapseRisk, WoodPiece
from woodpile.pile_core.pile_generator import WoodPileGenerator
from woodpile.pile_core.pile_store import PieceCollection, as_piece_list

logger = logging.getLogger(__name__)

# (damage, collapsed pieces)
CollapseHandler = Callable[[int, List[WoodPiece]], None]

STABILITY_PRECISION = 2


@dataclass
class StabilityReport:
    """Summary of the pile's advisory risk annotations."""
    stable_pieces: int
    unstable_pieces: int
    total_pieces: int
    stability_percentage: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "stable_pieces": self.stable_pieces,
            "unstable_pieces": self.unstable_pieces,
            "total_pieces": self.total_pieces,
            "stability_percentage": self.stability_percentage,
        }


@dataclass
class CollapseOutcome:
    """Result of one committed removal."""
    removed_piece: WoodPiece
    collapsed_pieces: List[WoodPiece] = field(default_factory=list)
    damage: int = 0
    stability: Optional[StabilityReport] = None

    @property
    def caused_collapse(self) -> bool:
        return bool(self.collapsed_pieces)


class CollisionManager:
    """
    Commits removals against a pile.

    The only state held across calls is the collapse handler, registered
    once and invoked for every removal that brings other pieces down.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        generator: Optional[WoodPileGenerator] = None
    ):
        """
        Initialize collision manager.

        Args:
            config: Game configuration. Uses default if None.
            generator: Pile generator providing the stability pass and the
                cascade resolver. Created if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._generator = generator or WoodPileGenerator(config)
        self._damage_per_piece = config.collapse.damage_per_piece
        self._on_collapse_detected: Optional[CollapseHandler] = None

    @property
    def generator(self) -> WoodPileGenerator:
        return self._generator

    @property
    def damage_per_piece(self) -> int:
        return self._damage_per_piece

    def set_on_collapse_detected(self, handler: Optional[CollapseHandler]) -> None:
        """
        Register the handler called with ``(damage, collapsed_pieces)``.

        Args:
            handler: Callback, or None to unregister.
        """
        self._on_collapse_detected = handler

    def will_cause_collapse(self, piece: WoodPiece, all_pieces: PieceCollection) -> bool:
        """True if removing ``piece`` would bring down at least one other piece."""
        return len(self.get_collapsing_pieces(piece, all_pieces)) > 0

    def get_collapsing_pieces(
        self,
        piece: WoodPiece,
        all_pieces: PieceCollection
    ) -> List[WoodPiece]:
        """Cascade set for removing ``piece``, without committing anything."""
        return self._generator.find_collapsing_pieces(piece, all_pieces)

    def handle_potential_collapse(
        self,
        piece: WoodPiece,
        all_pieces: PieceCollection,
        risk_multiplier: float = 1.0
    ) -> CollapseOutcome:
        """
        Commit the removal of ``piece`` and everything it brings down.

        Args:
            piece: The piece the player pulled out.
            all_pieces: The whole pile.
            risk_multiplier: Damage scale for the removed wood type.

        Returns:
            CollapseOutcome with the cascade, damage and refreshed stability.
        """
        cascade = self._generator.resolve_collapse(piece, all_pieces)
        collapsed = cascade.collapsed

        self.update_collapse_risks(all_pieces)

        damage = self.calculate_collapse_damage(collapsed, risk_multiplier)
        outcome = CollapseOutcome(
            removed_piece=piece,
            collapsed_pieces=collapsed,
            damage=damage,
            stability=self.check_stability(all_pieces)
        )

        if collapsed:
            logger.info(
                "Removing %s collapsed %d pieces (%d damage)",
                piece.id, len(collapsed), damage
            )
            if self._on_collapse_detected is not None:
                self._on_collapse_detected(damage, collapsed)

        return outcome

    def calculate_collapse_damage(
        self,
        pieces: List[WoodPiece],
        risk_multiplier: float = 1.0
    ) -> int:
        """Damage for a list of collapsed pieces: ``count * damage_per_piece``."""
        if not pieces:
            return 0
        return int(len(pieces) * self._damage_per_piece * risk_multiplier)

    def check_stability(self, all_pieces: PieceCollection) -> StabilityReport:
        """
        Count stable pieces among those still in the pile.

        A piece is stable when its current risk annotation is NONE. An empty
        pile is fully stable.
        """
        active = [p for p in as_piece_list(all_pieces) if not p.is_removed]
        total = len(active)
        stable = sum(1 for p in active if p.collapse_risk == CollapseRisk.NONE)

        if total == 0:
            percentage = 100.0
        else:
            percentage = round(100.0 * stable / total, STABILITY_PRECISION)

        return StabilityReport(
            stable_pieces=stable,
            unstable_pieces=total - stable,
            total_pieces=total,
            stability_percentage=percentage
        )

    def update_collapse_risks(self, all_pieces: PieceCollection) -> PieceCollection:
        """Run the stability pass over the current pile."""
        return self._generator.update_collapse_risks(all_pieces)
