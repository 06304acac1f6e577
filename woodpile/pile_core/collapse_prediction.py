"""
Collapse Prediction
===================

Hover preview: which pieces would fall, or be put at risk, if a given piece
were pulled out right now. Nothing is mutated; removals are simulated with
an id exclusion set.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import AffectedPiece, CollapsePrediction, WoodPiece
from woodpile.pile_core.pile_store import PieceCollection, as_piece_list, find_by_id
from woodpile.pile_core.support_geometry import SupportGeometry

logger = logging.getLogger(__name__)


class CollapsePredictionCalculator:
    """
    Classifies every piece's fate for one hypothetical removal.

    Tiers, strongest first:

    - WILL_COLLAPSE: every support is gone, directly or through a chain of
      collapsing supporters
    - HIGH_RISK: lost a support, exactly one remains
    - MEDIUM_RISK: lost a support, two or more remain
    - LOW_RISK: not structurally dependent, but beside a collapsing piece

    Ground pieces are never classified. Pieces the removal does not touch
    are omitted from the result.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        canvas_height: Optional[float] = None,
        geometry: Optional[SupportGeometry] = None
    ):
        """
        Initialize calculator.

        Args:
            config: Game configuration. Uses default if None.
            canvas_height: Viewport height. Uses the configured height if None.
            geometry: Shared geometry evaluator. Created if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._geometry = geometry or SupportGeometry(config, canvas_height)
        self._low_risk_neighbours = config.prediction.low_risk_neighbours
        self._side_tolerance = config.prediction.side_tolerance

    @property
    def geometry(self) -> SupportGeometry:
        return self._geometry

    def update_canvas_height(self, new_height: float) -> None:
        """Update the viewport height used for ground detection."""
        self._geometry.update_canvas_height(new_height)

    def is_on_ground(self, piece: WoodPiece) -> bool:
        return self._geometry.is_on_ground(piece)

    def is_piece_supporting(self, piece: WoodPiece, support_piece: WoodPiece) -> bool:
        return self._geometry.is_piece_supporting(piece, support_piece)

    def find_supporting_pieces(
        self,
        piece: WoodPiece,
        all_pieces: PieceCollection
    ) -> List[WoodPiece]:
        return self._geometry.find_supporting_pieces(piece, as_piece_list(all_pieces))

    def calculate_affected_pieces(
        self,
        hovered_piece: WoodPiece,
        all_pieces: PieceCollection
    ) -> List[AffectedPiece]:
        """
        Predict the effect of removing ``hovered_piece``.

        Args:
            hovered_piece: The piece under the cursor.
            all_pieces: The whole pile.

        Returns:
            Affected pieces with their predictions, in pile order. The
            hovered piece itself is never included.
        """
        pieces = as_piece_list(all_pieces)
        if hovered_piece.is_removed:
            return []
        if find_by_id(pieces, hovered_piece.id) is None:
            logger.warning("Prediction for unknown piece %s ignored", hovered_piece.id)
            return []

        candidates = [
            p for p in pieces
            if not p.is_removed
            and p.id != hovered_piece.id
            and not self._geometry.is_on_ground(p)
        ]
        supports: Dict[str, List[WoodPiece]] = {
            p.id: self._geometry.find_supporting_pieces(p, pieces)
            for p in candidates
        }

        collapsing = self._propagate_collapse(hovered_piece, candidates, supports)

        predictions: Dict[str, CollapsePrediction] = {}
        for piece in candidates:
            if piece.id in collapsing:
                self._promote(predictions, piece, CollapsePrediction.WILL_COLLAPSE)
                continue

            own = supports[piece.id]
            lost = sum(1 for s in own if s.id in collapsing)
            if lost == 0:
                continue
            remaining = len(own) - lost
            if remaining == 1:
                self._promote(predictions, piece, CollapsePrediction.HIGH_RISK)
            else:
                self._promote(predictions, piece, CollapsePrediction.MEDIUM_RISK)

        if self._low_risk_neighbours:
            self._mark_side_neighbours(pieces, candidates, collapsing, hovered_piece, predictions)

        result = [
            AffectedPiece(piece=p, prediction=predictions[p.id])
            for p in candidates
            if p.id in predictions
        ]

        logger.debug(
            "Prediction for %s: %d affected, %d will collapse",
            hovered_piece.id, len(result), len(collapsing) - 1
        )
        return result

    def _propagate_collapse(
        self,
        hovered_piece: WoodPiece,
        candidates: List[WoodPiece],
        supports: Dict[str, List[WoodPiece]]
    ) -> Set[str]:
        """
        Grow the set of falling ids until no further piece loses all support.

        The returned set contains the hovered piece's id. Pieces without any
        support before the removal are left alone; the removal does not change
        them.
        """
        collapsing: Set[str] = {hovered_piece.id}

        # Each pass adds at least one id or stops, so len(candidates) bounds it
        for _ in range(len(candidates) + 1):
            changed = False
            for piece in candidates:
                if piece.id in collapsing:
                    continue
                own = supports[piece.id]
                if own and all(s.id in collapsing for s in own):
                    collapsing.add(piece.id)
                    changed = True
            if not changed:
                break

        return collapsing

    def _mark_side_neighbours(
        self,
        pieces: List[WoodPiece],
        candidates: List[WoodPiece],
        collapsing: Set[str],
        hovered_piece: WoodPiece,
        predictions: Dict[str, CollapsePrediction]
    ) -> None:
        """Flag LOW_RISK for unclassified pieces beside a collapsing piece."""
        falling = [p for p in candidates if p.id in collapsing]
        if not falling:
            return

        excluded = {hovered_piece.id}
        for piece in falling:
            for neighbour in self._geometry.find_side_neighbours(
                piece, pieces, self._side_tolerance, excluded
            ):
                if neighbour.id in predictions or neighbour.id in collapsing:
                    continue
                if self._geometry.is_on_ground(neighbour):
                    continue
                self._promote(predictions, neighbour, CollapsePrediction.LOW_RISK)

    @staticmethod
    def _promote(
        predictions: Dict[str, CollapsePrediction],
        piece: WoodPiece,
        prediction: CollapsePrediction
    ) -> None:
        """Record ``prediction`` unless a stronger tier is already set."""
        current = predictions.get(piece.id)
        if current is None or prediction.severity > current.severity:
            predictions[piece.id] = prediction
