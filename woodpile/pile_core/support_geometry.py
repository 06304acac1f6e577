"""
Support Geometry
================

Stateless geometric predicates answering "does B hold up A" and "is A on
the ground". Every query recomputes from current coordinates; nothing is
cached between calls except the ground line, which only changes with the
canvas height.
"""

from __future__ import annotations

from typing import AbstractSet, List, Optional, Sequence

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import WoodPiece

_NO_EXCLUSIONS: AbstractSet[str] = frozenset()


def horizontal_overlap(a: WoodPiece, b: WoodPiece) -> float:
    """Length of the shared horizontal span of two pieces (0 if disjoint)."""
    bb_a = a.bounds
    bb_b = b.bounds
    return max(0.0, min(bb_a.right, bb_b.right) - max(bb_a.left, bb_b.left))


class SupportGeometry:
    """
    Support and ground predicates for a pile.

    A support relation only flows downward: a lower, non-removed piece
    supports a higher one when its top edge meets the upper piece's bottom
    edge and it carries enough of the upper piece's width. Round pieces are
    also supported by a round piece whose centre is within one diameter
    horizontally.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        canvas_height: Optional[float] = None
    ):
        """
        Initialize geometry.

        Args:
            config: Game configuration. Uses default if None.
            canvas_height: Viewport height. Uses the configured height if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._support = config.support
        self._ground_margin = config.board.ground_margin
        self._canvas_height = float(
            canvas_height if canvas_height is not None else config.board.canvas_height
        )
        self._ground_line: Optional[float] = None

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def canvas_height(self) -> float:
        return self._canvas_height

    @property
    def ground_line(self) -> float:
        """Y coordinate of the floor pieces rest on."""
        if self._ground_line is None:
            self._ground_line = self._canvas_height - self._ground_margin
        return self._ground_line

    def update_canvas_height(self, new_height: float) -> None:
        """Track a viewport resize; the ground line is recomputed on next use."""
        self._canvas_height = float(new_height)
        self._ground_line = None

    def is_on_ground(self, piece: WoodPiece) -> bool:
        """True if the piece's bottom edge reaches the ground line."""
        return piece.bottom >= self.ground_line - self._support.ground_tolerance

    def is_piece_supporting(self, piece: WoodPiece, support_piece: WoodPiece) -> bool:
        """
        Check whether ``support_piece`` holds up ``piece``.

        Args:
            piece: The candidate piece above.
            support_piece: The candidate piece below.

        Returns:
            True if ``support_piece`` is a support of ``piece``.
        """
        if piece is support_piece or piece.id == support_piece.id:
            return False
        if piece.is_removed or support_piece.is_removed:
            return False

        # Support only flows from strictly lower pieces
        if support_piece.top <= piece.top:
            return False

        gap = support_piece.top - piece.bottom
        if abs(gap) > self._support.vertical_tolerance:
            return False

        # Majority of the upper piece must rest on the supporter
        overlap = horizontal_overlap(piece, support_piece)
        if overlap > 0 and overlap >= self._support.overlap_fraction * piece.width:
            return True

        if piece.is_circle and support_piece.is_circle:
            reach = self._support.circle_proximity_factor * (piece.radius + support_piece.radius)
            delta = support_piece.center - piece.center
            return abs(delta.x) < reach

        return False

    def find_supporting_pieces(
        self,
        piece: WoodPiece,
        all_pieces: Sequence[WoodPiece],
        excluded_ids: AbstractSet[str] = _NO_EXCLUSIONS
    ) -> List[WoodPiece]:
        """
        Find every piece currently holding up ``piece``.

        Args:
            piece: The supported piece.
            all_pieces: Candidate supporters.
            excluded_ids: Ids treated as removed (hypothetical removals).

        Returns:
            Supporting pieces in collection order.
        """
        return [
            other for other in all_pieces
            if not other.is_removed
            and other.id != piece.id
            and other.id not in excluded_ids
            and self.is_piece_supporting(piece, other)
        ]

    def find_supported_pieces(
        self,
        piece: WoodPiece,
        all_pieces: Sequence[WoodPiece],
        excluded_ids: AbstractSet[str] = _NO_EXCLUSIONS
    ) -> List[WoodPiece]:
        """Find every piece resting on ``piece``."""
        return [
            other for other in all_pieces
            if not other.is_removed
            and other.id != piece.id
            and other.id not in excluded_ids
            and self.is_piece_supporting(other, piece)
        ]

    def find_side_neighbours(
        self,
        piece: WoodPiece,
        all_pieces: Sequence[WoodPiece],
        tolerance: float,
        excluded_ids: AbstractSet[str] = _NO_EXCLUSIONS
    ) -> List[WoodPiece]:
        """
        Find pieces in the same row touching ``piece`` from the left or right.

        Two pieces share a row when their vertical spans overlap by at least
        half of the shorter height.
        """
        neighbours = []
        for other in all_pieces:
            if other.is_removed or other.id == piece.id or other.id in excluded_ids:
                continue
            shared = min(piece.bottom, other.bottom) - max(piece.top, other.top)
            if shared < 0.5 * min(piece.height, other.height):
                continue
            side_gap = max(other.left - piece.right, piece.left - other.right)
            if 0 <= side_gap <= tolerance:
                neighbours.append(other)
        return neighbours

    def get_support_count(
        self,
        piece: WoodPiece,
        all_pieces: Sequence[WoodPiece],
        excluded_ids: AbstractSet[str] = _NO_EXCLUSIONS
    ) -> int:
        """Number of pieces holding up ``piece``."""
        return len(self.find_supporting_pieces(piece, all_pieces, excluded_ids))
