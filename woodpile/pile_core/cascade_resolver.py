"""
Cascade Resolver
================

Authoritative collapse resolution: after one piece is pulled out, keep
dropping every non-ground piece that has no support left until a full pass
changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import WoodPiece
from woodpile.pile_core.pile_store import PieceCollection, as_piece_list, find_by_id
from woodpile.pile_core.support_geometry import SupportGeometry

logger = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    """Outcome of resolving one removal."""
    removed_piece: WoodPiece
    collapsed: List[WoodPiece] = field(default_factory=list)  # Excludes removed_piece
    passes: int = 0
    converged: bool = True
    committed: bool = False

    @property
    def collapsed_ids(self) -> List[str]:
        return [p.id for p in self.collapsed]

    def __len__(self) -> int:
        return len(self.collapsed)


class CollapseCascadeResolver:
    """
    Fixed-point cascade over the geometric support relation.

    Resolution tracks falling pieces in an id set, so the same code serves
    previews (nothing mutated) and commits (flags flipped at the end).
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        geometry: Optional[SupportGeometry] = None
    ):
        """
        Initialize resolver.

        Args:
            config: Game configuration. Uses default if None.
            geometry: Shared geometry evaluator. Created if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._geometry = geometry or SupportGeometry(config)

    @property
    def geometry(self) -> SupportGeometry:
        return self._geometry

    def resolve(
        self,
        removed_piece: WoodPiece,
        all_pieces: PieceCollection,
        commit: bool = True,
        max_passes: Optional[int] = None
    ) -> CascadeResult:
        """
        Resolve the cascade caused by removing ``removed_piece``.

        Args:
            removed_piece: The piece the player pulled out.
            all_pieces: The whole pile.
            commit: If True, flag the removed piece and every collapsed piece
                as removed.
            max_passes: Pass bound. Defaults to the piece count, which a
                monotonic cascade never exhausts.

        Returns:
            CascadeResult listing the pieces that fell as a consequence.
        """
        pieces = as_piece_list(all_pieces)
        result = CascadeResult(removed_piece=removed_piece)

        if find_by_id(pieces, removed_piece.id) is None:
            logger.warning("Cascade for unknown piece %s ignored", removed_piece.id)
            return result

        falling: Set[str] = {removed_piece.id}
        if max_passes is None:
            # Each pass but the last drops a piece, so n passes always settle
            max_passes = len(pieces)
        max_passes = max(1, max_passes)

        converged = False
        while result.passes < max_passes:
            result.passes += 1
            changed = False
            for piece in pieces:
                if piece.is_removed or piece.id in falling:
                    continue
                if self._geometry.is_on_ground(piece):
                    continue
                if not self._geometry.find_supporting_pieces(piece, pieces, falling):
                    falling.add(piece.id)
                    result.collapsed.append(piece)
                    changed = True
            if not changed:
                converged = True
                break

        result.converged = converged
        if not converged:
            logger.warning(
                "Cascade for %s stopped after %d passes; pile may be under-resolved",
                removed_piece.id, result.passes
            )

        if commit:
            removed_piece.is_removed = True
            for piece in result.collapsed:
                piece.is_removed = True
            result.committed = True

        logger.debug(
            "Cascade for %s: %d collapsed in %d passes",
            removed_piece.id, len(result.collapsed), result.passes
        )
        return result

    def find_collapsing_pieces(
        self,
        removed_piece: WoodPiece,
        all_pieces: PieceCollection
    ) -> List[WoodPiece]:
        """Pieces that would fall if ``removed_piece`` were removed (no mutation)."""
        return self.resolve(removed_piece, all_pieces, commit=False).collapsed
