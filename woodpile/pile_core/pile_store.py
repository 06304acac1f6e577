"""
Pile Store
==========

Arena of wood pieces indexed by id. The game loop owns one store per level;
collaborators read from it and flip removal/risk state only through
``mark_removed`` and ``set_risk``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from woodpile.pile_core.pieces import CollapseRisk, WoodPiece

logger = logging.getLogger(__name__)


class PileStore:
    """
    Ordered collection of pieces for one level.

    Insertion order is preserved; it is the order every engine query walks
    the pile in. Pieces are never deleted during a level, only flagged
    removed.
    """

    def __init__(self, pieces: Iterable[WoodPiece] = ()):
        self._pieces: Dict[str, WoodPiece] = {}
        for piece in pieces:
            self.add(piece)

    def add(self, piece: WoodPiece) -> WoodPiece:
        """
        Add a piece to the store.

        Raises:
            ValueError: If a piece with the same id is already stored.
        """
        if piece.id in self._pieces:
            raise ValueError(f"Duplicate piece id: {piece.id}")
        self._pieces[piece.id] = piece
        return piece

    def get(self, piece_id: str) -> Optional[WoodPiece]:
        """Get a piece by id, or None."""
        return self._pieces.get(piece_id)

    def __getitem__(self, piece_id: str) -> WoodPiece:
        return self._pieces[piece_id]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, WoodPiece):
            return self._pieces.get(item.id) is item
        return item in self._pieces

    def __iter__(self) -> Iterator[WoodPiece]:
        return iter(self._pieces.values())

    def __len__(self) -> int:
        return len(self._pieces)

    @property
    def pieces(self) -> List[WoodPiece]:
        """All pieces, removed ones included, in insertion order."""
        return list(self._pieces.values())

    @property
    def active_count(self) -> int:
        """Number of pieces still in the pile."""
        return sum(1 for p in self._pieces.values() if not p.is_removed)

    def active_pieces(self) -> List[WoodPiece]:
        """Pieces still in the pile."""
        return [p for p in self._pieces.values() if not p.is_removed]

    def removed_pieces(self) -> List[WoodPiece]:
        """Pieces that have left the pile."""
        return [p for p in self._pieces.values() if p.is_removed]

    def piece_at(self, x: float, y: float) -> Optional[WoodPiece]:
        """
        Hit-test a point against the pile.

        Returns the topmost (smallest y) non-removed piece containing the
        point, or None.
        """
        hits = [
            p for p in self._pieces.values()
            if not p.is_removed and p.contains_point(x, y)
        ]
        if not hits:
            return None
        return min(hits, key=lambda p: p.y)

    def mark_removed(self, piece_id: str) -> Optional[WoodPiece]:
        """
        Flag a piece as removed.

        Returns:
            The piece, or None if the id is unknown.
        """
        piece = self._pieces.get(piece_id)
        if piece is None:
            logger.warning("mark_removed: unknown piece id %s", piece_id)
            return None
        piece.is_removed = True
        return piece

    def set_risk(self, piece_id: str, risk: CollapseRisk) -> None:
        """Set the advisory risk annotation of a piece."""
        piece = self._pieces.get(piece_id)
        if piece is not None:
            piece.collapse_risk = risk

    def clear(self) -> None:
        """Remove all pieces (start of a new level)."""
        self._pieces.clear()


PieceCollection = Union[PileStore, Sequence[WoodPiece]]


def as_piece_list(pieces: PieceCollection) -> List[WoodPiece]:
    """
    Normalize a store or sequence into a list, dropping duplicate ids.

    The first piece seen for an id wins; later duplicates are logged and
    ignored so they cannot corrupt support queries.
    """
    if isinstance(pieces, PileStore):
        return pieces.pieces

    result: List[WoodPiece] = []
    seen = set()
    for piece in pieces:
        if piece.id in seen:
            logger.warning("Duplicate piece id %s ignored", piece.id)
            continue
        seen.add(piece.id)
        result.append(piece)
    return result


def find_by_id(pieces: Sequence[WoodPiece], piece_id: str) -> Optional[WoodPiece]:
    """Linear id lookup in a piece list."""
    for piece in pieces:
        if piece.id == piece_id:
            return piece
    return None
