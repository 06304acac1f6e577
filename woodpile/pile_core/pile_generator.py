"""
Pile Generator
==============

Builds brick-pattern wood piles, runs the stability pass that annotates
every piece with its collapse risk, and exposes the cascade query the
collision manager commits through.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional

from woodpile.pile_core.cascade_resolver import CascadeResult, CollapseCascadeResolver
from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import CollapseRisk, CreatureType, ShapeKind, WoodPiece
from woodpile.pile_core.pile_store import PieceCollection, PileStore, as_piece_list
from woodpile.pile_core.support_geometry import SupportGeometry
from woodpile.pile_core.wood_catalog import WoodCatalog, get_catalog


class WoodPileGenerator:
    """
    Generates piles and keeps their risk annotations current.

    Even rows hold ``pieces_per_row`` pieces; odd rows hold one fewer and are
    shifted by half a wood width so each piece straddles two below it.
    Rectangles too narrow to keep the required overlap across that shift are
    stacked in straight columns instead, with every row full.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        geometry: Optional[SupportGeometry] = None,
        creature_probability: Optional[float] = None
    ):
        """
        Initialize generator.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducible piles.
            geometry: Shared geometry evaluator. Created if None.
            creature_probability: Overrides the configured creature chance
                (difficulty scaling).
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = random.Random(seed)
        self._catalog: WoodCatalog = get_catalog(config)
        self._geometry = geometry or SupportGeometry(config)
        self._resolver = CollapseCascadeResolver(config, self._geometry)
        self._creature_probability = (
            creature_probability
            if creature_probability is not None
            else config.gameplay.creature_probability
        )

        # Stability pass thresholds by support count
        self._support_count_risks = tuple(
            CollapseRisk(name) for name in config.collapse.support_count_risks
        )

    @property
    def geometry(self) -> SupportGeometry:
        return self._geometry

    @property
    def resolver(self) -> CollapseCascadeResolver:
        return self._resolver

    @property
    def creature_probability(self) -> float:
        return self._creature_probability

    @creature_probability.setter
    def creature_probability(self, value: float) -> None:
        self._creature_probability = max(0.0, min(1.0, value))

    def reset(self, seed: Optional[int] = None) -> None:
        """Reseed the generator."""
        self._rng = random.Random(seed)

    # -- Layout ---------------------------------------------------------

    def calculate_rows(self, canvas_height: Optional[float] = None) -> int:
        """Number of rows that fit between the floor and the top margin."""
        if canvas_height is None:
            canvas_height = self._geometry.canvas_height
        usable = canvas_height - 2 * self._config.board.ground_margin
        return max(0, math.floor(usable / self._config.wood.height))

    def calculate_pieces_per_row(self, canvas_width: Optional[float] = None) -> int:
        """Number of pieces on an even row."""
        if canvas_width is None:
            canvas_width = self._config.board.canvas_width
        usable = canvas_width - 2 * self._config.board.pile_margin
        return max(0, math.floor(usable / self._config.wood.width))

    def generate_wood_pile(
        self,
        canvas_width: Optional[float] = None,
        max_rows: Optional[int] = None
    ) -> PileStore:
        """
        Generate a complete pile with risks already annotated.

        Args:
            canvas_width: Viewport width. Uses the configured width if None.
            max_rows: Caps the stack height (a level's ``stack_height``).

        Returns:
            A new PileStore.
        """
        rows = self.calculate_rows()
        if max_rows is not None:
            rows = min(rows, max_rows)
        per_row = self.calculate_pieces_per_row(canvas_width)
        offset = self.brick_offset()

        store = PileStore()
        for row in range(rows):
            row_count = per_row if row % 2 == 0 or not offset else per_row - 1
            for col in range(row_count):
                store.add(self._create_wood_piece(row, col))

        self.update_collapse_risks(store)
        return store

    def _create_wood_piece(self, row: int, col: int) -> WoodPiece:
        """Create a single piece at its brick position."""
        wood = self._config.wood
        x, y = self.calculate_brick_position(row, col)
        return WoodPiece(
            id=f"wood-{row}-{col}",
            x=x,
            y=y,
            width=wood.piece_width,
            height=wood.piece_height,
            shape=self._piece_shape(),
            wood_type=self._catalog.select_random(self._rng).name,
            creature=self._assign_creature()
        )

    def brick_offset(self) -> float:
        """
        Horizontal shift of odd rows.

        Half a wood width, unless rectangular pieces would overlap the piece
        below by less than ``support.overlap_fraction`` of their width; those
        get no shift so each rests squarely on the one beneath.
        """
        wood = self._config.wood
        half = wood.width / 2
        if self._piece_shape() == ShapeKind.CIRCLE:
            return half
        overlap = wood.piece_width - half
        if overlap >= self._config.support.overlap_fraction * wood.piece_width:
            return half
        return 0.0

    def calculate_brick_position(self, row: int, col: int) -> tuple:
        """Top-left corner of the piece at ``(row, col)``; row 0 rests on the ground."""
        wood = self._config.wood
        offset_x = 0.0 if row % 2 == 0 else self.brick_offset()
        x = self._config.board.pile_margin + col * wood.width + offset_x
        y = self._geometry.ground_line - (row + 1) * wood.height
        return (x, y)

    def _piece_shape(self) -> ShapeKind:
        shape = self._config.wood.shape
        if shape == "circle":
            return ShapeKind.CIRCLE
        if shape == "rectangle":
            return ShapeKind.RECTANGLE
        wood = self._config.wood
        return ShapeKind.CIRCLE if wood.piece_width == wood.piece_height else ShapeKind.RECTANGLE

    def _assign_creature(self) -> Optional[CreatureType]:
        if self._rng.random() >= self._creature_probability:
            return None
        return self._rng.choice(list(CreatureType))

    # -- Stability pass -------------------------------------------------

    def calculate_risk_for_piece(
        self,
        piece: WoodPiece,
        all_pieces: List[WoodPiece]
    ) -> CollapseRisk:
        """Risk from the piece's current support count."""
        if self._geometry.is_on_ground(piece):
            return CollapseRisk.NONE
        count = self._geometry.get_support_count(piece, all_pieces)
        if count < len(self._support_count_risks):
            return self._support_count_risks[count]
        return CollapseRisk.NONE

    def update_collapse_risks(self, all_pieces: PieceCollection) -> PieceCollection:
        """
        Re-annotate every remaining piece with its current risk.

        Removed pieces keep their last annotation. Returns the same
        collection that was passed in.
        """
        pieces = as_piece_list(all_pieces)
        risks = [
            (piece, self.calculate_risk_for_piece(piece, pieces))
            for piece in pieces
            if not piece.is_removed
        ]
        # Classify against one consistent state before writing anything
        for piece, risk in risks:
            piece.collapse_risk = risk
        return all_pieces

    # -- Cascades -------------------------------------------------------

    def find_collapsing_pieces(
        self,
        removed_piece: WoodPiece,
        all_pieces: PieceCollection
    ) -> List[WoodPiece]:
        """Pieces that would fall if ``removed_piece`` were removed (no mutation)."""
        return self._resolver.find_collapsing_pieces(removed_piece, all_pieces)

    def resolve_collapse(
        self,
        removed_piece: WoodPiece,
        all_pieces: PieceCollection
    ) -> CascadeResult:
        """Commit ``removed_piece``'s removal and every piece it brings down."""
        return self._resolver.resolve(removed_piece, all_pieces, commit=True)
