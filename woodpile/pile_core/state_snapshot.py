"""
State Snapshot
==============

Packs the pile into numpy arrays for renderers and offline analysis,
with a few derived features (stability, pile extent, height map).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from woodpile.pile_core.config_loader import GameConfig, get_config
from woodpile.pile_core.pieces import CollapseRisk, ShapeKind
from woodpile.pile_core.pile_store import PieceCollection, as_piece_list

# Number of columns in the pile height map
HEIGHT_MAP_SLICES = 20

RISK_CODES = {risk: risk.level for risk in CollapseRisk}
SHAPE_CODES = {ShapeKind.RECTANGLE: 0, ShapeKind.CIRCLE: 1}


@dataclass
class PileSnapshot:
    """
    Array view of a pile at one instant.

    Per-piece arrays share the pile's order and include removed pieces;
    ``removed`` masks them out.
    """
    # Core state
    score: int
    health: int
    level: int
    canvas_width: float
    canvas_height: float
    ground_line: float

    # Derived features
    active_count: int
    stability_percentage: float
    pile_top_y: float                 # Smallest y of any active piece (ground line if empty)
    pile_left: float
    pile_right: float
    height_map: np.ndarray            # (HEIGHT_MAP_SLICES,) float32, pile height per column

    # Per-piece arrays
    x: np.ndarray                     # (N,) float32
    y: np.ndarray                     # (N,) float32
    width: np.ndarray                 # (N,) float32
    height: np.ndarray                # (N,) float32
    removed: np.ndarray               # (N,) bool
    risk: np.ndarray                  # (N,) int8, CollapseRisk.level
    shape: np.ndarray                 # (N,) int8, 0 rectangle / 1 circle

    def to_dict(self) -> Dict[str, np.ndarray]:
        """Flatten to a dict of arrays (scalars become 0-d arrays)."""
        return {
            "score": np.array(self.score, dtype=np.int64),
            "health": np.array(self.health, dtype=np.int32),
            "level": np.array(self.level, dtype=np.int32),
            "active_count": np.array(self.active_count, dtype=np.int32),
            "stability_percentage": np.array(self.stability_percentage, dtype=np.float32),
            "pile_top_y": np.array(self.pile_top_y, dtype=np.float32),
            "height_map": self.height_map,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "removed": self.removed,
            "risk": self.risk,
            "shape": self.shape,
        }


class SnapshotBuilder:
    """Builds PileSnapshot objects from a pile."""

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize snapshot builder.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config

    def build(
        self,
        all_pieces: PieceCollection,
        ground_line: Optional[float] = None,
        canvas_width: Optional[float] = None,
        canvas_height: Optional[float] = None,
        score: int = 0,
        health: int = 0,
        level: int = 1
    ) -> PileSnapshot:
        """Build a snapshot from the current pile."""
        board = self._config.board
        if canvas_width is None:
            canvas_width = board.canvas_width
        if canvas_height is None:
            canvas_height = board.canvas_height
        if ground_line is None:
            ground_line = canvas_height - board.ground_margin

        pieces = as_piece_list(all_pieces)
        count = len(pieces)

        x = np.fromiter((p.x for p in pieces), dtype=np.float32, count=count)
        y = np.fromiter((p.y for p in pieces), dtype=np.float32, count=count)
        width = np.fromiter((p.width for p in pieces), dtype=np.float32, count=count)
        height = np.fromiter((p.height for p in pieces), dtype=np.float32, count=count)
        removed = np.fromiter((p.is_removed for p in pieces), dtype=bool, count=count)
        risk = np.fromiter((RISK_CODES[p.collapse_risk] for p in pieces), dtype=np.int8, count=count)
        shape = np.fromiter((SHAPE_CODES[p.shape] for p in pieces), dtype=np.int8, count=count)

        active = ~removed
        active_count = int(active.sum())

        if active_count > 0:
            stable = int((risk[active] == RISK_CODES[CollapseRisk.NONE]).sum())
            stability = round(100.0 * stable / active_count, 2)
            pile_top_y = float(y[active].min())
            pile_left = float(x[active].min())
            pile_right = float((x[active] + width[active]).max())
        else:
            stability = 100.0
            pile_top_y = float(ground_line)
            pile_left = 0.0
            pile_right = 0.0

        height_map = self._compute_height_map(
            x[active], y[active], width[active], ground_line, canvas_width
        )

        return PileSnapshot(
            score=score,
            health=health,
            level=level,
            canvas_width=float(canvas_width),
            canvas_height=float(canvas_height),
            ground_line=float(ground_line),
            active_count=active_count,
            stability_percentage=stability,
            pile_top_y=pile_top_y,
            pile_left=pile_left,
            pile_right=pile_right,
            height_map=height_map,
            x=x,
            y=y,
            width=width,
            height=height,
            removed=removed,
            risk=risk,
            shape=shape
        )

    @staticmethod
    def _compute_height_map(
        x: np.ndarray,
        y: np.ndarray,
        width: np.ndarray,
        ground_line: float,
        canvas_width: float
    ) -> np.ndarray:
        """
        Pile height above the ground line per column.

        Returns array of shape (HEIGHT_MAP_SLICES,) with 0 for empty columns.
        """
        height_map = np.zeros(HEIGHT_MAP_SLICES, dtype=np.float32)
        slice_width = canvas_width / HEIGHT_MAP_SLICES

        for left, top, w in zip(x, y, width):
            first = max(0, int(left / slice_width))
            last = min(HEIGHT_MAP_SLICES - 1, int((left + w) / slice_width))
            pile_height = max(0.0, ground_line - top)
            for s in range(first, last + 1):
                if pile_height > height_map[s]:
                    height_map[s] = pile_height

        return height_map
