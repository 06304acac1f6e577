"""
Pieces
======

Wood piece records and the enumerations the engine annotates them with.

Coordinates are screen coordinates: ``(x, y)`` is the top-left corner and y
grows downwards, so a piece's ``bottom`` is numerically larger than its ``top``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import pymunk


class ShapeKind(str, Enum):
    """How a piece is interpreted for support and hit-testing."""

    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class CollapseRisk(str, Enum):
    """Advisory risk annotation written by the stability pass."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def level(self) -> int:
        return _RISK_LEVELS[self]


_RISK_LEVELS = {
    CollapseRisk.NONE: 0,
    CollapseRisk.LOW: 1,
    CollapseRisk.MEDIUM: 2,
    CollapseRisk.HIGH: 3,
}


class CollapsePrediction(str, Enum):
    """Per-piece outcome of one hypothetical removal."""

    WILL_COLLAPSE = "will_collapse"
    HIGH_RISK = "high_risk"
    MEDIUM_RISK = "medium_risk"
    LOW_RISK = "low_risk"

    @property
    def severity(self) -> int:
        """Larger is worse; used to keep the strongest tier for a piece."""
        return _PREDICTION_SEVERITY[self]


_PREDICTION_SEVERITY = {
    CollapsePrediction.LOW_RISK: 1,
    CollapsePrediction.MEDIUM_RISK: 2,
    CollapsePrediction.HIGH_RISK: 3,
    CollapsePrediction.WILL_COLLAPSE: 4,
}


class CreatureType(str, Enum):
    """Creatures that may hide inside a piece."""

    SPIDER = "spider"
    WASP = "wasp"
    HEDGEHOG = "hedgehog"
    GHOST = "ghost"
    PUMPKIN = "pumpkin"


@dataclass(eq=False)
class WoodPiece:
    """
    A single piece in the pile.

    Pieces compare and hash by identity; ``id`` is the stable key used by
    the store and by every engine query.
    """
    id: str
    x: float
    y: float
    width: float
    height: float
    shape: ShapeKind = ShapeKind.RECTANGLE
    is_removed: bool = False
    collapse_risk: CollapseRisk = CollapseRisk.NONE
    wood_type: str = "normal"
    creature: Optional[CreatureType] = None

    # Animation state, owned by the renderer's collapse animator
    is_collapsing: bool = False
    collapse_start_time: Optional[float] = None
    collapse_velocity: Tuple[float, float] = (0.0, 0.0)
    collapse_rotation: float = 0.0
    collapse_rotation_speed: float = 0.0

    @classmethod
    def from_size(
        cls,
        piece_id: str,
        x: float,
        y: float,
        width: float,
        height: Optional[float] = None,
        shape: Optional[ShapeKind] = None,
        **kwargs
    ) -> "WoodPiece":
        """
        Build a piece, tagging squares as circles unless ``shape`` is given.

        Args:
            piece_id: Unique id.
            x: Left edge.
            y: Top edge.
            width: Piece width.
            height: Piece height (defaults to ``width``).
            shape: Explicit shape tag.

        Returns:
            The new WoodPiece.
        """
        if height is None:
            height = width
        if shape is None:
            shape = ShapeKind.CIRCLE if width == height else ShapeKind.RECTANGLE
        return cls(id=piece_id, x=x, y=y, width=width, height=height, shape=shape, **kwargs)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def size(self) -> Tuple[float, float]:
        return (self.width, self.height)

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_circle(self) -> bool:
        return self.shape == ShapeKind.CIRCLE

    @property
    def radius(self) -> float:
        """Radius of the inscribed circle."""
        return min(self.width, self.height) / 2

    @property
    def center(self) -> pymunk.Vec2d:
        return pymunk.Vec2d(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def bounds(self) -> pymunk.BB:
        """
        Axis-aligned bounds.

        pymunk names the smaller y ``bottom``; in screen coordinates that is
        the visual top edge.
        """
        return pymunk.BB(self.left, self.top, self.right, self.bottom)

    def contains_point(self, px: float, py: float) -> bool:
        """Hit-test a point against the piece's shape."""
        if self.is_circle:
            return self.center.get_distance((px, py)) <= self.radius
        return self.bounds.contains_vect((px, py))

    def __repr__(self) -> str:
        state = " removed" if self.is_removed else ""
        return f"WoodPiece({self.id} @ {self.x:g},{self.y:g} {self.shape.value}{state})"


@dataclass(frozen=True)
class AffectedPiece:
    """A piece and its predicted fate for one hypothetical removal."""
    piece: WoodPiece
    prediction: CollapsePrediction
