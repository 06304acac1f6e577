"""
Wood pile core: support geometry, collapse prediction and cascade
resolution, plus the game layer built on top of them.
"""

from woodpile.pile_core.config_loader import GameConfig, get_config, load_config, reload_config
from woodpile.pile_core.pieces import (
    AffectedPiece,
    CollapsePrediction,
    CollapseRisk,
    CreatureType,
    ShapeKind,
    WoodPiece,
)
from woodpile.pile_core.pile_store import PileStore
from woodpile.pile_core.support_geometry import SupportGeometry
from woodpile.pile_core.collapse_prediction import CollapsePredictionCalculator
from woodpile.pile_core.cascade_resolver import CascadeResult, CollapseCascadeResolver
from woodpile.pile_core.pile_generator import WoodPileGenerator
from woodpile.pile_core.collision_manager import CollapseOutcome, CollisionManager, StabilityReport
from woodpile.pile_core.game import CoreGame, RemovalResult

__all__ = [
    "GameConfig",
    "get_config",
    "load_config",
    "reload_config",
    "AffectedPiece",
    "CollapsePrediction",
    "CollapseRisk",
    "CreatureType",
    "ShapeKind",
    "WoodPiece",
    "PileStore",
    "SupportGeometry",
    "CollapsePredictionCalculator",
    "CascadeResult",
    "CollapseCascadeResolver",
    "WoodPileGenerator",
    "CollapseOutcome",
    "CollisionManager",
    "StabilityReport",
    "CoreGame",
    "RemovalResult",
]
