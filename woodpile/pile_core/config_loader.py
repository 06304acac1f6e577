"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Optional

import yaml


VALID_SHAPES = ("auto", "circle", "rectangle")
VALID_RISKS = ("none", "low", "medium", "high")


@dataclass(frozen=True)
class BoardConfig:
    """Canvas geometry and the floor strip."""
    canvas_width: int
    canvas_height: int
    ground_margin: float   # Height of the floor strip below the ground line
    pile_margin: float     # Horizontal margin on each side of the pile

    @property
    def ground_line(self) -> float:
        """Y coordinate pieces rest on at the default canvas height."""
        return self.canvas_height - self.ground_margin


@dataclass(frozen=True)
class WoodConfig:
    """Size of a single wood piece's grid cell."""
    width: float
    height: float
    gap: float        # Pieces are drawn gap pixels smaller than their cell
    shape: str        # auto | circle | rectangle

    @property
    def piece_width(self) -> float:
        return self.width - self.gap

    @property
    def piece_height(self) -> float:
        return self.height - self.gap


@dataclass(frozen=True)
class SupportConfig:
    """Thresholds for the geometric support predicate."""
    overlap_fraction: float        # Min horizontal overlap, fraction of upper width
    vertical_tolerance: float      # Max |above.bottom - below.top|
    ground_tolerance: float        # Slack when testing the ground line
    circle_proximity_factor: float # Centre distance (in diameters) for round pieces


@dataclass(frozen=True)
class CollapseConfig:
    """Damage and stability-pass parameters."""
    damage_per_piece: int
    support_count_risks: Tuple[str, ...]  # Risk name indexed by support count


@dataclass(frozen=True)
class PredictionConfig:
    """Hover-preview tuning."""
    low_risk_neighbours: bool
    side_tolerance: float


@dataclass(frozen=True)
class GameplayConfig:
    """Scoring, health and creature parameters."""
    creature_probability: float
    reaction_time_ms: float
    points_per_wood: int
    health_penalty: int
    starting_health: int
    creature_success_multiplier: int


@dataclass(frozen=True)
class WoodTypeConfig:
    """Configuration for a single special wood type."""
    id: int
    name: str
    visual: str
    score_multiplier: float
    health_effect: int
    collapse_risk_multiplier: float
    highlight_color: str
    spawn_chance: float


@dataclass(frozen=True)
class DifficultyConfig:
    """Modifiers for one difficulty level."""
    name: str
    health_multiplier: float
    score_multiplier: float
    creature_spawn_multiplier: float
    reaction_time_ms: float
    starting_health: int
    collapse_damage_multiplier: float
    color: str


@dataclass(frozen=True)
class LevelConfig:
    """One row of the level progression table."""
    level: int
    wood_count: int
    stack_height: int
    target_score: int


@dataclass(frozen=True)
class LevelsConfig:
    """Level progression and speed bonus."""
    default_difficulty: str
    speed_bonus_per_second: int
    base_time_for_bonus: float
    progression: Tuple[LevelConfig, ...]

    @property
    def max_level(self) -> int:
        return len(self.progression)


@dataclass(frozen=True)
class CreatureConfig:
    """Key binding for a creature."""
    name: str
    key: str
    action: str


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    wood: WoodConfig
    support: SupportConfig
    collapse: CollapseConfig
    prediction: PredictionConfig
    gameplay: GameplayConfig
    wood_types: Tuple[WoodTypeConfig, ...]
    difficulties: Tuple[DifficultyConfig, ...]
    levels: LevelsConfig
    creatures: Tuple[CreatureConfig, ...]

    def get_wood_type(self, name: str) -> WoodTypeConfig:
        """Get wood type config by name."""
        for wood_type in self.wood_types:
            if wood_type.name == name:
                return wood_type
        raise ValueError(f"Unknown wood type: {name}")

    def get_difficulty(self, name: str) -> DifficultyConfig:
        """Get difficulty config by name."""
        for difficulty in self.difficulties:
            if difficulty.name == name:
                return difficulty
        raise ValueError(f"Unknown difficulty: {name}")

    def get_level(self, level: int) -> LevelConfig:
        """Get level config by 1-based level number."""
        if 1 <= level <= len(self.levels.progression):
            return self.levels.progression[level - 1]
        raise ValueError(f"Invalid level: {level}")


def _parse_wood_type(index: int, data: dict) -> WoodTypeConfig:
    """Parse a single wood type from YAML."""
    return WoodTypeConfig(
        id=index,
        name=str(data["name"]),
        visual=str(data.get("visual", "")),
        score_multiplier=float(data.get("score_multiplier", 1.0)),
        health_effect=int(data.get("health_effect", 0)),
        collapse_risk_multiplier=float(data.get("collapse_risk_multiplier", 1.0)),
        highlight_color=str(data.get("highlight_color", "#8B4513")),
        spawn_chance=float(data["spawn_chance"])
    )


def _parse_difficulty(data: dict) -> DifficultyConfig:
    """Parse a single difficulty from YAML."""
    return DifficultyConfig(
        name=str(data["name"]),
        health_multiplier=float(data["health_multiplier"]),
        score_multiplier=float(data["score_multiplier"]),
        creature_spawn_multiplier=float(data["creature_spawn_multiplier"]),
        reaction_time_ms=float(data["reaction_time_ms"]),
        starting_health=int(data["starting_health"]),
        collapse_damage_multiplier=float(data.get("collapse_damage_multiplier", 1.0)),
        color=str(data.get("color", "#2196F3"))
    )


def _parse_level(row: List) -> LevelConfig:
    """Parse a [level, wood_count, stack_height, target_score] row."""
    if len(row) != 4:
        raise ValueError(
            f"Level row must have 4 values [level, wood_count, stack_height, target_score], got {row}"
        )
    return LevelConfig(
        level=int(row[0]),
        wood_count=int(row[1]),
        stack_height=int(row[2]),
        target_score=int(row[3])
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.board.canvas_width <= 0 or config.board.canvas_height <= 0:
        raise ValueError("Canvas dimensions must be positive")

    if config.wood.piece_width <= 0 or config.wood.piece_height <= 0:
        raise ValueError(
            f"Wood gap ({config.wood.gap}) must be smaller than wood size "
            f"({config.wood.width}x{config.wood.height})"
        )

    if config.wood.shape not in VALID_SHAPES:
        raise ValueError(f"wood.shape must be one of {VALID_SHAPES}, got '{config.wood.shape}'")

    if not 0.0 < config.support.overlap_fraction <= 1.0:
        raise ValueError(
            f"support.overlap_fraction must be in (0, 1], got {config.support.overlap_fraction}"
        )

    if config.support.vertical_tolerance < 0 or config.support.ground_tolerance < 0:
        raise ValueError("Support tolerances must not be negative")

    for risk in config.collapse.support_count_risks:
        if risk not in VALID_RISKS:
            raise ValueError(f"Unknown risk '{risk}' in collapse.support_count_risks")

    # Spawn chances are cumulative probabilities
    total_chance = sum(w.spawn_chance for w in config.wood_types)
    if total_chance > 1.0 + 1e-6:
        raise ValueError(f"Wood type spawn chances sum to {total_chance:.3f} (> 1)")

    names = [w.name for w in config.wood_types]
    if "normal" not in names:
        raise ValueError("wood_types must define a 'normal' type")

    # Validate level numbers are sequential
    for i, level in enumerate(config.levels.progression):
        if level.level != i + 1:
            raise ValueError(f"Level number mismatch: expected {i + 1}, got {level.level}")

    difficulty_names = [d.name for d in config.difficulties]
    if config.levels.default_difficulty not in difficulty_names:
        raise ValueError(
            f"levels.default_difficulty '{config.levels.default_difficulty}' "
            f"is not a defined difficulty"
        )


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    board_data = raw["board"]
    board = BoardConfig(
        canvas_width=int(board_data["canvas_width"]),
        canvas_height=int(board_data["canvas_height"]),
        ground_margin=float(board_data.get("ground_margin", 50)),
        pile_margin=float(board_data.get("pile_margin", 50))
    )

    wood_data = raw["wood"]
    wood = WoodConfig(
        width=float(wood_data["width"]),
        height=float(wood_data["height"]),
        gap=float(wood_data.get("gap", 0)),
        shape=str(wood_data.get("shape", "auto"))
    )

    support_data = raw["support"]
    support = SupportConfig(
        overlap_fraction=float(support_data.get("overlap_fraction", 0.5)),
        vertical_tolerance=float(support_data.get("vertical_tolerance", wood.height * 0.5)),
        ground_tolerance=float(support_data.get("ground_tolerance", 5.0)),
        circle_proximity_factor=float(support_data.get("circle_proximity_factor", 1.0))
    )

    collapse_data = raw["collapse"]
    collapse = CollapseConfig(
        damage_per_piece=int(collapse_data["damage_per_piece"]),
        support_count_risks=tuple(
            str(r) for r in collapse_data.get("support_count_risks", ["high", "medium", "low"])
        )
    )

    # Prediction section is optional
    prediction_data = raw.get("prediction", {})
    prediction = PredictionConfig(
        low_risk_neighbours=bool(prediction_data.get("low_risk_neighbours", True)),
        side_tolerance=float(prediction_data.get("side_tolerance", wood.gap * 2))
    )

    gameplay_data = raw["gameplay"]
    gameplay = GameplayConfig(
        creature_probability=float(gameplay_data["creature_probability"]),
        reaction_time_ms=float(gameplay_data["reaction_time_ms"]),
        points_per_wood=int(gameplay_data["points_per_wood"]),
        health_penalty=int(gameplay_data["health_penalty"]),
        starting_health=int(gameplay_data.get("starting_health", 100)),
        creature_success_multiplier=int(gameplay_data.get("creature_success_multiplier", 2))
    )

    wood_types = tuple(
        _parse_wood_type(i, w) for i, w in enumerate(raw["wood_types"])
    )

    difficulties = tuple(_parse_difficulty(d) for d in raw["difficulties"])

    levels_data = raw["levels"]
    levels = LevelsConfig(
        default_difficulty=str(levels_data.get("default_difficulty", "normal")),
        speed_bonus_per_second=int(levels_data.get("speed_bonus_per_second", 5)),
        base_time_for_bonus=float(levels_data.get("base_time_for_bonus", 60)),
        progression=tuple(_parse_level(row) for row in levels_data["progression"])
    )

    creatures = tuple(
        CreatureConfig(
            name=str(c["name"]),
            key=str(c["key"]),
            action=str(c.get("action", ""))
        )
        for c in raw.get("creatures", [])
    )

    config = GameConfig(
        board=board,
        wood=wood,
        support=support,
        collapse=collapse,
        prediction=prediction,
        gameplay=gameplay,
        wood_types=wood_types,
        difficulties=difficulties,
        levels=levels,
        creatures=creatures
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
