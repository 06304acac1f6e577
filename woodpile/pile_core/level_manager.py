"""
Level Manager
=============

Level progression, difficulty modifiers and the speed bonus.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from woodpile.pile_core.config_loader import (
    DifficultyConfig,
    GameConfig,
    LevelConfig,
    get_config,
)

logger = logging.getLogger(__name__)


class LevelEventType(str, Enum):
    LEVEL_START = "level_start"
    LEVEL_COMPLETE = "level_complete"
    LEVEL_FAILED = "level_failed"
    DIFFICULTY_CHANGE = "difficulty_change"


@dataclass
class LevelEvent:
    """Notification sent to level event listeners."""
    type: LevelEventType
    level: int
    difficulty: str
    timestamp: float
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LevelCompletion:
    """Summary returned when a level is completed."""
    level: int
    speed_bonus: int
    total_score: int
    completion_time: int
    next_level: Optional[int]


LevelListener = Callable[[LevelEvent], None]


class LevelManager:
    """
    Tracks the current level and difficulty for a session.

    Level numbers outside the progression table are clamped. The clock is
    injectable (seconds, like ``time.monotonic``) so timing is testable.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        difficulty: Optional[str] = None,
        starting_level: int = 1,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize level manager.

        Args:
            config: Game configuration. Uses default if None.
            difficulty: Difficulty name. Uses the configured default if None.
            starting_level: First level (clamped to the table).
            clock: Time source in seconds.

        Raises:
            ValueError: If ``difficulty`` is not a configured difficulty.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._clock = clock
        self._difficulty = config.get_difficulty(
            difficulty or config.levels.default_difficulty
        )
        self._level = self._clamp_level(starting_level)
        self._highest_level = self._level
        self._level_start: Optional[float] = None
        self._total_score = 0
        self._wood_collected = 0
        self._listeners: Dict[LevelEventType, List[LevelListener]] = {}

    def _clamp_level(self, level: int) -> int:
        return max(1, min(level, self._config.levels.max_level))

    @property
    def current_level(self) -> int:
        return self._level

    @property
    def highest_level_reached(self) -> int:
        return self._highest_level

    @property
    def difficulty(self) -> DifficultyConfig:
        return self._difficulty

    @property
    def total_score(self) -> int:
        return self._total_score

    @property
    def wood_collected(self) -> int:
        return self._wood_collected

    @property
    def level_info(self) -> LevelConfig:
        return self._config.get_level(self._level)

    def has_next_level(self) -> bool:
        return self._level < self._config.levels.max_level

    def apply_difficulty_to_config(self, base: Optional[GameConfig] = None) -> GameConfig:
        """
        Return a copy of ``base`` with gameplay and collapse values scaled by
        the current difficulty.
        """
        if base is None:
            base = self._config
        modifiers = self._difficulty
        gameplay = dataclasses.replace(
            base.gameplay,
            reaction_time_ms=modifiers.reaction_time_ms,
            creature_probability=min(
                1.0, base.gameplay.creature_probability * modifiers.creature_spawn_multiplier
            ),
            health_penalty=round(base.gameplay.health_penalty * modifiers.health_multiplier),
            starting_health=modifiers.starting_health
        )
        collapse = dataclasses.replace(
            base.collapse,
            damage_per_piece=round(
                base.collapse.damage_per_piece * modifiers.collapse_damage_multiplier
            )
        )
        return dataclasses.replace(base, gameplay=gameplay, collapse=collapse)

    def calculate_score_with_difficulty(self, base_score: int) -> int:
        return math.floor(base_score * self._difficulty.score_multiplier)

    def set_difficulty(self, name: str) -> None:
        """
        Switch difficulty.

        Raises:
            ValueError: If ``name`` is not a configured difficulty.
        """
        previous = self._difficulty
        self._difficulty = self._config.get_difficulty(name)
        if previous.name != self._difficulty.name:
            self._emit(LevelEventType.DIFFICULTY_CHANGE, {"previous": previous.name})

    def start_level(self, level: Optional[int] = None) -> None:
        if level is not None:
            self._level = self._clamp_level(level)
        self._level_start = self._clock()
        self._wood_collected = 0
        logger.info("Level %d started (%s)", self._level, self._difficulty.name)
        self._emit(LevelEventType.LEVEL_START)

    def on_wood_collected(self, points: int) -> None:
        self._wood_collected += 1
        self._total_score += points

    def is_level_complete(self) -> bool:
        """True once this level's wood quota has been collected."""
        return self._wood_collected >= self.level_info.wood_count

    def level_duration(self) -> int:
        """Whole seconds since the level started."""
        if self._level_start is None:
            return 0
        return int(self._clock() - self._level_start)

    def calculate_speed_bonus(self) -> int:
        """Bonus for every second under the target time."""
        if self._level_start is None:
            return 0
        levels = self._config.levels
        under = max(0.0, levels.base_time_for_bonus - self.level_duration())
        return math.floor(under * levels.speed_bonus_per_second)

    def complete_level(self) -> LevelCompletion:
        """Close the current level and advance to the next one if any."""
        speed_bonus = self.calculate_speed_bonus()
        completion_time = self.level_duration()
        finished = self._level

        self._total_score += speed_bonus
        self._highest_level = max(self._highest_level, finished)
        next_level = finished + 1 if self.has_next_level() else None
        if next_level is not None:
            self._level = next_level

        logger.info("Level %d complete in %ds (+%d bonus)", finished, completion_time, speed_bonus)
        self._emit(
            LevelEventType.LEVEL_COMPLETE,
            {"speed_bonus": speed_bonus, "completion_time": completion_time,
             "next_level": next_level},
            level=finished
        )
        return LevelCompletion(
            level=finished,
            speed_bonus=speed_bonus,
            total_score=self._total_score,
            completion_time=completion_time,
            next_level=next_level
        )

    def fail_level(self, reason: str = "") -> None:
        logger.info("Level %d failed: %s", self._level, reason or "unknown")
        self._emit(LevelEventType.LEVEL_FAILED, {"reason": reason})

    def reset(self) -> None:
        """Back to level 1 with a fresh session score."""
        self._level = 1
        self._level_start = None
        self._total_score = 0
        self._wood_collected = 0

    def get_progress(self) -> Dict[str, Any]:
        return {
            "current_level": self._level,
            "highest_level_reached": self._highest_level,
            "total_score": self._total_score,
            "wood_collected": self._wood_collected,
            "wood_target": self.level_info.wood_count,
            "difficulty": self._difficulty.name,
            "is_complete": not self.has_next_level() and self.is_level_complete(),
        }

    def on(self, event_type: LevelEventType, listener: LevelListener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def off(self, event_type: LevelEventType, listener: LevelListener) -> None:
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def _emit(
        self,
        event_type: LevelEventType,
        data: Optional[Dict[str, Any]] = None,
        level: Optional[int] = None
    ) -> None:
        event = LevelEvent(
            type=event_type,
            level=self._level if level is None else level,
            difficulty=self._difficulty.name,
            timestamp=self._clock(),
            data=data or {}
        )
        for listener in list(self._listeners.get(event_type, [])):
            listener(event)
